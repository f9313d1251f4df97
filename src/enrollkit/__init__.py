"""EnrollKit - student, course and enrollment records with referential integrity."""

__version__ = "0.1.0"


def get_version() -> str:
    """Return the package version."""
    return __version__

"""CLI entry point for EnrollKit.

Every command loads the configured store into an EnrollmentService, runs one
operation, and closes the store again.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import click

from enrollkit import get_version
from enrollkit.config import ConfigError, EnrollKitConfig, create_store, resolve_config
from enrollkit.domain import EnrollmentError, EnrollmentService, StudentKind, describe
from enrollkit.logging import setup_logging

T = TypeVar("T")

config_option = click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to enrollkit.yaml (auto-detected if not specified)",
)


def _load_config(config_path: Path | None, *, console: bool | None = False) -> EnrollKitConfig:
    """Resolve config and set up logging.

    Console logging stays off by default so command output is not mixed with
    log lines. ``console=None`` defers to the config file.
    """
    try:
        config = resolve_config(config_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    setup_logging(config.logging, console=console)
    return config


def _run(config: EnrollKitConfig, action: Callable[[EnrollmentService], Awaitable[T]]) -> T:
    """Run action against a freshly loaded service, exiting 1 on domain errors."""

    async def runner() -> T:
        store = create_store(config)
        try:
            service = EnrollmentService(store)
            await service.load()
            return await action(service)
        finally:
            await store.close()

    try:
        return asyncio.run(runner())
    except EnrollmentError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(get_version(), prog_name="enrollkit")
def main() -> None:
    """EnrollKit - manage students, courses and enrollments."""
    pass


@main.command()
@config_option
@click.option("--host", default=None, help="Bind host (default: from config)")
@click.option("--port", type=int, default=None, help="Bind port (default: from config)")
def serve(config_path: Path | None, host: str | None, port: int | None) -> None:
    """Run the REST API server."""
    import uvicorn  # noqa: PLC0415

    from enrollkit.api.app import create_app  # noqa: PLC0415

    config = _load_config(config_path, console=None)
    uvicorn.run(
        create_app(config),
        host=host or config.api.host,
        port=port or config.api.port,
        log_level=config.logging.level.lower(),
    )


@main.command()
@config_option
def students(config_path: Path | None) -> None:
    """List students with their index, kind, tuition and courses."""
    config = _load_config(config_path)

    async def action(service: EnrollmentService) -> None:
        if not service.students:
            click.echo("No students registered yet")
            return
        for index, student in enumerate(service.students):
            course_names = ", ".join(c.name for c in student.enrolled_courses) or "None"
            click.echo(
                f"{index}\t{student.id}\t{describe(student)}\t"
                f"${student.tuition_rate}\t{course_names}"
            )

    _run(config, action)


@main.command()
@config_option
@click.option("--search", default=None, help="Only courses whose name contains this text")
def courses(config_path: Path | None, search: str | None) -> None:
    """List courses with their enrollment counts."""
    config = _load_config(config_path)

    async def action(service: EnrollmentService) -> None:
        found = service.search_courses(search)
        if not found:
            click.echo("No courses found")
            return
        for course in found:
            click.echo(f"{course.id}\t{course.name}\t{service.enrollment_count(course.id)}")

    _run(config, action)


@main.command()
@config_option
def enrollments(config_path: Path | None) -> None:
    """List enrollment records."""
    config = _load_config(config_path)

    async def action(service: EnrollmentService) -> None:
        if not service.enrollments:
            click.echo("No enrollments yet")
            return
        for enrollment in service.enrollments:
            click.echo(
                f"{enrollment.id}\t{enrollment.student_label}\t"
                f"{enrollment.course_name}\t{enrollment.date}"
            )

    _run(config, action)


@main.command("add-student")
@config_option
@click.argument("name")
@click.option(
    "--kind",
    type=click.Choice([k.value for k in StudentKind], case_sensitive=False),
    default=StudentKind.DOMESTIC.value,
    show_default=True,
)
def add_student(config_path: Path | None, name: str, kind: str) -> None:
    """Register a student."""
    config = _load_config(config_path)
    student = _run(config, lambda service: service.add_student(name, kind))
    click.echo(f"Added {describe(student)} with id {student.id}")


@main.command("add-course")
@config_option
@click.argument("name")
def add_course(config_path: Path | None, name: str) -> None:
    """Add a course."""
    config = _load_config(config_path)
    course = _run(config, lambda service: service.add_course(name))
    click.echo(f"Added course {course.id}: {course.name}")


@main.command("delete-student")
@config_option
@click.argument("student_id")
def delete_student(config_path: Path | None, student_id: str) -> None:
    """Delete a student and its enrollments."""
    config = _load_config(config_path)
    _run(config, lambda service: service.delete_student_by_id(student_id))
    click.echo(f"Deleted student {student_id}")


@main.command("delete-course")
@config_option
@click.argument("course_id")
def delete_course(config_path: Path | None, course_id: str) -> None:
    """Delete a course and every enrollment in it."""
    config = _load_config(config_path)
    _run(config, lambda service: service.delete_course(course_id))
    click.echo(f"Deleted course {course_id}")


@main.command()
@config_option
@click.argument("student_id")
@click.argument("course_id")
def enroll(config_path: Path | None, student_id: str, course_id: str) -> None:
    """Enroll a student in a course."""
    config = _load_config(config_path)
    enrollment = _run(config, lambda service: service.enroll_student_by_id(student_id, course_id))
    click.echo(
        f"Enrolled {enrollment.student_label} in {enrollment.course_name} ({enrollment.id})"
    )


@main.command()
@config_option
@click.argument("enrollment_id")
def unenroll(config_path: Path | None, enrollment_id: str) -> None:
    """Remove an enrollment."""
    config = _load_config(config_path)
    _run(config, lambda service: service.unenroll_student(enrollment_id))
    click.echo(f"Removed enrollment {enrollment_id}")


@main.command()
@config_option
def stats(config_path: Path | None) -> None:
    """Show record totals."""
    config = _load_config(config_path)

    async def action(service: EnrollmentService) -> None:
        totals = service.stats()
        click.echo(f"Students:    {totals.total_students}")
        click.echo(f"Courses:     {totals.total_courses}")
        click.echo(f"Enrollments: {totals.total_enrollments}")
        click.echo(f"Tuition:     ${totals.total_tuition}")

    _run(config, action)


@main.command()
@config_option
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
def reset(config_path: Path | None, yes: bool) -> None:
    """Delete all records and restore the default courses."""
    if not yes:
        click.confirm("This removes all students, courses and enrollments. Continue?", abort=True)
    config = _load_config(config_path)
    _run(config, lambda service: service.reset_all())
    click.echo("All records reset")


if __name__ == "__main__":
    main()

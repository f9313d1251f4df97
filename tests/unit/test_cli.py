"""Unit tests for the command line interface."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from enrollkit import __version__, get_version
from enrollkit.cli import main


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Config pointing storage and logs into tmp_path."""
    path = tmp_path / "enrollkit.yaml"
    path.write_text(
        f"storage:\n  backend: sqlite\n  db_path: records.db\n"
        f"logging:\n  dir: {tmp_path / 'logs'}\n  console: false\n"
    )
    return path


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def invoke(runner: CliRunner, config_path: Path, *args: str):
    return runner.invoke(main, [args[0], "-c", str(config_path), *args[1:]])


@pytest.mark.unit
class TestCLI:
    """Tests for the enrollkit command group."""

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert get_version() == __version__
        assert result.output.strip() == f"enrollkit, version {__version__}"

    def test_courses_lists_defaults(self, runner: CliRunner, config_path: Path) -> None:
        result = invoke(runner, config_path, "courses")

        assert result.exit_code == 0
        assert "1\tMathematics\t0" in result.output
        assert "3\tPhysics\t0" in result.output

    def test_students_empty(self, runner: CliRunner, config_path: Path) -> None:
        result = invoke(runner, config_path, "students")

        assert result.exit_code == 0
        assert "No students registered yet" in result.output

    def test_add_student_enroll_and_list(self, runner: CliRunner, config_path: Path) -> None:
        added = invoke(runner, config_path, "add-student", "Ada", "--kind", "international")
        assert added.exit_code == 0
        student_id = added.output.strip().rsplit(" ", 1)[-1]

        enrolled = invoke(runner, config_path, "enroll", student_id, "2")
        assert enrolled.exit_code == 0
        assert "Ada (International) in Computer Science" in enrolled.output

        listed = invoke(runner, config_path, "students")
        assert f"0\t{student_id}\tAda (International)\t$1500\tComputer Science" in listed.output

        stats = invoke(runner, config_path, "stats")
        assert "Enrollments: 1" in stats.output
        assert "Tuition:     $1500" in stats.output

    def test_duplicate_enroll_exits_with_error(self, runner: CliRunner, config_path: Path) -> None:
        added = invoke(runner, config_path, "add-student", "Ada")
        student_id = added.output.strip().rsplit(" ", 1)[-1]
        invoke(runner, config_path, "enroll", student_id, "1")

        result = invoke(runner, config_path, "enroll", student_id, "1")

        assert result.exit_code == 1
        assert "already enrolled" in result.output

    def test_add_and_delete_course(self, runner: CliRunner, config_path: Path) -> None:
        added = invoke(runner, config_path, "add-course", "Biology")
        assert "Added course 4: Biology" in added.output

        deleted = invoke(runner, config_path, "delete-course", "4")
        assert deleted.exit_code == 0

        listed = invoke(runner, config_path, "courses", "--search", "bio")
        assert "No courses found" in listed.output

    def test_delete_unknown_course_fails(self, runner: CliRunner, config_path: Path) -> None:
        result = invoke(runner, config_path, "delete-course", "abc")

        assert result.exit_code == 1
        assert "Invalid course ID" in result.output

    def test_unenroll(self, runner: CliRunner, config_path: Path) -> None:
        added = invoke(runner, config_path, "add-student", "Ada")
        student_id = added.output.strip().rsplit(" ", 1)[-1]
        enrolled = invoke(runner, config_path, "enroll", student_id, "3")
        enrollment_id = enrolled.output.strip().rsplit("(", 1)[-1].rstrip(")")

        result = invoke(runner, config_path, "unenroll", enrollment_id)

        assert result.exit_code == 0
        assert "No enrollments yet" in invoke(runner, config_path, "enrollments").output

    def test_delete_student(self, runner: CliRunner, config_path: Path) -> None:
        added = invoke(runner, config_path, "add-student", "Ada")
        student_id = added.output.strip().rsplit(" ", 1)[-1]

        result = invoke(runner, config_path, "delete-student", student_id)

        assert result.exit_code == 0
        assert "No students registered yet" in invoke(runner, config_path, "students").output

    def test_reset_requires_confirmation(self, runner: CliRunner, config_path: Path) -> None:
        invoke(runner, config_path, "add-student", "Ada")

        aborted = runner.invoke(main, ["reset", "-c", str(config_path)], input="n\n")
        assert aborted.exit_code == 1
        assert "Ada" in invoke(runner, config_path, "students").output

        confirmed = invoke(runner, config_path, "reset", "--yes")
        assert confirmed.exit_code == 0
        assert "No students registered yet" in invoke(runner, config_path, "students").output

    def test_bad_config_reports_error(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "enrollkit.yaml"
        path.write_text("storage:\n  backend: redis\n")

        result = runner.invoke(main, ["students", "-c", str(path)])

        assert result.exit_code == 1
        assert "Configuration error" in result.output

"""Tests for the CLI interface."""

from datetime import date, timedelta

import pytest
from typer.testing import CliRunner

from wellbeing.tracker.challenges import ChallengeStatus
from wellbeing.tracker.cli import app, build_services


@pytest.fixture(autouse=True)
def setup_test_db(monkeypatch, tmp_path):
    """Point the CLI at a fresh database for each test."""
    monkeypatch.setenv("WELLBEING_DB_PATH", str(tmp_path / "test.db"))
    monkeypatch.setenv("WELLBEING_LOG_LEVEL", "CRITICAL")
    monkeypatch.delenv("WELLBEING_COMPLETION_STRATEGY", raising=False)
    monkeypatch.delenv("WELLBEING_INACTIVITY_DAYS", raising=False)
    monkeypatch.delenv("WELLBEING_MONTH_LENGTH_DAYS", raising=False)


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def services():
    """Services bound to the test database."""
    return build_services()


def create(runner, title="Meditate", user="user-1", *extra):
    return runner.invoke(
        app,
        [
            "challenge", "create", title,
            "--user", user,
            "--start", "2024-01-01",
            "--end", "2024-01-10",
            *extra,
        ],
    )


def only_challenge_id(services) -> str:
    challenges = services.challenges.list_challenges()
    assert len(challenges) == 1
    return challenges[0].id


class TestCLIBasics:
    """Basic CLI tests."""

    def test_help(self, runner: CliRunner):
        """Test help output."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "challenge" in result.output

    def test_version(self, runner: CliRunner):
        """Test version command."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "wellbeing version 0.1.0" in result.output

    def test_invalid_configuration(self, runner: CliRunner, monkeypatch):
        """Test invalid settings abort the command."""
        monkeypatch.setenv("WELLBEING_COMPLETION_STRATEGY", "sometimes")
        result = runner.invoke(app, ["challenge", "list"])
        assert result.exit_code == 1
        assert "Unknown completion strategy" in result.output

    def test_malformed_number_setting(self, runner: CliRunner, monkeypatch):
        """Test a non-numeric setting is reported instead of crashing."""
        monkeypatch.setenv("WELLBEING_INACTIVITY_DAYS", "two weeks")
        result = runner.invoke(app, ["challenge", "list"])
        assert result.exit_code == 1
        assert "WELLBEING_INACTIVITY_DAYS" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)


class TestChallengeCommands:
    """Tests for the challenge command group."""

    def test_create(self, runner: CliRunner, services):
        """Test creating a challenge."""
        result = create(runner, "Meditate", "user-1", "--target", "10", "--type", "meditation")

        assert result.exit_code == 0
        assert "Challenge created" in result.output
        challenge = services.challenges.list_challenges()[0]
        assert challenge.target_value == 10
        assert challenge.challenge_type == "meditation"
        assert challenge.end_date == date(2024, 1, 10)

    def test_create_defaults_to_thirty_days(self, runner: CliRunner, services):
        """Test the default window starts today and lasts 30 days."""
        result = runner.invoke(app, ["challenge", "create", "Walk", "--user", "user-1"])

        assert result.exit_code == 0
        challenge = services.challenges.list_challenges()[0]
        assert challenge.start_date == date.today()
        assert challenge.end_date == date.today() + timedelta(days=29)

    def test_create_invalid_date(self, runner: CliRunner):
        """Test malformed dates are rejected."""
        result = runner.invoke(
            app, ["challenge", "create", "Walk", "--user", "user-1", "--start", "01/02/2024"]
        )
        assert result.exit_code == 1
        assert "Invalid date" in result.output

    def test_create_inverted_window(self, runner: CliRunner):
        """Test an end date before the start date is rejected."""
        result = runner.invoke(
            app,
            [
                "challenge", "create", "Walk",
                "--user", "user-1",
                "--start", "2024-01-10",
                "--end", "2024-01-01",
            ],
        )
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_list_empty(self, runner: CliRunner):
        """Test listing with no challenges."""
        result = runner.invoke(app, ["challenge", "list"])
        assert result.exit_code == 0
        assert "No challenges found" in result.output

    def test_list_with_challenges(self, runner: CliRunner):
        """Test listing shows created challenges."""
        create(runner, "Meditate")
        create(runner, "Stretch", "user-2")

        result = runner.invoke(app, ["challenge", "list", "--user", "user-1"])

        assert result.exit_code == 0
        assert "Meditate" in result.output
        assert "Stretch" not in result.output

    def test_show_metrics(self, runner: CliRunner, services):
        """Test showing metrics as of a date."""
        create(runner)
        challenge_id = only_challenge_id(services)
        for day in range(1, 6):
            runner.invoke(app, ["progress", "log", challenge_id, "1", "--date", f"2024-01-0{day}"])

        result = runner.invoke(app, ["challenge", "show", challenge_id, "--on", "2024-01-05"])

        assert result.exit_code == 0
        assert "50%" in result.output
        assert "5 / 10" in result.output
        assert "Current streak: 5" in result.output
        assert "Days remaining: 6" in result.output

    def test_show_does_not_change_status(self, runner: CliRunner, services):
        """Test show never applies automatic transitions."""
        create(runner)
        challenge_id = only_challenge_id(services)

        runner.invoke(app, ["challenge", "show", challenge_id, "--on", "2024-02-01"])

        assert services.challenges.get_challenge(challenge_id).status == ChallengeStatus.ACTIVE

    def test_show_missing(self, runner: CliRunner):
        """Test showing an unknown challenge."""
        result = runner.invoke(app, ["challenge", "show", "missing"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_status_change(self, runner: CliRunner, services):
        """Test a legal and an illegal manual status change."""
        create(runner)
        challenge_id = only_challenge_id(services)

        result = runner.invoke(app, ["challenge", "status", challenge_id, "completed"])
        assert result.exit_code == 0
        assert "now completed" in result.output

        result = runner.invoke(app, ["challenge", "status", challenge_id, "abandoned"])
        assert result.exit_code == 1
        assert "Cannot transition" in result.output

    def test_update(self, runner: CliRunner, services):
        """Test updating a challenge."""
        create(runner)
        challenge_id = only_challenge_id(services)

        result = runner.invoke(
            app, ["challenge", "update", challenge_id, "--title", "Meditate daily", "--target", "15"]
        )

        assert result.exit_code == 0
        updated = services.challenges.get_challenge(challenge_id)
        assert updated.title == "Meditate daily"
        assert updated.target_value == 15

    def test_update_nothing(self, runner: CliRunner, services):
        """Test an update without options changes nothing."""
        create(runner)
        challenge_id = only_challenge_id(services)

        result = runner.invoke(app, ["challenge", "update", challenge_id])

        assert result.exit_code == 0
        assert "Nothing to update" in result.output

    def test_update_nonexistent(self, runner: CliRunner):
        """Test updating an unknown challenge."""
        result = runner.invoke(app, ["challenge", "update", "missing", "--title", "x"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_delete(self, runner: CliRunner, services):
        """Test deleting a challenge."""
        create(runner)
        challenge_id = only_challenge_id(services)

        result = runner.invoke(app, ["challenge", "delete", challenge_id, "--yes"])

        assert result.exit_code == 0
        assert services.challenges.get_challenge(challenge_id) is None

    def test_summary(self, runner: CliRunner, services):
        """Test the per-user summary."""
        create(runner)
        challenge_id = only_challenge_id(services)
        runner.invoke(app, ["challenge", "status", challenge_id, "completed"])

        result = runner.invoke(app, ["challenge", "summary", "user-1"])

        assert result.exit_code == 0
        assert "100.0%" in result.output


class TestProgressCommands:
    """Tests for the progress command group."""

    def test_log_and_list(self, runner: CliRunner, services):
        """Test logging progress and listing it."""
        create(runner)
        challenge_id = only_challenge_id(services)

        result = runner.invoke(
            app, ["progress", "log", challenge_id, "1", "--date", "2024-01-02", "--notes", "calm"]
        )
        assert result.exit_code == 0
        assert "Logged 1 on 2024-01-02" in result.output

        result = runner.invoke(app, ["progress", "list", challenge_id])
        assert result.exit_code == 0
        assert "2024-01-02" in result.output
        assert "calm" in result.output

    def test_log_unknown_challenge(self, runner: CliRunner):
        """Test logging against an unknown challenge."""
        result = runner.invoke(app, ["progress", "log", "missing", "1"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_delete(self, runner: CliRunner, services):
        """Test deleting a day's entry."""
        create(runner)
        challenge_id = only_challenge_id(services)
        runner.invoke(app, ["progress", "log", challenge_id, "1", "--date", "2024-01-02"])

        result = runner.invoke(app, ["progress", "delete", challenge_id, "2024-01-02"])
        assert result.exit_code == 0

        result = runner.invoke(app, ["progress", "delete", challenge_id, "2024-01-02"])
        assert result.exit_code == 1


class TestRefreshCommands:
    """Tests for refresh and refresh-all."""

    def test_refresh_completes(self, runner: CliRunner, services):
        """Test a refresh after the window applies auto-complete."""
        create(runner)
        challenge_id = only_challenge_id(services)
        for day in range(1, 11):
            runner.invoke(
                app, ["progress", "log", challenge_id, "1", "--date", f"2024-01-{day:02d}"]
            )

        result = runner.invoke(app, ["refresh", challenge_id, "--on", "2024-01-20"])

        assert result.exit_code == 0
        assert "active -> completed" in result.output
        assert "Completion: 100%" in result.output
        assert services.challenges.get_challenge(challenge_id).status == ChallengeStatus.COMPLETED

    def test_refresh_missing(self, runner: CliRunner):
        """Test refreshing an unknown challenge."""
        result = runner.invoke(app, ["refresh", "missing"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_refresh_all(self, runner: CliRunner, services):
        """Test refreshing every challenge of a user."""
        create(runner, "Walk")
        create(runner, "Stretch")

        result = runner.invoke(app, ["refresh-all", "user-1", "--on", "2024-01-20"])

        assert result.exit_code == 0
        assert "Walk" in result.output
        assert "Stretch" in result.output
        statuses = {c.status for c in services.challenges.list_challenges()}
        assert statuses == {ChallengeStatus.ABANDONED}

    def test_refresh_all_no_challenges(self, runner: CliRunner):
        """Test refreshing a user without challenges."""
        result = runner.invoke(app, ["refresh-all", "nobody"])
        assert result.exit_code == 0
        assert "No challenges refreshed" in result.output

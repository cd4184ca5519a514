"""CLI command tests using Click CliRunner.

Strategy: patch get_components at each command module's import point so the
commands run against a tmp sqlite db and a scripted orchestrator.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from chat.actions import ActionResult, ActionStatus, ChatResponse, CreateHabit
from chat.interpreter import InterpretationError
from cli.config_models import OrbitConfig
from cli.main import cli
from habits.models import UserFact

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config(tmp_path):
    return OrbitConfig.from_dict({"paths": {"db": str(tmp_path / "orbit.db")}})


@pytest.fixture(autouse=True)
def _config(config):
    with patch("cli.main.load_config_model", return_value=config), patch("cli.main.setup_logging"):
        yield


@pytest.fixture
def components(config, store, fact_store):
    orchestrator = MagicMock()
    orchestrator.process = AsyncMock(
        return_value=ChatResponse(
            ai_message="Logged it!",
            results=[
                ActionResult.success("LogHabit", "h1", "Read"),
                ActionResult.failed("LogHabit", "Habit h2 not found."),
                ActionResult(
                    type="SuggestBreakdown",
                    status=ActionStatus.SUGGESTION,
                    entity_name="Get fit",
                    suggested_sub_habits=[CreateHabit(title="Walk")],
                ),
            ],
        )
    )
    return {"config": config, "store": store, "fact_store": fact_store, "orchestrator": orchestrator}


class TestChat:
    def test_prints_results(self, runner, components):
        with patch("cli.main.get_components", return_value=components):
            result = runner.invoke(cli, ["chat", "user-1", "I read today"])

        assert result.exit_code == 0, result.output
        assert "Logged it!" in result.output
        assert "Habit h2 not found." in result.output
        assert "Walk" in result.output
        components["orchestrator"].process.assert_awaited_once_with("user-1", "I read today", None, None)
        assert components["store"].get_user("user-1") is not None

    def test_requires_message_or_image(self, runner):
        result = runner.invoke(cli, ["chat", "user-1"])
        assert result.exit_code != 0
        assert "Provide a MESSAGE or --image" in result.output

    def test_image_is_validated(self, runner, components, tmp_path):
        image = tmp_path / "plate.png"
        image.write_bytes(PNG_BYTES)
        with patch("cli.main.get_components", return_value=components):
            result = runner.invoke(cli, ["chat", "user-1", "--image", str(image)])

        assert result.exit_code == 0, result.output
        components["orchestrator"].process.assert_awaited_once_with("user-1", "", PNG_BYTES, "image/png")

    def test_rejects_fake_image(self, runner, components, tmp_path):
        image = tmp_path / "notes.png"
        image.write_text("just text")
        with patch("cli.main.get_components", return_value=components):
            result = runner.invoke(cli, ["chat", "user-1", "--image", str(image)])

        assert result.exit_code == 1
        assert "magic bytes" in result.output
        components["orchestrator"].process.assert_not_awaited()

    def test_interpretation_error(self, runner, components):
        components["orchestrator"].process = AsyncMock(side_effect=InterpretationError("AI service error: down"))
        with patch("cli.main.get_components", return_value=components):
            result = runner.invoke(cli, ["chat", "user-1", "hello"])
        assert result.exit_code == 1
        assert "AI service error" in result.output


class TestInitDb:
    def test_creates_db(self, runner, config):
        result = runner.invoke(cli, ["init-db"])
        assert result.exit_code == 0, result.output
        assert config.paths.db.exists()


class TestFacts:
    @pytest.fixture(autouse=True)
    def _components(self, components):
        with patch("cli.commands.facts.get_components", return_value=components):
            yield

    def test_list_empty(self, runner, user):
        result = runner.invoke(cli, ["facts", "list", user.id])
        assert result.exit_code == 0
        assert "No facts stored." in result.output

    def test_list_and_status(self, runner, fact_store, user):
        fact_store.add(UserFact.create(user.id, "User likes tea", "preference"))
        listed = runner.invoke(cli, ["facts", "list", user.id])
        status = runner.invoke(cli, ["facts", "status", user.id])

        assert "User likes tea" in listed.output
        assert "Active facts: 1" in status.output
        assert "preference: 1" in status.output

    def test_delete(self, runner, fact_store, user):
        fact = fact_store.add(UserFact.create(user.id, "User likes tea"))
        assert runner.invoke(cli, ["facts", "delete", user.id, fact.id]).exit_code == 0
        assert fact_store.find_active(user.id) == []

    def test_delete_missing(self, runner, user):
        result = runner.invoke(cli, ["facts", "delete", user.id, "nope"])
        assert result.exit_code == 1
        assert "Fact not found" in result.output

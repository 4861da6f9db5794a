import json
from pathlib import Path

from click.testing import CliRunner

import agentshell.cli as cli_module
from agentshell.gateway import BackendResult

GOOD_KEY = "AIzaSyA1234567890abcdef_-XY"


class FakeGateway:
    instances = []

    def __init__(self, api_key, tool="gemini", timeout=60.0):
        self.api_key = api_key
        self.tool = tool
        self.timeout = timeout
        self.prompts = []
        FakeGateway.instances.append(self)

    def send(self, prompt, model_id):
        self.prompts.append((prompt, model_id))
        return BackendResult.success("Fly via Madrid.")


def test_agents_lists_builtins() -> None:
    result = CliRunner().invoke(cli_module.cli, ["agents"])
    assert result.exit_code == 0
    assert "* general" in result.output
    assert "flight" in result.output
    assert "specs" in result.output


def test_configure_round_trip() -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli_module.cli,
        ["configure", "--agent", "flight", "--model", "gemini-2.5-pro", "--timeout", "30"],
    )
    assert result.exit_code == 0, result.output
    assert "Agent=flight" in result.output

    listed = runner.invoke(cli_module.cli, ["agents"])
    assert "* flight" in listed.output


def test_configure_rejects_unknown_agent() -> None:
    result = CliRunner().invoke(cli_module.cli, ["configure", "--agent", "nope"])
    assert result.exit_code == 2
    assert "Unknown agent" in result.output


def test_chat_without_key_fails_before_loop() -> None:
    result = CliRunner().invoke(cli_module.cli, ["chat"], input="hello\n")
    assert result.exit_code == 1
    assert "No API key found" in result.output


def test_chat_runs_session(monkeypatch, agentshell_home: Path) -> None:
    FakeGateway.instances = []
    monkeypatch.setattr(cli_module, "ModelGateway", FakeGateway)

    result = CliRunner().invoke(
        cli_module.cli,
        ["chat", "--agent", "flight", "--model", "m1", "--timeout", "5", "--api-key", GOOD_KEY],
        input="Oslo to Lima?\nexit\n",
    )

    assert result.exit_code == 0, result.output
    assert "Flight Planner" in result.output
    assert "Fly via Madrid." in result.output
    gateway = FakeGateway.instances[0]
    assert gateway.api_key == GOOD_KEY
    assert gateway.timeout == 5
    assert gateway.prompts[0][1] == "m1"

    files = list((agentshell_home / "sessions").glob("flight_*.jsonl"))
    assert len(files) == 1
    records = [json.loads(line) for line in files[0].read_text(encoding="utf-8").splitlines()]
    assert records == [{"user": "Oslo to Lima?"}, {"model": "Fly via Madrid."}]


def test_chat_uses_environment_key(monkeypatch) -> None:
    FakeGateway.instances = []
    monkeypatch.setattr(cli_module, "ModelGateway", FakeGateway)
    monkeypatch.setenv("GEMINI_API_KEY", GOOD_KEY)

    result = CliRunner().invoke(cli_module.cli, ["chat"], input="quit\n")

    assert result.exit_code == 0, result.output
    assert FakeGateway.instances[0].api_key == GOOD_KEY
    assert FakeGateway.instances[0].prompts == []


def test_sessions_lists_files(agentshell_home: Path) -> None:
    runner = CliRunner()
    assert "No sessions found." in runner.invoke(cli_module.cli, ["sessions"]).output

    sessions = agentshell_home / "sessions"
    sessions.mkdir(parents=True)
    (sessions / "flight_20240101_000000.jsonl").write_text('{"user": "q"}\n', encoding="utf-8")
    (sessions / "specs_20240101_000000.jsonl").write_text('{"user": "q"}\n', encoding="utf-8")

    result = runner.invoke(cli_module.cli, ["sessions", "--agent", "flight"])
    assert "flight_20240101_000000.jsonl" in result.output
    assert "specs_" not in result.output


def test_chat_rejects_non_positive_timeout(monkeypatch, agentshell_home: Path) -> None:
    monkeypatch.setattr(cli_module, "ModelGateway", FakeGateway)
    runner = CliRunner()

    for value in ("0", "-5"):
        result = runner.invoke(cli_module.cli, ["chat", "--timeout", value, "--api-key", GOOD_KEY])
        assert result.exit_code == 2
        assert "must be positive" in result.output

    agentshell_home.mkdir(parents=True)
    (agentshell_home / "config.yaml").write_text("timeout: 0\n", encoding="utf-8")
    result = runner.invoke(cli_module.cli, ["chat", "--api-key", GOOD_KEY])
    assert result.exit_code == 1
    assert "Invalid timeout" in result.output
    assert not (agentshell_home / "sessions").exists()


def test_malformed_key_without_terminal_fails_without_reading_input(monkeypatch) -> None:
    FakeGateway.instances = []
    monkeypatch.setattr(cli_module, "ModelGateway", FakeGateway)
    monkeypatch.setenv("GEMINI_API_KEY", "short-key")

    result = CliRunner().invoke(cli_module.cli, ["chat"], input="y\nhello\n")

    assert result.exit_code == 1
    assert "shorter than 20" in result.output
    assert "Use it anyway" not in result.output
    assert FakeGateway.instances == []

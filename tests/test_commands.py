import pytest

from agentshell.commands import CommandKind, parse_command


@pytest.mark.parametrize(
    "line, kind",
    [
        ("help", CommandKind.HELP),
        ("?", CommandKind.HELP),
        ("  HELP  ", CommandKind.HELP),
        ("history", CommandKind.HISTORY),
        ("Clear", CommandKind.CLEAR),
        ("key", CommandKind.KEY_INFO),
        ("key-info", CommandKind.KEY_INFO),
        ("exit", CommandKind.EXIT),
        ("QUIT", CommandKind.EXIT),
        ("", CommandKind.EMPTY),
        ("   \t ", CommandKind.EMPTY),
    ],
)
def test_system_commands(line: str, kind: CommandKind) -> None:
    command = parse_command(line)
    assert command.kind is kind
    assert command.text == ""


def test_everything_else_is_a_query() -> None:
    command = parse_command("  clear skies over Lima?  ")
    assert command.kind is CommandKind.QUERY
    assert command.text == "clear skies over Lima?"
    assert not command.is_system


def test_is_system() -> None:
    assert parse_command("history").is_system
    assert not parse_command("").is_system

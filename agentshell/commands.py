"""Classification of a line of user input.

:func:`parse_command` is the single place that decides whether input
is a local system command or a query for the model.  Matching is
case-insensitive and ignores surrounding whitespace.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict


class CommandKind(enum.Enum):
    EMPTY = "empty"
    HELP = "help"
    HISTORY = "history"
    CLEAR = "clear"
    KEY_INFO = "key-info"
    EXIT = "exit"
    QUERY = "query"


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    text: str = ""

    @property
    def is_system(self) -> bool:
        return self.kind not in (CommandKind.EMPTY, CommandKind.QUERY)


SYSTEM_COMMANDS: Dict[str, CommandKind] = {
    "?": CommandKind.HELP,
    "help": CommandKind.HELP,
    "history": CommandKind.HISTORY,
    "clear": CommandKind.CLEAR,
    "key": CommandKind.KEY_INFO,
    "key-info": CommandKind.KEY_INFO,
    "keyinfo": CommandKind.KEY_INFO,
    "exit": CommandKind.EXIT,
    "quit": CommandKind.EXIT,
}

COMMAND_HELP = """\
Commands:
  help, ?      Show this help
  history      Show the conversation so far
  clear        Delete this session's history
  key          Show which API key is in use (masked)
  exit, quit   Leave the shell
Anything else is sent to the model."""


def parse_command(line: str) -> Command:
    """Classify one line of input.

    Queries keep the user's original text (only surrounding whitespace
    is removed) so it reaches the model unchanged.
    """
    text = (line or "").strip()
    if not text:
        return Command(CommandKind.EMPTY)
    kind = SYSTEM_COMMANDS.get(text.lower())
    if kind is not None:
        return Command(kind)
    return Command(CommandKind.QUERY, text)

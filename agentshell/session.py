"""The interactive session loop.

:class:`SessionLoop` reads one line at a time, classifies it with
:func:`agentshell.commands.parse_command` and either runs a local
system command or sends a query to the model.  It is generic: the
agent's identity, instructions and colours come from an
:class:`~agentshell.config.AgentConfig`.

The loop owns a single *selection* slot.  When a response contains a
table and the user picks rows from it, the picked rows are serialised
into the slot and embedded in the very next prompt sent to the model,
after which the slot is emptied.  System commands never read or
modify the slot.  The slot is emptied as soon as the prompt is built,
so a failed call does not resend the selection; the user can pick
again from a new response.

A failed model call is reported and the turn is not written to
history.  Nothing short of ``exit``/``quit`` (or end of input) ends
the loop.
"""

from __future__ import annotations

import enum
import json
import logging
from typing import Any, Callable, List, Optional

import click

from .commands import COMMAND_HELP, Command, CommandKind, parse_command
from .config import AgentConfig
from .credentials import Credential
from .decoder import decode, strip_json_block
from .gateway import BackendResult, BackendStatus, ModelGateway, build_prompt
from .history import HistoryStore
from .messages import Messenger
from .picker import TablePicker

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    IDLE = "idle"
    AWAITING_BACKEND = "awaiting_backend"
    RENDERING = "rendering"
    TERMINATED = "terminated"


FAILURE_MESSAGES = {
    BackendStatus.RATE_LIMITED: (
        "Rate limit or quota exceeded (HTTP 429). Wait a minute before asking again, "
        "or switch to a lighter model with --model. Check your quota at "
        "https://aistudio.google.com."
    ),
    BackendStatus.UNAUTHORIZED: (
        "The API key was rejected (HTTP 401). Type 'key' to see which key is in use, "
        "then restart with a valid --api-key or GEMINI_API_KEY."
    ),
    BackendStatus.FORBIDDEN: (
        "Access denied (HTTP 403). The key is valid but not allowed to use this model; "
        "check that the Generative Language API is enabled for the key's project."
    ),
}


class SessionLoop:
    """Read-classify-dispatch-render loop for one agent session.

    :param agent: Agent settings.
    :param gateway: Sends prompts to the model.
    :param history: Store for this session's turns.
    :param model_id: Model identifier passed to the gateway.
    :param credential: Resolved API key, used by the ``key`` command.
    :param picker: Called with decoded records; returns the picked subset.
    :param read_line: Called with the prompt text; returns one line of input.
    :param messenger: Output channel.
    """

    def __init__(
        self,
        agent: AgentConfig,
        gateway: ModelGateway,
        history: HistoryStore,
        model_id: str,
        credential: Optional[Credential] = None,
        picker: Optional[Callable[[List[Any]], List[Any]]] = None,
        read_line: Optional[Callable[[str], str]] = None,
        messenger: Optional[Messenger] = None,
    ) -> None:
        self.agent = agent
        self.gateway = gateway
        self.history = history
        self.model_id = model_id
        self.credential = credential
        self.picker = picker or TablePicker()
        self._read_line = read_line or (
            lambda text: click.prompt(text, default="", show_default=False, prompt_suffix=" ")
        )
        self.messenger = messenger or Messenger(agent.colors)
        self.selection: Optional[str] = None
        self.state = SessionState.IDLE

    @property
    def prompt_text(self) -> str:
        label = f"{self.agent.emoji} {self.agent.display_name}".strip()
        return click.style(f"{label} ›", fg=self.agent.color("prompt"), bold=True)

    def run(self) -> int:
        """Run until an exit command or end of input.  Returns the exit code."""
        self._banner()
        while self.state is not SessionState.TERMINATED:
            try:
                line = self._read_line(self.prompt_text)
            except (EOFError, KeyboardInterrupt, click.Abort):
                self.messenger.plain()
                self.state = SessionState.TERMINATED
                break
            self.handle_line(line)
        self.messenger.info("Goodbye.")
        return 0

    def handle_line(self, line: str) -> None:
        """Process one line of input."""
        command = parse_command(line)
        if command.kind is CommandKind.EMPTY:
            return
        if command.is_system:
            self._run_system(command)
            return
        self._query(command.text)

    def _banner(self) -> None:
        agent = self.agent
        self.messenger.banner(f"{agent.emoji} {agent.display_name}".strip())
        self.messenger.info(f"Model: {self.model_id}")
        self.messenger.info(f"Session: {self.history.path}")
        self.messenger.info("Type 'help' for commands, 'exit' to leave.")

    def _run_system(self, command: Command) -> None:
        kind = command.kind
        if kind is CommandKind.EXIT:
            self.state = SessionState.TERMINATED
        elif kind is CommandKind.HELP:
            self._show_help()
        elif kind is CommandKind.HISTORY:
            self._show_history()
        elif kind is CommandKind.CLEAR:
            self.history.clear()
            self.messenger.success("History cleared.")
        elif kind is CommandKind.KEY_INFO:
            self._show_key_info()

    def _show_help(self) -> None:
        if self.agent.help_text:
            self.messenger.info(self.agent.help_text)
            self.messenger.plain()
        self.messenger.plain(COMMAND_HELP)

    def _show_history(self) -> None:
        turns = self.history.turns()
        if not turns:
            self.messenger.info("No history for this session yet.")
            return
        for number, (user_text, model_text) in enumerate(turns, start=1):
            self.messenger.info(f"[{number}] You: {user_text}")
            self.messenger.model(model_text or "(no reply recorded)")
            self.messenger.plain()

    def _show_key_info(self) -> None:
        if self.credential is None:
            self.messenger.warning("No API key information available.")
            return
        for line in self.credential.describe():
            self.messenger.info(line)

    def _query(self, text: str) -> None:
        self.state = SessionState.AWAITING_BACKEND
        prompt = build_prompt(
            self.history.read_raw(),
            self.selection,
            text,
            preamble=self.agent.render_instructions(),
        )
        self.selection = None
        result = self.gateway.send(prompt, self.model_id)
        if not result.ok:
            self._report_failure(result)
            self.state = SessionState.IDLE
            return
        self.state = SessionState.RENDERING
        self._render(text, result.text)
        self.state = SessionState.IDLE

    def _report_failure(self, result: BackendResult) -> None:
        logger.debug("Backend failure detail: %s", result.detail)
        message = FAILURE_MESSAGES.get(result.status)
        if message is None:
            message = f"The model backend failed: {result.detail or 'unknown error'}. Try again."
        self.messenger.error(message)

    def _render(self, user_text: str, model_text: str) -> None:
        records = decode(model_text)
        if records is None:
            self.messenger.model(model_text)
        else:
            prose = strip_json_block(model_text)
            if prose:
                self.messenger.model(prose)
            picked = self.picker(records)
            if picked:
                self.selection = json.dumps(picked, ensure_ascii=False)
                self.messenger.success(
                    f"{len(picked)} row(s) selected; they will be sent with your next question."
                )
        self.history.append(user_text, model_text)

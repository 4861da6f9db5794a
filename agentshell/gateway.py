"""Model gateway for agentshell.

The model is reached through an external command line tool (the
``gemini`` CLI by default) invoked once per turn as::

    <tool> -m <model> -p <prompt>

The tool is stateless, so every prompt carries the whole session
transcript.  :func:`build_prompt` assembles it from fixed section
markers and :class:`ModelGateway` runs the tool, classifies failures
from its combined output and exit status, and strips known noise
lines from successful output.

The API key is held by the gateway and only placed into the child
process environment (as ``GEMINI_API_KEY``) at the moment of
invocation; the parent environment is never modified.
"""

from __future__ import annotations

import enum
import logging
import os
import re
import subprocess
from dataclasses import dataclass
from shutil import which
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

API_KEY_ENV = "GEMINI_API_KEY"
DEFAULT_TOOL = "gemini"
DEFAULT_TIMEOUT = 60.0

HISTORY_MARKER = "### HISTORY"
SELECTION_MARKER = "### SELECTION"
REQUEST_MARKER = "### NEW REQUEST"


def _status_forms(code: int, reason: str) -> List[str]:
    return [
        rf"\b(?:status|code)[\"']?\s*[:=]?\s*{code}\b",
        rf"\b{code}\s+{reason}",
    ]


# Backend error signatures, trusted whatever the exit status.  Checked in
# order; the first matching category wins.
RATE_LIMIT_SIGNATURES = [r"RESOURCE_EXHAUSTED"] + _status_forms(429, "Too Many Requests")
UNAUTHORIZED_SIGNATURES = [r"UNAUTHENTICATED", r"API key not valid"] + _status_forms(401, "Unauthorized")
FORBIDDEN_SIGNATURES = [r"PERMISSION_DENIED"] + _status_forms(403, "Forbidden")

# Looser markers, only trusted when the tool exited non-zero.  Answers
# routinely mention quotas or numbers such as 401.
RATE_LIMIT_MARKERS = [r"\b429\b", r"quota", r"rate[ _-]?limit"]
UNAUTHORIZED_MARKERS = [r"\b401\b", r"invalid api[ _-]?key"]
FORBIDDEN_MARKERS = [r"\b403\b", r"permission denied"]

# Lines the CLI prints around the actual answer.
NOISE_PATTERNS = [
    r"^Loaded cached credentials\.?$",
    r"^Data collection is disabled\.?$",
    r"^\[dotenv.*\].*$",
]


class BackendStatus(enum.Enum):
    OK = "ok"
    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    UNKNOWN_FAILURE = "unknown_failure"


@dataclass(frozen=True)
class BackendResult:
    """Outcome of one model invocation.

    ``text`` is set for :attr:`BackendStatus.OK`; ``detail`` carries the
    raw diagnostic for failures and is meant for logging only.
    """

    status: BackendStatus
    text: str = ""
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status is BackendStatus.OK

    @classmethod
    def success(cls, text: str) -> "BackendResult":
        return cls(BackendStatus.OK, text=text)

    @classmethod
    def failure(cls, status: BackendStatus, detail: str = "") -> "BackendResult":
        return cls(status, detail=detail)


def build_prompt(history: str, selection: Optional[str], request: str, preamble: str = "") -> str:
    """Assemble the outbound prompt.

    :param history: Raw stored history lines.
    :param selection: Serialised selection context; the ``### SELECTION``
      section is omitted when this is empty.
    :param request: The user's new text, sent verbatim.
    :param preamble: Optional agent instructions placed before the
      history section.
    """
    parts: List[str] = []
    if preamble:
        parts.append(preamble)
    parts.append(f"{HISTORY_MARKER}\n{history}")
    if selection:
        parts.append(f"{SELECTION_MARKER}\n{selection}")
    parts.append(f"{REQUEST_MARKER}\n{request}")
    return "\n\n".join(parts)


def _matches(patterns: List[str], text: str) -> bool:
    return any(re.search(p, text, flags=re.IGNORECASE) for p in patterns)


def classify_output(output: str, returncode: int) -> Optional[BackendStatus]:
    """Return the failure category for the tool output, or ``None`` if it succeeded."""
    checks = [
        (RATE_LIMIT_SIGNATURES, RATE_LIMIT_MARKERS, BackendStatus.RATE_LIMITED),
        (UNAUTHORIZED_SIGNATURES, UNAUTHORIZED_MARKERS, BackendStatus.UNAUTHORIZED),
        (FORBIDDEN_SIGNATURES, FORBIDDEN_MARKERS, BackendStatus.FORBIDDEN),
    ]
    failed = returncode != 0
    for signatures, markers, status in checks:
        if _matches(signatures, output) or (failed and _matches(markers, output)):
            return status
    if failed:
        return BackendStatus.UNKNOWN_FAILURE
    return None


def sanitize_output(output: str) -> str:
    """Drop known noise lines and trim surrounding whitespace."""
    lines = [
        line for line in output.splitlines()
        if not _matches(NOISE_PATTERNS, line.strip())
    ]
    return "\n".join(lines).strip()


def _failure_detail(output: str, returncode: int) -> str:
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    if lines:
        return lines[-1]
    return f"exit status {returncode}"


Runner = Callable[..., "subprocess.CompletedProcess[str]"]


class ModelGateway:
    """Invoke the external model tool and classify what comes back.

    :param api_key: Credential passed to the child process.
    :param tool: Name or path of the backend executable.
    :param timeout: Seconds to wait before giving up on a call.
    :param runner: Replacement for :func:`subprocess.run`, used in tests.
    """

    def __init__(
        self,
        api_key: str,
        tool: str = DEFAULT_TOOL,
        timeout: float = DEFAULT_TIMEOUT,
        runner: Optional[Runner] = None,
    ) -> None:
        self.api_key = api_key
        self.tool = tool
        self.timeout = timeout
        self._runner = runner

    def _child_env(self) -> dict:
        env = dict(os.environ)
        env[API_KEY_ENV] = self.api_key
        return env

    def _command(self, prompt_text: str, model_id: str) -> List[str]:
        return [self.tool, "-m", model_id, "-p", prompt_text]

    def send(self, prompt_text: str, model_id: str) -> BackendResult:
        """Send ``prompt_text`` to ``model_id`` and return the classified result.

        No retries are attempted; failures are returned, never raised.
        """
        runner = self._runner
        if runner is None:
            if which(self.tool) is None:
                return BackendResult.failure(
                    BackendStatus.UNKNOWN_FAILURE,
                    f"'{self.tool}' executable not found on PATH",
                )
            runner = subprocess.run
        logger.debug("Invoking %s with model %s (%d prompt chars)", self.tool, model_id, len(prompt_text))
        try:
            proc = runner(
                self._command(prompt_text, model_id),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                env=self._child_env(),
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.info("Model call timed out after %s seconds", self.timeout)
            return BackendResult.failure(BackendStatus.UNKNOWN_FAILURE, "timeout")
        except OSError as exc:
            logger.info("Could not start %s: %s", self.tool, exc)
            return BackendResult.failure(BackendStatus.UNKNOWN_FAILURE, str(exc))

        output = proc.stdout or ""
        status = classify_output(output, proc.returncode)
        if status is not None:
            detail = _failure_detail(output, proc.returncode)
            logger.info("Model call failed (%s, exit %s): %s", status.value, proc.returncode, detail)
            return BackendResult.failure(status, detail)
        return BackendResult.success(sanitize_output(output))

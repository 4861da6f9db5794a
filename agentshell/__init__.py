"""Top-level package for agentshell.

This package implements ``agentshell``, an interactive shell for
holding a conversation with a large language model inside a
domain-scoped agent session (flight planning, specification search
and so on).  The model itself is reached through an external command
line tool such as ``gemini``; this package only orchestrates the
session around it.

The REPL state machine lives in :mod:`agentshell.session`.  Helper
modules handle per-agent configuration, history persistence, model
invocation, response decoding, command classification, credential
resolution and interactive row selection.

When installed via pip the shell is available as the ``agentshell``
console script.  For local development run ``python -m agentshell``.
"""

__version__ = "0.1.0"

__all__ = [
    "cli",
    "commands",
    "config",
    "credentials",
    "decoder",
    "gateway",
    "history",
    "messages",
    "picker",
    "session",
]

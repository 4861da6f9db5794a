"""API key resolution and validation.

The backend tool needs an API key.  :func:`resolve_api_key` looks for
one in this order and stops at the first hit:

1. an explicit ``--api-key`` value,
2. the ``--key`` alias,
3. the ``GEMINI_API_KEY`` environment variable,
4. an interactive, hidden prompt.

Keys are format checked with :func:`validate_api_key`.  A key that
fails the check is not rejected outright; the user is asked whether
to use it anyway, since providers occasionally change key formats.
The resolved key is returned as a :class:`Credential` and handed to
the gateway explicitly rather than stored in the process environment.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, Tuple

import click

from .gateway import API_KEY_ENV

MIN_KEY_LENGTH = 20
KEY_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class CredentialError(click.ClickException):
    """Raised when no usable API key could be resolved."""


@dataclass(frozen=True)
class Credential:
    value: str
    source: str

    def masked(self) -> str:
        return mask_key(self.value)

    def describe(self) -> List[str]:
        """Return diagnostic lines that never reveal the full key."""
        valid, reason = validate_api_key(self.value)
        return [
            f"Source: {self.source}",
            f"Key:    {self.masked()}",
            f"Length: {len(self.value)}",
            f"Format: {'ok' if valid else reason}",
        ]


def validate_api_key(key: str) -> Tuple[bool, str]:
    """Check that ``key`` looks like an API key.

    :returns: Tuple ``(is_valid, reason)``.  ``reason`` is empty when
      the key passes.
    """
    if not key or not key.strip():
        return False, "API key is empty"
    if len(key) < MIN_KEY_LENGTH:
        return False, f"API key is shorter than {MIN_KEY_LENGTH} characters"
    if not KEY_RE.match(key):
        return False, "API key may only contain letters, digits, '-' and '_'"
    return True, ""


def mask_key(key: str) -> str:
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}{'*' * (len(key) - 8)}{key[-4:]}"


def prompt_for_key() -> str:
    return click.prompt("Enter your Gemini API key", hide_input=True, default="", show_default=False)


def resolve_api_key(
    api_key: Optional[str] = None,
    key_alias: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    prompt: Optional[Callable[[], str]] = None,
    confirm: Optional[Callable[[str], bool]] = None,
) -> Credential:
    """Resolve the API key from the supported sources.

    :param prompt: Reads a key interactively; ``None`` disables the prompt.
    :param confirm: Asked whether to keep a key that fails validation.
      Defaults to :func:`click.confirm`.
    :raises CredentialError: When no key is available or the user
      declines a malformed one.
    """
    env = os.environ if env is None else env
    confirm = confirm or (lambda message: click.confirm(message, default=False))

    candidates = [
        (api_key, "parameter"),
        (key_alias, "alias"),
        (env.get(API_KEY_ENV), "environment"),
    ]
    credential = None
    for value, source in candidates:
        if value and value.strip():
            credential = Credential(value.strip(), source)
            break
    if credential is None and prompt is not None:
        entered = (prompt() or "").strip()
        if entered:
            credential = Credential(entered, "prompt")
    if credential is None:
        raise CredentialError(
            f"No API key found. Pass --api-key, set {API_KEY_ENV}, "
            "or create a key at https://aistudio.google.com/apikey."
        )

    valid, reason = validate_api_key(credential.value)
    if not valid and not confirm(f"{reason}. Use it anyway?"):
        raise CredentialError(f"{reason}. Provide a valid key with --api-key or {API_KEY_ENV}.")
    return credential

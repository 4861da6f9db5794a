"""Session history persistence.

Each session writes its conversation to its own JSON-lines file.
Every line is an independent JSON object with exactly one key,
``user`` or ``model``; a turn is stored as two consecutive lines,
user first.  The format is deliberately line oriented so that a
crash between the two writes, or a truncated final line, leaves all
earlier records readable.

Persistence problems never end a session: write and read failures
are logged as warnings and the conversation carries on unpersisted.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Tuple

logger = logging.getLogger(__name__)

HISTORY_FILE_SUFFIX = ".jsonl"

USER_KEY = "user"
MODEL_KEY = "model"


class HistoryStore:
    """Append-only record of user/model turns backed by one file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    @classmethod
    def for_session(cls, directory: Path, session_name: str) -> "HistoryStore":
        """Create the store for a new session, creating ``directory`` if needed.

        The session file is created empty so that no other session can
        claim the same name.  If ``session_name`` is taken (two sessions
        started within the same second) a ``_2``, ``_3``... suffix is
        added.

        :raises OSError: If the directory or file cannot be created.
          Callers treat this as a fatal startup error.
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        attempt = 1
        while True:
            name = session_name if attempt == 1 else f"{session_name}_{attempt}"
            path = directory / f"{name}{HISTORY_FILE_SUFFIX}"
            try:
                with path.open("x", encoding="utf-8"):
                    pass
            except FileExistsError:
                attempt += 1
                continue
            return cls(path)

    def append(self, user_text: str, model_text: str) -> bool:
        """Append one turn as two records.  Returns ``False`` on failure."""
        lines = [
            json.dumps({USER_KEY: user_text}, ensure_ascii=False),
            json.dumps({MODEL_KEY: model_text}, ensure_ascii=False),
        ]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                for line in lines:
                    f.write(line + "\n")
        except OSError as exc:
            logger.warning("Could not write history to %s: %s", self.path, exc)
            return False
        return True

    def _read_lines(self) -> List[str]:
        if not self.path.exists():
            return []
        try:
            with self.path.open("r", encoding="utf-8") as f:
                return [line.rstrip("\n") for line in f if line.strip()]
        except OSError as exc:
            logger.warning("Could not read history from %s: %s", self.path, exc)
            return []

    def read_all(self) -> List[Dict[str, str]]:
        """Return every stored record in write order.

        Lines that are not a JSON object with a ``user`` or ``model``
        key (for example a line cut short by a crash) are skipped.
        """
        records: List[Dict[str, str]] = []
        for number, line in enumerate(self._read_lines(), start=1):
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                logger.warning("Skipping unreadable history line %d in %s", number, self.path)
                continue
            if isinstance(record, dict) and (USER_KEY in record or MODEL_KEY in record):
                records.append(record)
            else:
                logger.warning("Skipping unexpected history record on line %d in %s", number, self.path)
        return records

    def read_raw(self) -> str:
        """Return the stored lines verbatim, joined by newlines."""
        return "\n".join(self._read_lines())

    def turns(self) -> List[Tuple[str, str]]:
        """Pair records into ``(user, model)`` turns.

        A trailing user record without a reply is returned with an
        empty model text.
        """
        pairs: List[Tuple[str, str]] = []
        pending = None
        for record in self.read_all():
            if USER_KEY in record:
                if pending is not None:
                    pairs.append((pending, ""))
                pending = record[USER_KEY]
            elif pending is not None:
                pairs.append((pending, record[MODEL_KEY]))
                pending = None
        if pending is not None:
            pairs.append((pending, ""))
        return pairs

    def clear(self) -> None:
        """Delete the history file.  A missing file is a no-op."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not delete history file %s: %s", self.path, exc)


def list_sessions(directory: Path, prefix: str = "") -> List[Path]:
    """Return stored session files, newest first."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    files = [
        p for p in directory.glob(f"{prefix}*{HISTORY_FILE_SUFFIX}") if p.is_file()
    ]
    return sorted(files, key=lambda p: (p.stat().st_mtime, p.name), reverse=True)

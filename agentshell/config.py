"""Agent definitions and user settings.

Two kinds of configuration are managed here:

* ``AgentConfig`` – static, per-agent settings such as the display
  name, emoji, session-file prefix, colour roles and the instruction
  template sent ahead of every prompt.  A handful of agents ship
  built in; users may define more in their settings file.
* The settings file ``config.yaml`` stored in the agentshell home
  directory (``~/.agentshell`` unless ``AGENTSHELL_HOME`` is set).  It
  records the default agent, model, backend tool, timeout and history
  location.  Missing or malformed files fall back to defaults.
"""

from __future__ import annotations

import datetime as _datetime
import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    "agent": "general",
    "model": "gemini-2.5-flash",
    "tool": "gemini",
    "timeout": 60,
    "history_dir": None,
    "agents": {},
}

DEFAULT_COLORS: Dict[str, str] = {
    "banner": "cyan",
    "prompt": "bright_blue",
    "model": "white",
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "info": "cyan",
}


@dataclass(frozen=True)
class AgentConfig:
    """Settings that distinguish one agent from another.

    The session loop is generic; everything domain specific (how the
    agent introduces itself, what it tells the model, where its
    sessions are stored) comes from an instance of this class.
    """

    name: str
    display_name: str
    emoji: str = ""
    session_prefix: str = "session"
    instructions: str = ""
    help_text: str = ""
    colors: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COLORS))

    def color(self, role: str) -> Optional[str]:
        return self.colors.get(role, DEFAULT_COLORS.get(role))

    def session_name(self, now: Optional[_datetime.datetime] = None) -> str:
        """Return a timestamp-based session name such as ``flight_20240501_093000``."""
        now = now or _datetime.datetime.now()
        return f"{self.session_prefix}_{now.strftime('%Y%m%d_%H%M%S')}"

    def render_instructions(self, today: Optional[_datetime.date] = None) -> str:
        """Fill the ``{agent}`` and ``{date}`` placeholders of the template."""
        if not self.instructions:
            return ""
        today = today or _datetime.date.today()
        return self.instructions.format(agent=self.display_name, date=today.isoformat()).strip()


_TABLE_HINT = (
    "When your answer contains a list of comparable items, include them as a "
    "JSON array of flat objects inside a single ```json fenced block so the "
    "user can pick rows. Keep any explanation outside the block."
)

BUILTIN_AGENTS: Dict[str, AgentConfig] = {
    "general": AgentConfig(
        name="general",
        display_name="General Assistant",
        emoji="🤖",
        session_prefix="general",
        instructions=(
            "You are {agent}, a concise command-line assistant. Today is {date}.\n"
            + _TABLE_HINT
        ),
        help_text="Ask anything. Tabular answers can be picked and reused in your next question.",
    ),
    "flight": AgentConfig(
        name="flight",
        display_name="Flight Planner",
        emoji="✈️",
        session_prefix="flight",
        instructions=(
            "You are {agent}, an assistant for planning flight routes and "
            "itineraries. Today is {date}.\n"
            "Describe routes with origin, destination, stops, approximate duration "
            "and notes. " + _TABLE_HINT
        ),
        help_text=(
            "Describe a trip, e.g. 'routes from Oslo to Lima next week'. Pick the "
            "routes you like and ask a follow-up such as 'compare these'."
        ),
        colors=dict(DEFAULT_COLORS, banner="bright_cyan", model="bright_white"),
    ),
    "specs": AgentConfig(
        name="specs",
        display_name="Specification Search",
        emoji="📑",
        session_prefix="specs",
        instructions=(
            "You are {agent}, an assistant that finds and summarises technical "
            "specifications and standards. Today is {date}.\n"
            "Cite the document identifier and section for every claim. " + _TABLE_HINT
        ),
        help_text=(
            "Search for a requirement, e.g. 'USB-C power delivery voltage levels'. "
            "Pick rows to drill into them in your next question."
        ),
        colors=dict(DEFAULT_COLORS, banner="magenta"),
    ),
}


def config_home() -> Path:
    """Return the agentshell home directory (``~/.agentshell`` by default)."""
    override = os.environ.get("AGENTSHELL_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".agentshell"


def config_file() -> Path:
    return config_home() / "config.yaml"


def load_config() -> Dict[str, Any]:
    """Load YAML settings merged over the defaults.

    A missing file is not an error.  An unreadable or malformed file is
    logged and the defaults are returned.
    """
    config = dict(DEFAULT_CONFIG)
    config["agents"] = {}
    cfg_path = config_file()
    if not cfg_path.exists():
        return config
    try:
        with cfg_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", cfg_path, exc)
        return config
    if isinstance(data, dict):
        config.update(data)
    else:
        logger.warning("Ignoring settings file %s: expected a mapping", cfg_path)
    if not isinstance(config.get("agents"), dict):
        config["agents"] = {}
    return config


def save_config(config: Dict[str, Any]) -> None:
    """Persist settings to disk."""
    cfg_path = config_file()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    with cfg_path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(config, f, sort_keys=False, allow_unicode=True)


def history_dir(config: Dict[str, Any]) -> Path:
    """Return the directory session files are written to."""
    configured = config.get("history_dir")
    if configured:
        return Path(configured).expanduser()
    return config_home() / "sessions"


_AGENT_FIELDS = ("display_name", "emoji", "session_prefix", "instructions", "help_text")


def _agent_from_mapping(name: str, data: Dict[str, Any]) -> AgentConfig:
    base = BUILTIN_AGENTS.get(name)
    colors = dict(base.colors if base else DEFAULT_COLORS)
    colors.update(data.get("colors") or {})
    if base is not None:
        known = {k: v for k, v in data.items() if k in _AGENT_FIELDS}
        return replace(base, colors=colors, **known)
    return AgentConfig(
        name=name,
        display_name=data.get("display_name", name.title()),
        emoji=data.get("emoji", ""),
        session_prefix=data.get("session_prefix", name),
        instructions=data.get("instructions", ""),
        help_text=data.get("help_text", ""),
        colors=colors,
    )


def available_agents(config: Optional[Dict[str, Any]] = None) -> Dict[str, AgentConfig]:
    """Return built-in agents with user-defined ones merged on top."""
    config = config if config is not None else load_config()
    agents = dict(BUILTIN_AGENTS)
    for name, data in (config.get("agents") or {}).items():
        if not isinstance(data, dict):
            logger.warning("Skipping agent %r: definition must be a mapping", name)
            continue
        key = str(name).lower()
        agents[key] = _agent_from_mapping(key, data)
    return agents


def get_agent(name: str, config: Optional[Dict[str, Any]] = None) -> AgentConfig:
    """Look up an agent by name.

    :raises ValueError: If no built-in or configured agent has that name.
    """
    agents = available_agents(config)
    key = name.lower().strip()
    if key not in agents:
        raise ValueError(f"Unknown agent: {name} (available: {', '.join(sorted(agents))})")
    return agents[key]

"""Command line interface for agentshell.

This module defines the ``agentshell`` command using the ``click``
library.  It exposes several subcommands:

``agentshell chat``
    Start an interactive session with an agent.  The API key is taken
    from ``--api-key``, ``--key``, ``GEMINI_API_KEY`` or an
    interactive prompt, in that order.

``agentshell agents``
    List the built-in and user-defined agents.

``agentshell configure``
    Set the default agent, model, backend tool and timeout.  Writes
    ``~/.agentshell/config.yaml``.

``agentshell sessions``
    List stored session history files, newest first.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Dict, Optional

import click

from .config import DEFAULT_CONFIG, available_agents, config_file, get_agent, history_dir, load_config, save_config
from .credentials import prompt_for_key, resolve_api_key
from .gateway import ModelGateway
from .history import HistoryStore, list_sessions
from .session import SessionLoop

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def _timeout(config: Dict[str, Any], override: Optional[float]) -> float:
    if override is not None:
        if override <= 0:
            raise click.BadParameter("must be positive", param_hint="--timeout")
        return override
    try:
        value = float(config.get("timeout"))
    except (TypeError, ValueError):
        value = 0.0
    if value <= 0:
        raise click.ClickException(
            f"Invalid timeout {config.get('timeout')!r} in {config_file()}; expected a positive number of seconds."
        )
    return value


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
def cli() -> None:
    """agentshell – chat with a language model inside a domain-scoped agent."""
    pass


@cli.command()
@click.option("--agent", "agent_name", default=None, help="Agent to start (see 'agentshell agents').")
@click.option("--model", default=None, help="Model identifier passed to the backend tool.")
@click.option("--tool", default=None, help="Backend executable (default: gemini).")
@click.option("--timeout", type=float, default=None, help="Seconds to wait for each model call.")
@click.option("--api-key", default=None, help="API key for the backend.")
@click.option("--key", "key_alias", default=None, help="Alias for --api-key.")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def chat(
    ctx: click.Context,
    agent_name: Optional[str],
    model: Optional[str],
    tool: Optional[str],
    timeout: Optional[float],
    api_key: Optional[str],
    key_alias: Optional[str],
    verbose: bool,
) -> None:
    """Start an interactive session."""
    _configure_logging(verbose)
    config = load_config()
    try:
        agent = get_agent(agent_name or config.get("agent") or DEFAULT_CONFIG["agent"], config)
    except ValueError as exc:
        raise click.UsageError(str(exc))
    timeout_seconds = _timeout(config, timeout)

    interactive = click.get_text_stream("stdin").isatty()
    if interactive:
        credential = resolve_api_key(api_key, key_alias, prompt=prompt_for_key)
    else:
        # Piped input holds queries, not answers to a key prompt.
        credential = resolve_api_key(api_key, key_alias, confirm=lambda message: False)

    directory = history_dir(config)
    try:
        history = HistoryStore.for_session(directory, agent.session_name())
    except OSError as exc:
        raise click.ClickException(
            f"Cannot create history directory {directory}: {exc}. "
            f"Set 'history_dir' in {config_file()} to a writable location."
        )

    gateway = ModelGateway(
        credential.value,
        tool=tool or config.get("tool") or DEFAULT_CONFIG["tool"],
        timeout=timeout_seconds,
    )
    loop = SessionLoop(
        agent,
        gateway,
        history,
        model_id=model or config.get("model") or DEFAULT_CONFIG["model"],
        credential=credential,
    )
    ctx.exit(loop.run())


@cli.command(name="agents")
def list_agents() -> None:
    """List available agents."""
    config = load_config()
    default = str(config.get("agent", "")).lower()
    for name, agent in sorted(available_agents(config).items()):
        marker = "*" if name == default else " "
        click.echo(f"{marker} {name:<12} {agent.emoji} {agent.display_name}".rstrip())


@cli.command()
@click.option("--agent", "agent_name", default=None, help="Default agent.")
@click.option("--model", default=None, help="Default model identifier.")
@click.option("--tool", default=None, help="Backend executable.")
@click.option("--timeout", type=float, default=None, help="Seconds to wait for each model call.")
def configure(
    agent_name: Optional[str], model: Optional[str], tool: Optional[str], timeout: Optional[float]
) -> None:
    """Set default agent, model, backend tool and timeout."""
    config = load_config()
    if agent_name is not None:
        try:
            config["agent"] = get_agent(agent_name, config).name
        except ValueError as exc:
            raise click.UsageError(str(exc))
    if model is not None:
        config["model"] = model
    if tool is not None:
        config["tool"] = tool
    if timeout is not None:
        if timeout <= 0:
            raise click.BadParameter("must be positive", param_hint="--timeout")
        config["timeout"] = timeout
    save_config(config)
    click.echo(
        f"Configuration updated. Agent={config['agent']}, Model={config['model']}, "
        f"Tool={config['tool']}, Timeout={config['timeout']}"
    )


@cli.command(name="sessions")
@click.option("--agent", "agent_name", default=None, help="Only list sessions of this agent.")
def sessions_cmd(agent_name: Optional[str]) -> None:
    """List stored session history files."""
    config = load_config()
    prefix = ""
    if agent_name:
        try:
            prefix = get_agent(agent_name, config).session_prefix + "_"
        except ValueError as exc:
            raise click.UsageError(str(exc))
    files = list_sessions(history_dir(config), prefix)
    if not files:
        click.echo("No sessions found.")
        return
    for path in files:
        click.echo(str(path))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()

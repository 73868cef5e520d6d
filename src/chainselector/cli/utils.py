"""Helpers shared by CLI commands."""

import contextlib
import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import click

from chainselector.exceptions import ConfigurationError, format_error_for_display
from chainselector.model_manager import ModelManagerService
from chainselector.models import AppConfig, ChainState
from chainselector.osc import OscClient

logger = logging.getLogger(__name__)


@dataclass
class CliContext:
    """Options from the top-level group, passed to subcommands via ctx.obj."""

    config_path: Path
    log_path: Optional[Path] = None


def load_config_service(path: Path) -> ModelManagerService[AppConfig]:
    """
    Load (or create) the config and wrap it in a manager service.

    An invalid config file is reported and exits with status 1.
    """
    try:
        config = AppConfig.load_or_default(path)
    except ConfigurationError as e:
        logger.error(f"Invalid config file {path}: {e}")
        echo_error(e)
        raise SystemExit(1)
    return ModelManagerService[AppConfig](AppConfig, config, default_path=path)


def parse_value(raw: str) -> Any:
    """Interpret a command line value as JSON when possible, else as a string."""
    if raw.lower() in ("none", "null"):
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def echo_error(error: Exception, log_path: Optional[Path] = None) -> None:
    """Print a short error banner with recovery hint, no traceback."""
    user_message, recovery_hint = format_error_for_display(error)

    click.echo("\n" + "=" * 70, err=True)
    click.echo(f"ERROR: {user_message}", err=True)
    click.echo("=" * 70, err=True)

    if recovery_hint:
        click.echo(f"\n{recovery_hint}", err=True)

    if log_path:
        click.echo(f"\nFor details, check the log file: {log_path}", err=True)


def format_chain_state(state: ChainState) -> str:
    """Render a chain list, one line per chain, active chain marked."""
    if state.rack is None:
        return "No rack selected."

    lines = [f"{state.rack.label()} (track {state.rack.track_id}, device {state.rack.device_id})"]
    if not state.chains:
        lines.append("  No chains.")
    for chain in state.chains:
        marker = ">" if chain.is_active else " "
        lines.append(f"  {marker} [{chain.index}] {chain.name}")
    return "\n".join(lines)


@contextlib.asynccontextmanager
async def connected_client(config: AppConfig, timeout: float = 5.0) -> AsyncIterator[OscClient]:
    """
    Open an OSC client from config and wait for the peer to answer.

    Raises:
        OscTimeoutError: If AbletonOSC does not answer within timeout
    """
    client = OscClient(
        config.osc_send_host,
        config.osc_send_port,
        config.osc_receive_port,
        request_timeout=timeout,
    )
    await client.connect()
    try:
        await client.wait_connected(timeout)
        yield client
    finally:
        client.disconnect()


"""chainselector command group and logging setup."""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

import click

from chainselector import __version__
from chainselector.models import default_config_dir, default_config_path

from .commands import chains, config_group, discover, midi_group, run
from .utils import CliContext

logger = logging.getLogger(__name__)


_VERBOSITY_LEVELS = {0: logging.WARNING, 1: logging.INFO}

_FILE_FORMAT = logging.Formatter("%(asctime)s %(levelname)-7s [%(name)s] %(message)s", datefmt="%H:%M:%S")
_CONSOLE_FORMAT = logging.Formatter("%(levelname)s %(name)s: %(message)s")


def resolve_log_path(debug: bool, log_file: Optional[Path]) -> Path:
    """Log file used for the given flags."""
    if log_file:
        return log_file
    if debug:
        return Path.cwd() / "chainselector-debug.log"
    return default_config_dir() / "logs" / "chainselector.log"


def setup_logging(verbose: int, debug: bool, log_file: Optional[Path], log_level: str) -> Path:
    """
    Send log records to a rotating file and to stderr.

    The level comes from -v/--debug, unless --log-file is given, in which
    case --log-level decides. Returns the log file path.
    """
    if log_file:
        level = getattr(logging, log_level.upper())
    elif debug:
        level = logging.DEBUG
    else:
        level = _VERBOSITY_LEVELS.get(verbose, logging.DEBUG)

    log_path = resolve_log_path(debug, log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # 5 x 10MB
    file_handler = logging.handlers.RotatingFileHandler(log_path, maxBytes=10_000_000, backupCount=5)
    file_handler.setFormatter(_FILE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(_CONSOLE_FORMAT)

    logging.basicConfig(level=level, handlers=[file_handler, console_handler], force=True)

    logger.info(f"Logging at {logging.getLevelName(level)} to {log_path}")
    return log_path


@click.group(invoke_without_command=True)
@click.pass_context
@click.version_option(version=__version__, prog_name="chainselector")
@click.option(
    '--config',
    'config_path',
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help='Config file (default: ~/.chainselector/config.json)'
)
@click.option(
    '-v', '--verbose',
    count=True,
    help='Increase verbosity (-v: INFO, -vv: DEBUG)'
)
@click.option(
    '--debug',
    is_flag=True,
    help='Enable debug mode (DEBUG level, logs to ./chainselector-debug.log)'
)
@click.option(
    '--log-file',
    type=click.Path(path_type=Path),
    default=None,
    help='Custom log file path'
)
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
    default='INFO',
    help='Log level for file logging (default: INFO)'
)
def cli(
    ctx,
    config_path: Optional[Path],
    verbose: int,
    debug: bool,
    log_file: Optional[Path],
    log_level: str
):
    """
    Chain Selector - switch Ableton Live rack chains over OSC and MIDI.

    Talks to Ableton Live through the AbletonOSC control surface. Pick a
    rack, then step through its chains with two learned MIDI pads.

    \b
    Examples:
      # Run the controller (default command)
      chainselector

      # Find racks in the Live set
      chainselector discover

      # Show and select chains of a rack
      chainselector chains --track 0 --device 1 --select 2

      # Learn the "next chain" pad
      chainselector midi learn next

      # Enable debug logging
      chainselector --debug
    """
    log_path = setup_logging(verbose, debug, log_file, log_level)
    ctx.obj = CliContext(config_path=config_path or default_config_path(), log_path=log_path)

    # Run the controller when no subcommand is given
    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


# Register commands
cli.add_command(run)
cli.add_command(discover)
cli.add_command(chains)
cli.add_command(midi_group)
cli.add_command(config_group)

if __name__ == "__main__":
    cli()

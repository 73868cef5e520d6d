"""CLI commands for chainselector."""

from .config import config_group
from .racks import chains, discover
from .midi import midi_group
from .run import run

__all__ = ["chains", "config_group", "discover", "midi_group", "run"]

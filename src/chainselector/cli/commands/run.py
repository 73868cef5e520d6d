"""Run command - headless chain selector controller."""

import asyncio
import logging
from typing import Optional

import click

from chainselector.models import ChainState, ConnectionStatus, LearnTarget, MidiPadConfig
from chainselector.protocols import LearnEvent

from ..utils import CliContext, echo_error, format_chain_state, load_config_service

logger = logging.getLogger(__name__)


class ConsoleReporter:
    """Prints connection, chain and learn events to stdout."""

    def on_connection_status_changed(self, status: ConnectionStatus) -> None:
        click.echo(f"Ableton: {status.value}")

    def on_chain_state_changed(self, state: ChainState) -> None:
        click.echo(format_chain_state(state))

    def on_learn_event(
        self,
        event: LearnEvent,
        target: Optional[LearnTarget] = None,
        config: Optional[MidiPadConfig] = None,
    ) -> None:
        if event == LearnEvent.COMPLETE and target is not None and config is not None:
            note = config.prev_note if target == LearnTarget.PREV else config.next_note
            click.echo(f"Learned {target.value} pad: note {note}")


class MidiStatusReporter:
    """Prints MIDI port status changes."""

    def __init__(self, orchestrator):
        self._orchestrator = orchestrator

    def on_connection_status_changed(self, status: ConnectionStatus) -> None:
        name = self._orchestrator.midi.device_name or "no device"
        click.echo(f"MIDI ({name}): {status.value}")


@click.command()
@click.pass_obj
def run(obj: CliContext):
    """
    Run the chain selector until Ctrl+C.

    Connects to AbletonOSC, restores the saved rack and chain, and listens
    to the saved MIDI device for the learned previous/next pads.

    \b
    Examples:
      chainselector run
      chainselector -v run
    """
    from chainselector.orchestration import Orchestrator

    logger.info("Starting chain selector")

    try:
        config_service = load_config_service(obj.config_path)
        orchestrator = Orchestrator(config_service)

        reporter = ConsoleReporter()
        orchestrator.register_osc_status_observer(reporter)
        orchestrator.register_chain_observer(reporter)
        orchestrator.register_learn_observer(reporter)
        orchestrator.register_midi_status_observer(MidiStatusReporter(orchestrator))

        config = config_service.get_model()
        click.echo(
            f"Connecting to AbletonOSC at {config.osc_send_host}:{config.osc_send_port} "
            f"(listening on {config.osc_receive_port}). Press Ctrl+C to stop."
        )
        asyncio.run(orchestrator.run())

    except KeyboardInterrupt:
        # Clean exit on Ctrl+C
        logger.info("Chain selector interrupted by user")
        click.echo("\nShutting down...", err=True)
    except click.Abort:
        raise
    except Exception as e:
        logger.exception("Error running chain selector")
        echo_error(e, obj.log_path)
        raise SystemExit(1)

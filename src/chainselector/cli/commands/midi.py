"""MIDI command implementations."""

import asyncio
import logging
from datetime import datetime
from typing import Optional

import click

from chainselector.midi import MidiChainNavigator, MidiInputService
from chainselector.models import LearnTarget, MidiMessage, MidiPadConfig
from chainselector.protocols import LearnEvent

from ..utils import CliContext, load_config_service

logger = logging.getLogger(__name__)


def _describe_pad(note: Optional[int], channel: int) -> str:
    if note is None:
        return "not assigned"
    return f"note {note}, channel {channel}"


@click.group(name="midi")
def midi_group():
    """MIDI device and pad commands."""
    pass


@midi_group.command(name="list")
@click.pass_obj
def list_midi(obj: CliContext):
    """List MIDI input ports and the learned pads."""
    config = load_config_service(obj.config_path).get_model()
    ports = MidiInputService().list_devices()

    click.echo("MIDI Input Ports:\n")
    if not ports:
        click.echo("  No MIDI input ports found.")
    for i, port in enumerate(ports):
        selected = " (selected)" if port == config.selected_midi_device else ""
        click.echo(f"  [{i}] {port}{selected}")

    pads = config.midi_pads
    click.echo("\nPads:\n")
    click.echo(f"  prev: {_describe_pad(pads.prev_note, pads.prev_channel)}")
    click.echo(f"  next: {_describe_pad(pads.next_note, pads.next_channel)}")


@midi_group.command(name="select")
@click.argument("name")
@click.pass_obj
def select_midi(obj: CliContext, name: str):
    """Save NAME as the MIDI input port to listen to."""
    ports = MidiInputService().list_devices()
    if name not in ports:
        click.echo(f"MIDI input port not found: {name}", err=True)
        if ports:
            click.echo("Available ports:", err=True)
            for port in ports:
                click.echo(f"  - {port}", err=True)
        raise SystemExit(1)

    config_service = load_config_service(obj.config_path)
    config_service.set("selected_midi_device", name)
    config_service.save()
    click.echo(f"Selected MIDI input: {name}")


@midi_group.command(name="monitor")
@click.argument("name", required=False)
def monitor_midi(name: Optional[str]):
    """
    Print note and CC messages from one or all MIDI input ports.

    Useful for finding which notes your pads send. Clock and other
    message types are not shown.

    Press Ctrl+C to stop monitoring.
    """
    ports = [name] if name else MidiInputService().list_devices()
    if not ports:
        click.echo("No MIDI input ports found.")
        return

    click.echo(f"Monitoring {len(ports)} MIDI input port(s):")
    for port in ports:
        click.echo(f"  - {port}")
    click.echo("\nPress Ctrl+C to stop\n")

    def make_callback(port_name: str):
        def callback(message: MidiMessage) -> None:
            timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
            click.echo(
                f"[{timestamp}] {port_name}: {message.type.value} "
                f"ch={message.channel} note={message.note} vel={message.velocity}"
            )
        return callback

    async def monitor() -> None:
        services = []
        try:
            for port_name in ports:
                service = MidiInputService(poll_interval=10.0)
                if await service.select_device(port_name):
                    service.on_message(make_callback(port_name))
                    services.append(service)
                else:
                    click.echo(f"Could not open {port_name}", err=True)

            if services:
                await asyncio.Event().wait()
        finally:
            for service in services:
                await service.stop()

    try:
        asyncio.run(monitor())
    except KeyboardInterrupt:
        click.echo("\n\nStopping monitor...")


@midi_group.command(name="learn")
@click.argument("target", type=click.Choice([t.value for t in LearnTarget], case_sensitive=False))
@click.option('--device', '-d', default=None, help='MIDI input port (default: selected port)')
@click.option('--timeout', type=float, default=30.0, show_default=True, help='Seconds to wait for a pad')
@click.pass_obj
def learn_midi(obj: CliContext, target: str, device: Optional[str], timeout: float):
    """
    Assign the next pad you hit to TARGET (prev or next).

    \b
    Examples:
      chainselector midi learn next
      chainselector midi learn prev --device "Launchpad Mini"
    """
    config_service = load_config_service(obj.config_path)
    config = config_service.get_model()
    port_name = device or config.selected_midi_device
    if not port_name:
        raise click.UsageError("No MIDI device selected. Pass --device or run 'chainselector midi select NAME'.")

    learn_target = LearnTarget(target.lower())

    async def learn() -> Optional[MidiPadConfig]:
        service = MidiInputService()
        if not await service.select_device(port_name):
            click.echo(f"Could not open MIDI input: {port_name}", err=True)
            return None

        navigator = MidiChainNavigator(None, config.midi_pads)
        learned: asyncio.Future = asyncio.get_running_loop().create_future()

        class _Waiter:
            def on_learn_event(self, event, target=None, config=None):
                if event == LearnEvent.COMPLETE and not learned.done():
                    learned.set_result(config)

        navigator.register_observer(_Waiter())
        detach = navigator.attach(service)
        navigator.start_learn(learn_target)
        click.echo(f"Hit the pad for '{learn_target.value}' on {port_name}...")

        try:
            return await asyncio.wait_for(learned, timeout)
        except asyncio.TimeoutError:
            click.echo(f"No pad hit within {timeout:.0f}s.", err=True)
            return None
        finally:
            detach()
            await service.stop()

    try:
        pads = asyncio.run(learn())
    except KeyboardInterrupt:
        click.echo("\nCancelled.", err=True)
        raise SystemExit(1)

    if pads is None:
        raise SystemExit(1)

    config_service.set("midi_pads", pads.model_dump())
    config_service.save()
    if learn_target == LearnTarget.PREV:
        click.echo(f"prev: {_describe_pad(pads.prev_note, pads.prev_channel)}")
    else:
        click.echo(f"next: {_describe_pad(pads.next_note, pads.next_channel)}")

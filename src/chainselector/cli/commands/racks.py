"""Rack discovery and chain selection commands."""

import asyncio
import logging
from typing import Optional

import click

from chainselector.chain import ChainDiscovery, ChainManager, strategy_for
from chainselector.exceptions import ChainSelectorError
from chainselector.models import RackDevice
from chainselector.osc import OscMessageRouter

from ..utils import CliContext, connected_client, echo_error, format_chain_state, load_config_service

logger = logging.getLogger(__name__)


@click.command()
@click.option(
    '--timeout',
    type=float,
    default=5.0,
    show_default=True,
    help='Seconds to wait for AbletonOSC replies'
)
@click.pass_obj
def discover(obj: CliContext, timeout: float):
    """List rack devices (racks with chains) in the Live set."""
    config = load_config_service(obj.config_path).get_model()

    async def scan() -> list[RackDevice]:
        async with connected_client(config, timeout) as client:
            return await ChainDiscovery(client).discover()

    try:
        racks = asyncio.run(scan())
    except (ChainSelectorError, OSError) as e:
        echo_error(e, obj.log_path)
        raise SystemExit(1)

    if not racks:
        click.echo("No racks found.")
        return

    click.echo("Racks:\n")
    for rack in racks:
        saved = " (selected)" if (rack.track_id, rack.device_id) == (
            config.selected_track_id, config.selected_device_id
        ) else ""
        click.echo(f"  track {rack.track_id} device {rack.device_id}: {rack.label()}{saved}")


@click.command()
@click.option('--track', '-t', type=click.IntRange(min=0), default=None, help='Track index (default: saved rack)')
@click.option('--device', '-d', type=click.IntRange(min=0), default=None, help='Device index (default: saved rack)')
@click.option('--select', '-s', 'select_index', type=int, default=None, help='Chain index to activate')
@click.option(
    '--timeout',
    type=float,
    default=5.0,
    show_default=True,
    help='Seconds to wait for AbletonOSC replies'
)
@click.pass_obj
def chains(
    obj: CliContext,
    track: Optional[int],
    device: Optional[int],
    select_index: Optional[int],
    timeout: float,
):
    """
    Show the chains of a rack, optionally activating one.

    Passing --track and --device also saves that rack as the selected one.

    \b
    Examples:
      chainselector chains
      chainselector chains --track 0 --device 1
      chainselector chains --select 3
    """
    config_service = load_config_service(obj.config_path)
    config = config_service.get_model()

    if (track is None) != (device is None):
        raise click.UsageError("--track and --device must be given together")
    if track is None:
        if not config.has_saved_rack:
            raise click.UsageError("No saved rack. Pass --track and --device (see 'chainselector discover').")
        track, device = config.selected_track_id, config.selected_device_id

    rack = RackDevice(track_id=track, device_id=device)

    async def load_and_select():
        async with connected_client(config, timeout) as client:
            router = OscMessageRouter(client)
            manager = ChainManager(client, router, strategy_for(config.switch_strategy))
            await manager.set_rack(rack)
            if select_index is not None:
                manager.select_chain(select_index)
            state = manager.get_state()
            manager.close()
            router.close()
            return state

    try:
        state = asyncio.run(load_and_select())
    except (ChainSelectorError, OSError) as e:
        echo_error(e, obj.log_path)
        raise SystemExit(1)

    click.echo(format_chain_state(state))

    values = {"selected_track_id": track, "selected_device_id": device}
    if select_index is not None:
        if state.active_chain_index != select_index:
            click.echo(f"\nChain {select_index} does not exist.", err=True)
        else:
            values["last_active_chain_index"] = select_index
    config_service.update(values)
    config_service.save()

"""Find rack devices that can hold chains."""

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from chainselector.exceptions import collect_errors
from chainselector.models import RackDevice

if TYPE_CHECKING:
    from chainselector.osc import OscClient

logger = logging.getLogger(__name__)

NUM_TRACKS_ADDRESS = "/live/song/get/num_tracks"
TRACK_NAME_ADDRESS = "/live/track/get/name"
CAN_HAVE_CHAINS_ADDRESS = "/live/track/get/devices/can_have_chains"
DEVICE_NAMES_ADDRESS = "/live/track/get/devices/name"


def _can_have_chains(flag: Any) -> bool:
    return flag is True or flag == 1 or flag == "true"


class ChainDiscovery:
    """Scans every track of the Live set for rack devices."""

    def __init__(self, osc: "OscClient"):
        self._osc = osc

    async def discover(self) -> list[RackDevice]:
        """
        List all racks in the set, in track then device order.

        Tracks that fail to answer are logged and skipped.

        Raises:
            OscTimeoutError: If the track count query gets no reply
            OscNotConnectedError: If the client is not connected
        """
        reply = await self._osc.request(NUM_TRACKS_ADDRESS)
        num_tracks = reply.arg(0, 0)
        if not isinstance(num_tracks, int) or num_tracks <= 0:
            logger.info("No tracks in the Live set")
            return []

        racks: list[RackDevice] = []
        collector = collect_errors("scan tracks")

        for track_id in range(num_tracks):
            with collector.try_operation(f"track {track_id}"):
                racks.extend(await self._scan_track(track_id))

        if collector.has_errors:
            logger.warning(collector.get_summary())

        logger.info(f"Discovered {len(racks)} rack(s) on {num_tracks} track(s)")
        return racks

    async def _scan_track(self, track_id: int) -> list[RackDevice]:
        name_msg, chains_msg, devices_msg = await asyncio.gather(
            self._osc.request(TRACK_NAME_ADDRESS, track_id),
            self._osc.request(CAN_HAVE_CHAINS_ADDRESS, track_id),
            self._osc.request(DEVICE_NAMES_ADDRESS, track_id),
        )

        # Replies are prefixed with track_id
        track_name = name_msg.arg(1) or f"Track {track_id}"
        flags = chains_msg.args[1:]
        device_names = devices_msg.args[1:]

        racks = []
        for device_id, flag in enumerate(flags):
            if not _can_have_chains(flag):
                continue
            device_name = device_names[device_id] if device_id < len(device_names) else None
            racks.append(
                RackDevice(
                    track_id=track_id,
                    device_id=device_id,
                    track_name=str(track_name),
                    device_name=str(device_name or f"Device {device_id}"),
                )
            )
        return racks

"""Tests for Orchestrator with fake OSC and MIDI services."""

import asyncio
import json
from unittest.mock import Mock

import pytest

from chainselector.models import ConnectionStatus, LearnTarget, MidiPadConfig, RackDevice
from chainselector.orchestration import Orchestrator
from chainselector.protocols import LearnEvent

from conftest import RACK


@pytest.fixture
def orchestrator(config_service, osc, midi):
    return Orchestrator(config_service, osc=osc, midi=midi)


async def _connect(orchestrator: Orchestrator) -> None:
    """Start, let the peer answer, and wait for the session restore."""
    await orchestrator.start()
    orchestrator.osc.set_status(ConnectionStatus.CONNECTED)
    await asyncio.gather(*orchestrator._tasks)


def _saved(config_service) -> dict:
    return json.loads(config_service.default_path.read_text())


class TestLifecycle:
    """Test start/stop."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_start_connects_and_starts_midi(self, orchestrator, osc, midi):
        await orchestrator.start()

        assert osc.connect_calls == 1
        assert midi.started
        assert orchestrator.get_connection_state().osc == ConnectionStatus.CONNECTING

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_start_reopens_saved_midi_device(self, config_service, osc, midi):
        config_service.set("selected_midi_device", "Pad Controller")
        orchestrator = Orchestrator(config_service, osc=osc, midi=midi)

        await orchestrator.start()

        state = orchestrator.get_connection_state()
        assert state.midi == ConnectionStatus.CONNECTED
        assert state.midi_device_name == "Pad Controller"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_saved_midi_device_is_not_fatal(self, config_service, osc, midi):
        config_service.set("selected_midi_device", "Unplugged")
        orchestrator = Orchestrator(config_service, osc=osc, midi=midi)

        await orchestrator.start()

        assert orchestrator.get_connection_state().midi == ConnectionStatus.DISCONNECTED
        assert config_service.get("selected_midi_device") == "Unplugged"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, orchestrator, osc, midi):
        await orchestrator.start()

        await orchestrator.stop()
        await orchestrator.stop()

        assert osc.disconnect_calls == 1
        assert midi.stopped

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stop_releases_rack_listeners(self, orchestrator, osc):
        await _connect(orchestrator)
        await orchestrator.select_rack(RACK)
        osc.sent.clear()

        await orchestrator.stop()

        assert ("/live/device/stop_listen/chains", (0, 1)) in osc.sent

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_run_until_stop_requested(self, orchestrator, osc):
        runner = asyncio.create_task(orchestrator.run())
        await asyncio.sleep(0.01)
        assert osc.connect_calls == 1

        orchestrator.request_stop()
        await asyncio.wait_for(runner, 1.0)

        assert osc.disconnect_calls == 1


class TestSessionRestore:
    """Test restoring the saved rack when the peer connects."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_restores_saved_rack_and_chain(self, config_service, osc, midi):
        config_service.update({"selected_track_id": 0, "selected_device_id": 1, "last_active_chain_index": 2})
        orchestrator = Orchestrator(config_service, osc=osc, midi=midi)

        await _connect(orchestrator)

        state = orchestrator.get_state()
        assert state.rack.key == (0, 1)
        assert [c.name for c in state.chains] == ["A", "B", "C"]
        assert state.active_chain_index == 2
        assert ("/live/device/set/selected_chain", (0, 1, 2)) in osc.sent

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_saved_chain_out_of_range_keeps_peer_selection(self, config_service, osc, midi):
        config_service.update({"selected_track_id": 0, "selected_device_id": 1, "last_active_chain_index": 5})
        orchestrator = Orchestrator(config_service, osc=osc, midi=midi)

        await _connect(orchestrator)

        assert orchestrator.get_state().active_chain_index == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_rack_picked_during_restore_keeps_its_selection(self, config_service, osc, midi):
        config_service.update({"selected_track_id": 0, "selected_device_id": 1, "last_active_chain_index": 2})
        names = {(0, 1): ("A", "B", "C"), (2, 0): ("X", "Y", "Z")}
        osc.replies["/live/device/get/chains/name"] = lambda track, device: (track, device, *names[(track, device)])
        other = RackDevice(track_id=2, device_id=0)
        orchestrator = Orchestrator(config_service, osc=osc, midi=midi)
        await orchestrator.start()
        osc.set_status(ConnectionStatus.CONNECTED)
        await asyncio.sleep(0)

        await orchestrator.select_rack(other)
        await asyncio.gather(*orchestrator._tasks)

        state = orchestrator.get_state()
        assert state.rack == other
        assert [c.name for c in state.chains] == ["X", "Y", "Z"]
        assert state.active_chain_index == 0
        assert ("/live/device/set/selected_chain", (2, 0, 2)) not in osc.sent

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_saved_rack_stays_empty(self, orchestrator, osc):
        await _connect(orchestrator)

        assert orchestrator.get_state().rack is None
        assert osc.requests == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reconnect_restores_again(self, config_service, osc, midi):
        config_service.update({"selected_track_id": 0, "selected_device_id": 1})
        orchestrator = Orchestrator(config_service, osc=osc, midi=midi)
        await _connect(orchestrator)
        osc.requests.clear()

        osc.set_status(ConnectionStatus.DISCONNECTED)
        osc.set_status(ConnectionStatus.CONNECTED)
        await asyncio.gather(*orchestrator._tasks)

        assert len(osc.requests) == 3

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stale_rack_is_cleared_on_reconnect(self, orchestrator, osc, config_service):
        await _connect(orchestrator)
        await orchestrator.chain_manager.set_rack(RACK)
        assert not config_service.get_model().has_saved_rack

        osc.set_status(ConnectionStatus.DISCONNECTED)
        osc.set_status(ConnectionStatus.CONNECTED)
        await asyncio.gather(*orchestrator._tasks)

        assert orchestrator.get_state().rack is None


class TestPersistence:
    """Test user choices being written to the config."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_select_rack_saves_ids(self, orchestrator, config_service):
        await _connect(orchestrator)

        await orchestrator.select_rack(RackDevice(track_id=0, device_id=1, track_name="Keys"))

        assert config_service.get("selected_track_id") == 0
        assert config_service.get("selected_device_id") == 1
        assert _saved(config_service)["selected_device_id"] == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_clear_rack_forgets_ids(self, orchestrator, config_service):
        await _connect(orchestrator)
        await orchestrator.select_rack(RACK)

        orchestrator.clear_rack()

        assert not config_service.get_model().has_saved_rack
        assert orchestrator.get_state().rack is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_selection_saves_active_chain(self, orchestrator, config_service):
        await _connect(orchestrator)
        await orchestrator.select_rack(RACK)

        orchestrator.select(2)
        assert config_service.get("last_active_chain_index") == 2

        orchestrator.prev()
        assert config_service.get("last_active_chain_index") == 1
        assert _saved(config_service)["last_active_chain_index"] == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_peer_selection_is_saved(self, orchestrator, osc, config_service):
        await _connect(orchestrator)
        await orchestrator.select_rack(RACK)

        osc.deliver("/live/device/get/selected_chain", 0, 1, 1)

        assert config_service.get("last_active_chain_index") == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_lost_selection_is_not_saved(self, orchestrator, osc, config_service):
        await _connect(orchestrator)
        await orchestrator.select_rack(RACK)
        orchestrator.select(2)

        osc.deliver("/live/device/get/selected_chain", 0, 1, 9)

        assert config_service.get("last_active_chain_index") == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_select_midi_device(self, orchestrator, config_service):
        assert await orchestrator.select_midi_device("Pad Controller")
        assert config_service.get("selected_midi_device") == "Pad Controller"

        assert not await orchestrator.select_midi_device("Missing")
        assert config_service.get("selected_midi_device") == "Pad Controller"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_auto_save_off(self, config_service, osc, midi):
        orchestrator = Orchestrator(config_service, osc=osc, midi=midi, auto_save=False)

        await orchestrator.select_midi_device("Pad Controller")

        assert config_service.get("selected_midi_device") == "Pad Controller"
        assert not config_service.default_path.exists()


class TestMidiNavigation:
    """Test pads and learn through the orchestrator."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_pad_press_navigates(self, config_service, osc, midi):
        config_service.set("midi_pads", MidiPadConfig(prev_note=36, next_note=37))
        orchestrator = Orchestrator(config_service, osc=osc, midi=midi)
        await _connect(orchestrator)
        await orchestrator.select_rack(RACK)

        midi.press(37)
        midi.press(37)
        assert orchestrator.get_state().active_chain_index == 2

        midi.press(36)
        assert orchestrator.get_state().active_chain_index == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_learn_saves_pads(self, orchestrator, midi, config_service):
        observer = Mock()
        orchestrator.register_learn_observer(observer)
        await orchestrator.start()

        orchestrator.start_learn(LearnTarget.PREV)
        midi.press(48, channel=10)

        pads = config_service.get("midi_pads")
        assert pads.prev_note == 48
        assert pads.prev_channel == 10
        assert orchestrator.get_midi_config() == pads
        assert _saved(config_service)["midi_pads"]["prev_note"] == 48
        assert observer.on_learn_event.call_args[0][0] == LearnEvent.COMPLETE

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stop_learn_saves_nothing(self, orchestrator, midi, config_service):
        orchestrator.start_learn(LearnTarget.NEXT)
        orchestrator.stop_learn()

        midi.press(48)

        assert config_service.get("midi_pads").next_note is None


class TestObserverRegistration:
    """Test front-end observer hooks."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_chain_and_status_observers(self, orchestrator, osc, midi):
        chain_observer = Mock()
        osc_observer = Mock()
        midi_observer = Mock()
        orchestrator.register_chain_observer(chain_observer)
        orchestrator.register_osc_status_observer(osc_observer)
        orchestrator.register_midi_status_observer(midi_observer)

        await _connect(orchestrator)
        await orchestrator.select_rack(RACK)
        await orchestrator.select_midi_device("Pad Controller")

        chain_observer.on_chain_state_changed.assert_called()
        osc_observer.on_connection_status_changed.assert_any_call(ConnectionStatus.CONNECTED)
        midi_observer.on_connection_status_changed.assert_called_with(ConnectionStatus.CONNECTED)

    @pytest.mark.unit
    def test_list_midi_devices(self, orchestrator):
        assert orchestrator.list_midi_devices() == ["Pad Controller"]

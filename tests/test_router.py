"""Tests for OscMessageRouter."""

from unittest.mock import Mock

import pytest

from chainselector.osc import OscMessageRouter

from conftest import FakeOscClient


@pytest.fixture
def client():
    return FakeOscClient()


@pytest.fixture
def router(client):
    return OscMessageRouter(client)


@pytest.mark.unit
class TestRouting:
    """Test address dispatch."""

    def test_handlers_run_in_registration_order(self, client, router):
        calls = []
        router.on("/live/device/get/chains", lambda m: calls.append("first"))
        router.on("/live/device/get/chains", lambda m: calls.append("second"))

        client.deliver("/live/device/get/chains", 0, 1)

        assert calls == ["first", "second"]

    def test_exact_match_only(self, client, router):
        handler = Mock()
        router.on("/live/device/get/chains", handler)

        client.deliver("/live/device/get/chains/name", 0, 1, "A")
        client.deliver("/live/device/get", 0, 1)

        handler.assert_not_called()

    def test_handler_receives_message(self, client, router):
        handler = Mock()
        router.on("/live/device/get/selected_chain", handler)

        client.deliver("/live/device/get/selected_chain", 0, 1, 2)

        message = handler.call_args[0][0]
        assert message.address == "/live/device/get/selected_chain"
        assert message.args == (0, 1, 2)

    def test_failing_handler_does_not_stop_others(self, client, router):
        failing = Mock(side_effect=ValueError("bad"))
        working = Mock()
        router.on("/a", failing)
        router.on("/a", working)

        client.deliver("/a")

        failing.assert_called_once()
        working.assert_called_once()

    def test_unrouted_address_is_ignored(self, client, router):
        client.deliver("/nobody/listens")


@pytest.mark.unit
class TestUnsubscribe:
    """Test removing registrations."""

    def test_unsubscribe_removes_only_that_registration(self, client, router):
        handler = Mock()
        unsubscribe_first = router.on("/a", handler)
        router.on("/a", handler)

        unsubscribe_first()
        client.deliver("/a")

        handler.assert_called_once()

    def test_last_unsubscribe_deletes_address(self, router):
        first = router.on("/a", Mock())
        second = router.on("/a", Mock())

        first()
        assert router.has_handlers("/a")
        second()
        assert not router.has_handlers("/a")

    def test_double_unsubscribe_is_harmless(self, client, router):
        handler = Mock()
        other = Mock()
        unsubscribe = router.on("/a", handler)
        router.on("/a", other)

        unsubscribe()
        unsubscribe()
        client.deliver("/a")

        handler.assert_not_called()
        other.assert_called_once()

    def test_handler_may_unsubscribe_while_dispatching(self, client, router):
        calls = []
        unsubscribe = None

        def once(message):
            calls.append("once")
            unsubscribe()

        unsubscribe = router.on("/a", once)
        router.on("/a", lambda m: calls.append("always"))

        client.deliver("/a")
        client.deliver("/a")

        assert calls == ["once", "always", "always"]

    def test_close_detaches_from_client(self, client, router):
        handler = Mock()
        router.on("/a", handler)

        router.close()
        client.deliver("/a")

        handler.assert_not_called()
        assert client._handlers == []

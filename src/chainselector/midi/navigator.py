"""Map MIDI pads to next/previous chain, with learn mode."""

import logging
from typing import TYPE_CHECKING, Optional

from chainselector.model_manager import ObserverManager, Unsubscribe
from chainselector.models import LearnTarget, MidiMessage, MidiMessageType, MidiPadConfig
from chainselector.protocols import LearnEvent, LearnObserver

if TYPE_CHECKING:
    from chainselector.chain import ChainManager

logger = logging.getLogger(__name__)


class MidiChainNavigator:
    """
    Turns note-on messages into chain navigation.

    In learn mode the next note-on is assigned to the pending target
    instead of navigating.
    """

    def __init__(self, chain_manager: Optional["ChainManager"], config: Optional[MidiPadConfig] = None):
        """
        Args:
            chain_manager: Target of navigation; None for a learn-only navigator
            config: Initial pad mapping (copied)
        """
        self._chain_manager = chain_manager
        self._config = config.model_copy() if config else MidiPadConfig()
        self._learn_target: Optional[LearnTarget] = None
        self._observers = ObserverManager[LearnObserver](observer_type_name="learn")

    def attach(self, source) -> Unsubscribe:
        """
        Listen to a MIDI source (anything with on_message(handler)).

        Returns:
            Callable that detaches from the source
        """
        return source.on_message(self.handle_message)

    def register_observer(self, observer: LearnObserver) -> Unsubscribe:
        return self._observers.register(observer)

    def get_config(self) -> MidiPadConfig:
        return self._config.model_copy()

    def set_config(self, config: MidiPadConfig) -> None:
        self._config = config.model_copy()

    @property
    def is_learning(self) -> bool:
        return self._learn_target is not None

    @property
    def learn_target(self) -> Optional[LearnTarget]:
        return self._learn_target

    def start_learn(self, target: LearnTarget) -> None:
        """Arm learn mode; the next note-on is assigned to target."""
        self._learn_target = target
        logger.info(f"MIDI learn started for {target.value}")
        self._observers.notify("on_learn_event", LearnEvent.STARTED, target)

    def stop_learn(self) -> None:
        """Leave learn mode without assigning anything."""
        self._learn_target = None
        logger.info("MIDI learn stopped")
        self._observers.notify("on_learn_event", LearnEvent.STOPPED)

    def handle_message(self, message: MidiMessage) -> None:
        """Learn or navigate from one MIDI message. Only note-on is used."""
        if message.type != MidiMessageType.NOTE_ON:
            return

        target = self._learn_target
        if target is not None:
            self._config.assign(target, message.note, message.channel)
            self._learn_target = None
            logger.info(f"Learned {target.value} pad: note {message.note} on channel {message.channel}")
            self._observers.notify("on_learn_event", LearnEvent.COMPLETE, target, self.get_config())
            return

        if self._chain_manager is None:
            return

        if self._config.matches(LearnTarget.PREV, message.note, message.channel):
            self._chain_manager.select_previous()
        elif self._config.matches(LearnTarget.NEXT, message.note, message.channel):
            self._chain_manager.select_next()

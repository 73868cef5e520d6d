"""Root of the chainselector exception tree.

Every error raised on purpose by chainselector derives from
ChainSelectorError, so a front end can catch one type and still show the
user something readable.
"""

from typing import Optional


class ChainSelectorError(Exception):
    """
    Error with a display message and an optional fix suggestion.

    Attributes:
        user_message: Short text for the console or a dialog
        technical_message: Longer text for the log file
        recoverable: True when retrying (or fixing the setup) can succeed
        recovery_hint: What the user can do about it, if known
    """

    def __init__(
        self,
        user_message: str,
        technical_message: Optional[str] = None,
        recoverable: bool = False,
        recovery_hint: Optional[str] = None,
    ):
        super().__init__(user_message)
        self.user_message = user_message
        self.technical_message = technical_message if technical_message is not None else user_message
        self.recoverable = recoverable
        self.recovery_hint = recovery_hint

    def __str__(self) -> str:
        return self.user_message

"""Error taxonomy for the sequencing core.

State and input errors (``NoActiveSession`` through ``SessionBusy``) are
expected outcomes of user commands: the Telegram layer turns each into a
reply and they are never logged as failures. ``TransportDeliveryFailure`` is
retried per item and then recorded in the delivery report.
``StatisticsUpdateFailure`` is logged and swallowed by the session manager.
"""

from __future__ import annotations


class SequencerError(Exception):
    """Base class for all errors raised by the sequencing core."""


class NoActiveSession(SequencerError):
    def __init__(self, user_id: int) -> None:
        super().__init__(f"No active session for user {user_id}")
        self.user_id = user_id


class SessionAlreadyActive(SequencerError):
    def __init__(self, user_id: int, item_count: int) -> None:
        super().__init__(
            f"User {user_id} already has an active session with {item_count} items"
        )
        self.user_id = user_id
        self.item_count = item_count


class UnsupportedKind(SequencerError):
    def __init__(self, kind: str | None) -> None:
        super().__init__(f"Unsupported media kind: {kind!r}")
        self.kind = kind


class CapacityExceeded(SequencerError):
    def __init__(self, user_id: int, max_items: int) -> None:
        super().__init__(f"Session for user {user_id} is full ({max_items} items)")
        self.user_id = user_id
        self.max_items = max_items


class EmptySession(SequencerError):
    def __init__(self, user_id: int) -> None:
        super().__init__(f"Session for user {user_id} has no items")
        self.user_id = user_id


class SessionBusy(SequencerError):
    """A delivery is already running for this user's session."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"Delivery in progress for user {user_id}")
        self.user_id = user_id


class TransportDeliveryFailure(SequencerError):
    """A single transport call failed.

    ``retry_after`` carries the server's flood-control hint in seconds, if any.
    """

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class StatisticsUpdateFailure(SequencerError):
    """The external statistics store rejected or failed an operation."""

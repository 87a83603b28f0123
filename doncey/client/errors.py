"""Session failure types.

Only the session runner catches these. Everything below it raises and
lets the runner decide whether the session is over.
"""


class SessionError(Exception):
    """Base class for failures that end or abort a session."""


class TransportError(SessionError):
    """The connection could not be opened or failed mid-stream."""


class Disconnected(TransportError):
    """The server closed the stream at a line boundary."""


class ProtocolOutOfRange(SessionError):
    """The server declared a size outside the client's limits."""


class NegotiationRejected(SessionError):
    """The server refused to let us spectate the requested player."""

    def __init__(self, player_id: int) -> None:
        super().__init__(f"player {player_id} is not available to spectate")
        self.player_id = player_id


class SessionCancelled(SessionError):
    """The user asked to leave before the session finished."""

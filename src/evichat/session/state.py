from dataclasses import dataclass
from enum import Enum


class ConnectionState(str, Enum):
    """Lifecycle of the EVI socket."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass
class SessionState:
    """Mutable state of one voice session.

    A fresh instance is created on every connect (keeping the mute flag);
    it is only touched from the event loop that runs the session controller.
    """

    connection: ConnectionState = ConnectionState.DISCONNECTED
    muted: bool = False
    # Set by barge-in, cleared when the assistant produces audio again
    interrupted: bool = False

    @property
    def connected(self) -> bool:
        return self.connection is ConnectionState.CONNECTED

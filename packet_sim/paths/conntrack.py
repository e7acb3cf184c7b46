"""Connection tracking states.

Linux conntrack keeps per-connection state for stateful firewalling and
NAT. Simulation steps carry the current entry as a sidecar annotation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class ConntrackState(Enum):
    """Connection tracking states for TCP."""

    NEW = "NEW"
    SYN_SENT = "SYN_SENT"
    SYN_RECV = "SYN_RECV"
    ESTABLISHED = "ESTABLISHED"
    FIN_WAIT = "FIN_WAIT"
    CLOSE_WAIT = "CLOSE_WAIT"
    LAST_ACK = "LAST_ACK"
    TIME_WAIT = "TIME_WAIT"
    CLOSED = "CLOSED"


CONNTRACK_STATE_DESCRIPTIONS: Dict[ConntrackState, str] = {
    ConntrackState.NEW: "New connection. First packet seen, no reply yet.",
    ConntrackState.SYN_SENT: "SYN packet sent. Waiting for SYN-ACK from remote.",
    ConntrackState.SYN_RECV: "SYN received, SYN-ACK sent. Awaiting final ACK.",
    ConntrackState.ESTABLISHED: "Connection established. Bidirectional traffic allowed.",
    ConntrackState.FIN_WAIT: "FIN sent. Waiting for remote to acknowledge close.",
    ConntrackState.CLOSE_WAIT: "FIN received. Waiting for application to close.",
    ConntrackState.LAST_ACK: "Sent final FIN. Waiting for last ACK.",
    ConntrackState.TIME_WAIT: "Connection closed. Waiting for stale packets (2MSL).",
    ConntrackState.CLOSED: "Connection fully closed. Entry will be removed.",
}


@dataclass(frozen=True)
class ConntrackEntry:
    """Current connection tracking state.

    Attributes:
        state: The conntrack state.
        description: Explanation of the state.
        timeout: Seconds before the state expires (0 if not tracked).
    """

    state: ConntrackState
    description: str = ""
    timeout: int = 0

    @classmethod
    def for_state(cls, state: ConntrackState) -> "ConntrackEntry":
        return cls(state, CONNTRACK_STATE_DESCRIPTIONS[state])

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "state": self.state.value,
            "description": self.description,
        }
        if self.timeout:
            result["timeout"] = self.timeout
        return result

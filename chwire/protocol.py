"""Packet codes and revision numbers of the ClickHouse native protocol."""

from __future__ import annotations

from enum import IntEnum

__all__ = [
    "DBMS_MIN_REVISION_WITH_QUOTA_KEY_IN_CLIENT_INFO",
    "DBMS_MIN_REVISION_WITH_SERVER_TIMEZONE",
    "STATE_COMPLETE",
    "ClientPacket",
    "Compression",
    "ServerPacket",
]

DBMS_MIN_REVISION_WITH_SERVER_TIMEZONE = 54058
DBMS_MIN_REVISION_WITH_QUOTA_KEY_IN_CLIENT_INFO = 54060

STATE_COMPLETE = 2


class ClientPacket(IntEnum):
    """Packet types sent from the client to the server."""

    HELLO = 0
    QUERY = 1
    DATA = 2
    CANCEL = 3
    PING = 4


class ServerPacket(IntEnum):
    """Packet types sent from the server to the client."""

    HELLO = 0
    DATA = 1
    EXCEPTION = 2
    PROGRESS = 3
    PONG = 4
    END_OF_STREAM = 5
    PROFILE_INFO = 6
    TOTALS = 7
    EXTREMES = 8


class Compression(IntEnum):
    """Whether query data is sent compressed."""

    DISABLE = 0
    ENABLE = 1
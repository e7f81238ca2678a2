from __future__ import annotations


class HostWatchError(Exception):
    """Base class for every error raised by host-watch."""


class ConnectError(HostWatchError):
    """The raw ICMP socket could not be opened (usually missing privilege)."""


class WriteError(HostWatchError):
    pass


class ReadError(HostWatchError):
    pass


class ReceiveTimeout(ReadError):
    """No reply arrived before the read deadline."""


class ConfigParseError(HostWatchError):
    pass


class AlertDispatchError(HostWatchError):
    pass


class WindowFullError(HostWatchError):
    pass

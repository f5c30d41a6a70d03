"""Per-transfer data connections negotiated with PASV/EPSV/PORT/EPRT.

A session holds at most one pending channel: either a passive listener the
client will connect to, or an active target the server will dial. Every
negotiation goes through ``_replace`` which closes whatever was pending
before, so a listener is never leaked by a second PASV.
"""
import enum
import socket
from typing import Optional, Tuple, Union

from honeypot_log import log


class DataChannelError(Exception):
    pass


class DataChannelNotReady(DataChannelError):
    """Raised when a transfer is requested before PASV/EPSV/PORT/EPRT."""


class DataChannelMode(enum.Enum):
    NONE = "none"
    PASSIVE_LISTENING = "passive-listening"
    ACTIVE_TARGET_SET = "active-target-set"


class _PendingPassive:
    def __init__(self, listener: socket.socket) -> None:
        self.listener = listener

    def close(self) -> None:
        self.listener.close()


class _PendingActive:
    def __init__(self, address: Tuple[str, int]) -> None:
        self.address = address

    def close(self) -> None:
        pass


_Pending = Union[_PendingPassive, _PendingActive]


def _decimal(field: str) -> int:
    if not (field.isascii() and field.isdigit()):
        raise ValueError(f"not a decimal number: {field!r}")
    return int(field)


def parse_port_argument(arg: str) -> Tuple[str, int]:
    """Parse ``a1,a2,a3,a4,p1,p2`` into ``(host, port)``.

    Raises ValueError on a wrong field count, a non-numeric field, or a field
    outside 0-255.
    """
    parts = arg.split(",")
    if len(parts) != 6:
        raise ValueError(f"PORT needs 6 fields, got {len(parts)}")
    nums = [_decimal(p) for p in parts]
    for n in nums:
        if n < 0 or n > 255:
            raise ValueError(f"PORT field out of range: {n}")
    host = ".".join(str(n) for n in nums[:4])
    return host, nums[4] * 256 + nums[5]


def parse_eprt_argument(arg: str) -> Tuple[str, int]:
    """Parse ``<d><af><d><host><d><port><d>``, where ``<d>`` is the first character."""
    if not arg:
        raise ValueError("empty EPRT argument")
    fields = arg.split(arg[0])
    if len(fields) < 4:
        raise ValueError(f"EPRT needs at least 4 fields, got {len(fields)}")
    host = fields[2]
    port = _decimal(fields[3])
    if not host:
        raise ValueError("EPRT address is empty")
    if port < 0 or port > 65535:
        raise ValueError(f"EPRT port out of range: {port}")
    return host, port


def pasv_reply(advertised_ip: str, port: int) -> str:
    octets = advertised_ip.split(".")
    return "227 Entering Passive Mode ({},{},{},{},{},{}).".format(*octets, port // 256, port % 256)


def epsv_reply(port: int) -> str:
    return f"229 Entering Extended Passive Mode (|||{port}|)"


class DataChannel:
    def __init__(self, log_prefix: str = "", timeout: Optional[float] = None) -> None:
        self.log_prefix = log_prefix
        self.timeout = timeout
        self._pending: Optional[_Pending] = None
        self._connection: Optional[socket.socket] = None

    @property
    def mode(self) -> DataChannelMode:
        if isinstance(self._pending, _PendingPassive):
            return DataChannelMode.PASSIVE_LISTENING
        if isinstance(self._pending, _PendingActive):
            return DataChannelMode.ACTIVE_TARGET_SET
        return DataChannelMode.NONE

    @property
    def active_target(self) -> Optional[Tuple[str, int]]:
        if isinstance(self._pending, _PendingActive):
            return self._pending.address
        return None

    def _replace(self, pending: Optional[_Pending]) -> None:
        self.close_all()
        self._pending = pending

    def open_passive(self) -> int:
        """Listen on an ephemeral port on all interfaces and return the port."""
        self._replace(None)
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            listener.bind(("0.0.0.0", 0))
            listener.listen(1)
        except OSError as e:
            listener.close()
            raise DataChannelError(f"passive listener bind failed: {e}") from e
        self._pending = _PendingPassive(listener)
        port = listener.getsockname()[1]
        log(f"{self.log_prefix} Passive listener on port {port}")
        return port

    def set_active_target(self, host: str, port: int) -> None:
        self._replace(_PendingActive((host, port)))

    def obtain_connection(self) -> socket.socket:
        pending = self._pending
        if pending is None:
            raise DataChannelNotReady("Use PASV or PORT/EPRT first.")
        self._pending = None
        if isinstance(pending, _PendingPassive):
            listener = pending.listener
            try:
                listener.settimeout(self.timeout)
                conn, addr = listener.accept()
            except OSError as e:
                log(f"{self.log_prefix} PASV accept failed: {e}", level="WARNING")
                raise DataChannelError(f"accept failed: {e}") from e
            finally:
                listener.close()
            log(f"{self.log_prefix} PASV data connection from {addr[0]}:{addr[1]}")
        else:
            host, port = pending.address
            try:
                conn = socket.create_connection((host, port), timeout=self.timeout)
            except OSError as e:
                log(f"{self.log_prefix} PORT connect to {host}:{port} failed: {e}", level="WARNING")
                raise DataChannelError(f"connect failed: {e}") from e
            log(f"{self.log_prefix} PORT connected to {host}:{port}")
        self._connection = conn
        return conn

    def close_all(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
        if self._pending is not None:
            self._pending.close()
            self._pending = None

import contextlib
import enum
import ipaddress
import socket
import threading
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Tuple

from command_log import CommandLog
from fake_fs import FSNode, format_listing_line, join_path, resolve
from ftp_data_channel import (
    DataChannel,
    DataChannelError,
    DataChannelNotReady,
    epsv_reply,
    parse_eprt_argument,
    parse_port_argument,
    pasv_reply,
)
from honeypot_log import log

DEFAULT_WELCOME_MESSAGE = (
    "Welcome to the file server, if you are not authorized please disconnect."
)
# Address clients are told to connect to for PASV; must be reachable by them.
DEFAULT_PASV_IP = "127.0.0.1"
DEFAULT_RETR_PAYLOAD = (
    b"Hey there,\n"
    b"As you might have guessed this file doesn't exist.\n"
    b"Everything you did on this server has been recorded.\n"
    b"\n"
    b"Have a nice day.\n"
)
KEEPALIVE_INTERVAL = 30


@dataclass(frozen=True)
class HoneypotConfig:
    welcome_message: str = DEFAULT_WELCOME_MESSAGE
    pasv_ip: str = DEFAULT_PASV_IP
    retr_payload: bytes = DEFAULT_RETR_PAYLOAD
    data_timeout: Optional[float] = None
    keepalive_interval: int = KEEPALIVE_INTERVAL

    def __post_init__(self) -> None:
        ipaddress.IPv4Address(self.pasv_ip)


class SessionState(enum.Enum):
    CONNECTED = "connected"
    IN_TRANSFER = "in-transfer"
    CLOSED = "closed"


def _enable_keepalive(conn: socket.socket, interval: int) -> None:
    conn.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
    if hasattr(socket, "TCP_KEEPIDLE"):
        conn.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, interval)
    if hasattr(socket, "TCP_KEEPINTVL"):
        conn.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, interval)


class FTPClientHandler(threading.Thread):
    """One control connection: read a line, record it, dispatch it, reply.

    Commands are handled strictly one after another; LIST and RETR block the
    loop until the data transfer has finished.
    """

    def __init__(
        self,
        conn: socket.socket,
        addr: Tuple[str, int],
        root: FSNode,
        command_log: Optional[CommandLog] = None,
        config: Optional[HoneypotConfig] = None,
    ):
        super().__init__(daemon=True)
        self.conn = conn
        self.addr = addr
        self.root = root
        self.command_log = command_log
        self.config = config or HoneypotConfig()
        self.peer = f"{addr[0]}:{addr[1]}"
        self.log_prefix = f"[{self.peer}]"
        self.cwd = "/"
        self.state = SessionState.CONNECTED
        self.data = DataChannel(self.log_prefix, timeout=self.config.data_timeout)
        self.command_count = 0
        self._reader = conn.makefile("rb")

    def send(self, text: str) -> None:
        self.conn.sendall((text + "\r\n").encode())

    def recvline(self) -> Optional[str]:
        raw = self._reader.readline()
        if not raw:
            return None
        return raw.decode(errors="ignore").strip()

    def run(self) -> None:
        log(f"{self.log_prefix} New connection")
        try:
            try:
                _enable_keepalive(self.conn, self.config.keepalive_interval)
            except OSError as e:
                log(f"{self.log_prefix} Could not enable keep-alive: {e}", level="WARNING")
            self.send("220 " + self.config.welcome_message)
            while self.state is not SessionState.CLOSED:
                line = self.recvline()
                if line is None:
                    log(f"{self.log_prefix} Connection closed by peer")
                    break
                if not line:
                    continue
                log(f"{self.log_prefix} Received: {line}")
                self.command_count += 1

                parts = line.split(" ", 1)
                cmd = parts[0].upper()
                arg = parts[1] if len(parts) > 1 else ""
                if self.command_log is not None:
                    self.command_log.record(self.peer, cmd, arg, self.cwd)
                self.dispatch(cmd, arg)
        except OSError as e:
            log(f"{self.log_prefix} Connection error: {e}", level="WARNING")
        finally:
            self.close()
            log(f"{self.log_prefix} Session closed - Commands: {self.command_count}")

    def close(self) -> None:
        self.state = SessionState.CLOSED
        self.data.close_all()
        try:
            self._reader.close()
        finally:
            self.conn.close()

    def dispatch(self, cmd: str, arg: str) -> None:
        if cmd == "USER":
            log(f"{self.log_prefix} Login attempt: USER {arg}")
            self.send("331 Username OK, need password.")
        elif cmd == "PASS":
            # Any password is accepted.
            log(f"{self.log_prefix} User logged in")
            self.send("230 Login successful.")
        elif cmd == "SYST":
            self.send("215 UNIX Type: L8")
        elif cmd == "PWD":
            self.send(f'257 "{self.cwd}" is the current directory.')
        elif cmd == "TYPE":
            if arg.upper() == "I":
                self.send("200 Switching to Binary mode.")
            else:
                self.send("200 OK")
        elif cmd == "CWD":
            self._cwd(arg)
        elif cmd == "PASV":
            self._passive(extended=False)
        elif cmd == "EPSV":
            self._passive(extended=True)
        elif cmd == "PORT":
            self._active(arg, parse_port_argument, "200 PORT command successful.")
        elif cmd == "EPRT":
            self._active(arg, parse_eprt_argument, "200 EPRT command successful.")
        elif cmd == "LIST":
            self._list()
        elif cmd == "RETR":
            self._retr(arg)
        elif cmd == "QUIT":
            self.send("221 Goodbye.")
            log(f"{self.log_prefix} Connection closed by client.")
            self.state = SessionState.CLOSED
        else:
            self.send("502 Command not implemented.")

    def _cwd(self, arg: str) -> None:
        target = join_path(self.cwd, arg)
        node = resolve(self.root, target)
        if node is not None and node.is_dir:
            self.cwd = target
            log(f"{self.log_prefix} Changed directory to {self.cwd}")
            self.send("250 Directory successfully changed.")
        else:
            self.send("550 Failed to change directory.")

    def _passive(self, extended: bool) -> None:
        try:
            port = self.data.open_passive()
        except DataChannelError as e:
            log(f"{self.log_prefix} {e}", level="WARNING")
            self.send("425 Can't open passive connection.")
            return
        if extended:
            self.send(epsv_reply(port))
        else:
            self.send(pasv_reply(self.config.pasv_ip, port))

    def _active(self, arg: str, parse: Callable[[str], Tuple[str, int]], reply: str) -> None:
        try:
            host, port = parse(arg)
        except ValueError:
            self.send("501 Syntax error in parameters or arguments.")
            return
        self.data.set_active_target(host, port)
        self.send(reply)

    @contextlib.contextmanager
    def _in_transfer(self) -> Iterator[None]:
        self.state = SessionState.IN_TRANSFER
        try:
            yield
        finally:
            self.data.close_all()
            if self.state is SessionState.IN_TRANSFER:
                self.state = SessionState.CONNECTED

    def _open_data(self) -> Optional[socket.socket]:
        try:
            return self.data.obtain_connection()
        except DataChannelNotReady as e:
            self.send(f"425 {e}")
        except DataChannelError:
            self.send("425 Can't open data connection.")
        return None

    def _write_data(self, conn: socket.socket, payload: bytes, done: str) -> None:
        try:
            conn.sendall(payload)
        except OSError as e:
            log(f"{self.log_prefix} Data transfer failed: {e}", level="WARNING")
            self.data.close_all()
            self.send("426 Connection closed; transfer aborted.")
            return
        self.data.close_all()
        self.send(done)

    def _list(self) -> None:
        with self._in_transfer():
            conn = self._open_data()
            if conn is None:
                return
            self.send("150 Opening data connection for directory list.")
            node = resolve(self.root, self.cwd)
            if node is None or not node.is_dir:
                self.send("550 Not a directory.")
                return
            listing = "".join(format_listing_line(child) for child in node.children)
            self._write_data(conn, listing.encode(), "226 Directory send OK.")

    def _retr(self, arg: str) -> None:
        target = join_path(self.cwd, arg)
        node = resolve(self.root, target)
        if node is None or node.is_dir:
            log(f"{self.log_prefix} RETR failed. Path {target} not found.")
            self.send("550 File not found.")
            return
        with self._in_transfer():
            conn = self._open_data()
            if conn is None:
                return
            self.send("150 Opening data connection for file transfer.")
            self._write_data(conn, self.config.retr_payload, "226 Transfer complete.")


def serve_connections(
    sock: socket.socket,
    root: FSNode,
    command_log: Optional[CommandLog] = None,
    config: Optional[HoneypotConfig] = None,
) -> None:
    """Accept control connections on a bound, listening socket until it is closed."""
    while True:
        try:
            conn, addr = sock.accept()
        except OSError as e:
            if sock.fileno() == -1:
                return
            log(f"Accept error: {e}", level="WARNING")
            continue
        handler = FTPClientHandler(conn, addr, root, command_log, config)
        handler.start()


def start_ftp_honeypot(
    address: str,
    port: int,
    root: FSNode,
    command_log: Optional[CommandLog] = None,
    config: Optional[HoneypotConfig] = None,
) -> None:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    sock.bind((address, port))
    sock.listen(50)
    log(f"[+] FTP honeypot listening on {address}:{port}")
    log("[i] Accepting any credentials")
    try:
        serve_connections(sock, root, command_log, config)
    except KeyboardInterrupt:
        log("[!] Stopping FTP honeypot...")
    finally:
        sock.close()
        log("[+] FTP honeypot stopped")

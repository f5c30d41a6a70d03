import random
import re
import socket
import threading
from typing import Tuple

import pytest

import honeypot_log
from command_log import CommandLog
from fake_fs import FSNode, build_file_system
from ftp_honeypot import HoneypotConfig, serve_connections

PASV_RE = re.compile(r"\((\d+),(\d+),(\d+),(\d+),(\d+),(\d+)\)")


class ControlClient:
    """Minimal line-oriented FTP control client for driving a live server."""

    def __init__(self, address: Tuple[str, int]) -> None:
        self.sock = socket.create_connection(address, timeout=5)
        self.reader = self.sock.makefile("rb")
        self.welcome = self.readline()

    def readline(self) -> str:
        return self.reader.readline().decode().rstrip("\r\n")

    def send(self, line: str) -> None:
        self.sock.sendall((line + "\r\n").encode())

    def cmd(self, line: str) -> str:
        self.send(line)
        return self.readline()

    def pasv(self) -> Tuple[str, int]:
        reply = self.cmd("PASV")
        assert reply.startswith("227 ")
        nums = [int(n) for n in PASV_RE.search(reply).groups()]
        return ".".join(str(n) for n in nums[:4]), nums[4] * 256 + nums[5]

    def close(self) -> None:
        self.reader.close()
        self.sock.close()


def recv_all(sock: socket.socket) -> bytes:
    chunks = []
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


@pytest.fixture(autouse=True)
def _quiet_log_file():
    honeypot_log.set_log_file(None)
    yield


@pytest.fixture
def root() -> FSNode:
    return build_file_system(random.Random(1234))


@pytest.fixture
def command_log_path(tmp_path):
    return tmp_path / "commands.jsonl"


@pytest.fixture
def config() -> HoneypotConfig:
    return HoneypotConfig(data_timeout=5)


@pytest.fixture
def ftp_server(root, command_log_path, config):
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(5)
    thread = threading.Thread(
        target=serve_connections,
        args=(sock, root, CommandLog(str(command_log_path)), config),
        daemon=True,
    )
    thread.start()
    yield sock.getsockname()
    sock.close()


@pytest.fixture
def client(ftp_server):
    c = ControlClient(ftp_server)
    yield c
    c.close()

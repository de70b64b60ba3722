from __future__ import annotations

import socket
import sys
from typing import BinaryIO

from .constants import ACK_OK, MAX_COMMAND_LEN


class PeerChannel:
    """The two byte streams of one connection.

    Input and output are separate objects because an inetd style listener
    hands the connection over as stdin/stdout.
    """

    def __init__(self, rfile: BinaryIO, wfile: BinaryIO, sock: socket.socket | None = None):
        self.rfile = rfile
        self.wfile = wfile
        self.sock = sock

    @classmethod
    def from_stdio(cls) -> "PeerChannel":
        return cls(sys.stdin.buffer, sys.stdout.buffer)

    @classmethod
    def from_socket(cls, sock: socket.socket) -> "PeerChannel":
        return cls(sock.makefile("rb"), sock.makefile("wb"), sock)

    def read_command(self) -> bytes | None:
        """Return one command line including its ``\\n``, or None on EOF.

        At most MAX_COMMAND_LEN bytes are consumed; a longer line comes
        back truncated and the remainder is read as the next command.
        """
        line = self.rfile.readline(MAX_COMMAND_LEN)
        return line or None

    def read(self, size: int) -> bytes:
        return self.rfile.read(size)

    def write(self, data: bytes) -> None:
        self.wfile.write(data)
        self.wfile.flush()

    def signal_ok(self) -> None:
        self.write(ACK_OK)

    def say(self, message: str) -> None:
        self.write(message.encode("utf-8", "replace") + b"\n")

    def close(self) -> None:
        self.rfile.close()
        self.wfile.close()
        if self.sock is not None:
            self.sock.close()

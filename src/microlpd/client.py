from __future__ import annotations

import socket
from dataclasses import dataclass

from .channel import PeerChannel
from .constants import ACK_OK, RECEIVE_JOB, SUBCMD_CONTROL, SUBCMD_DATA

DEFAULT_PORT = 515


class NegativeAcknowledgement(Exception):
    pass


def build_control_file(host: str, user: str, job: str, datafile: str) -> bytes:
    lines = [f"H{host}", f"P{user}", f"J{job}", f"l{datafile}"]
    return "".join(line + "\n" for line in lines).encode("utf-8")


@dataclass(slots=True)
class JobSender:
    """Push one job to a receiver, waiting for a zero byte after every step."""

    channel: PeerChannel

    @classmethod
    def connect(cls, host: str, port: int = DEFAULT_PORT, timeout: float | None = 10.0) -> "JobSender":
        sock = socket.create_connection((host, port), timeout=timeout)
        return cls(PeerChannel.from_socket(sock))

    def _expect_ack(self, step: str) -> None:
        reply = self.channel.read(1)
        if reply != ACK_OK:
            raise NegativeAcknowledgement(f"{step}: got {reply!r}")

    def start(self, queue: str) -> None:
        self.channel.write(bytes([RECEIVE_JOB]) + queue.encode("utf-8") + b"\n")
        self._expect_ack("receive job")

    def send_file(self, code: int, name: str, payload: bytes) -> None:
        self.channel.write(bytes([code]) + f"{len(payload)} {name}\n".encode("utf-8"))
        self._expect_ack(f"header for {name}")
        self.channel.write(payload + ACK_OK)
        self._expect_ack(f"payload for {name}")

    def send_job(self, queue: str, control_name: str, control: bytes, data_name: str, data: bytes) -> None:
        self.start(queue)
        self.send_file(SUBCMD_CONTROL, control_name, control)
        self.send_file(SUBCMD_DATA, data_name, data)

    def close(self) -> None:
        self.channel.close()

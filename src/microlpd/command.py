from __future__ import annotations

import enum
import re
from dataclasses import dataclass

from .constants import MAX_CONTROL_LEN, MAX_DECLARED_LEN, RECEIVE_JOB, SUBCMD_CONTROL, SUBCMD_DATA
from .errors import BadFilename, BadLength, EmptyQueueName, FileTooBig, UnsupportedCommand
from .sanitize import sanitize

_DIGITS = re.compile(rb"[0-9]+")


def _text(raw: bytes) -> str:
    # latin-1 maps every byte; the sanitizer throws away anything non-ASCII
    return raw.decode("latin-1")


class SubcommandKind(enum.IntEnum):
    CONTROL = SUBCMD_CONTROL
    DATA = SUBCMD_DATA

    @classmethod
    def of(cls, raw: bytes) -> "SubcommandKind":
        code = raw[0]
        try:
            return cls(code)
        except ValueError:
            raise UnsupportedCommand(code) from None


@dataclass(frozen=True, slots=True)
class JobRequest:
    queue: str

    @staticmethod
    def from_bytes(raw: bytes) -> "JobRequest":
        if raw[0] != RECEIVE_JOB:
            raise UnsupportedCommand(raw[0])
        queue = sanitize(_text(raw[1:]))
        if not queue:
            raise EmptyQueueName()
        return JobRequest(queue=queue)


@dataclass(frozen=True, slots=True)
class Subcommand:
    kind: SubcommandKind
    length: int
    filename: str

    @property
    def is_control(self) -> bool:
        return self.kind is SubcommandKind.CONTROL

    @staticmethod
    def from_bytes(raw: bytes) -> "Subcommand":
        kind = SubcommandKind.of(raw)
        line = raw[1:].split(b"\n", 1)[0]
        head, sep, fname = line.partition(b" ")
        if not sep:
            raise BadFilename()

        if not _DIGITS.fullmatch(head):
            raise BadLength()
        length = int(head)
        if length > MAX_DECLARED_LEN:
            raise BadLength()
        if kind is SubcommandKind.CONTROL and length > MAX_CONTROL_LEN:
            raise FileTooBig()

        return Subcommand(kind=kind, length=length, filename=_text(fname))

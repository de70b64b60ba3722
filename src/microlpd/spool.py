from __future__ import annotations

import enum
import logging
import os
from typing import BinaryIO

from .command import SubcommandKind
from .constants import COMMITTED_MODE, IN_FLIGHT_MODE
from .errors import OpenFailed

_EXCL_FLAGS = os.O_CREAT | os.O_WRONLY | os.O_TRUNC | os.O_EXCL
_SINK_FLAGS = os.O_RDWR | os.O_APPEND
# a queue only has to be searchable, like chdir
_QUEUE_FLAGS = (getattr(os, "O_SEARCH", 0) or getattr(os, "O_PATH", os.O_RDONLY)) | os.O_DIRECTORY


class QueueMode(enum.Enum):
    SINK = "sink"
    SPOOLING = "spooling"


class Received(enum.Flag):
    NOTHING = 0
    CONTROL = enum.auto()
    DATA = enum.auto()

    @classmethod
    def for_kind(cls, kind: SubcommandKind) -> "Received":
        return cls.CONTROL if kind is SubcommandKind.CONTROL else cls.DATA

    @property
    def complete(self) -> bool:
        return Received.CONTROL in self and Received.DATA in self


class Queue:
    """A peer-named queue under the spool directory.

    If the queue can be opened as a directory it is a spooling queue and
    job files are created inside it through the directory handle.
    Otherwise it is a sink that data is appended to.

    Used as a context manager: leaving the block with an exception removes
    every job file this instance created, committed or not.
    """

    def __init__(self, spool_dir: str, name: str):
        self.name = name
        self.path = os.path.join(spool_dir, name)
        self.dir_fd: int | None = None
        self.created: list[str] = []

    def __enter__(self) -> "Queue":
        try:
            fd = os.open(self.path, _QUEUE_FLAGS)
        except OSError as e:
            logging.debug("queue %s is not a directory (%s); sink mode", self.name, e.strerror)
            return self
        if not os.access(self.path, os.X_OK):
            logging.debug("queue %s is not searchable; sink mode", self.name)
            os.close(fd)
            return self
        self.dir_fd = fd
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is not None:
                self.discard()
        finally:
            if self.dir_fd is not None:
                os.close(self.dir_fd)
                self.dir_fd = None

    @property
    def mode(self) -> QueueMode:
        return QueueMode.SINK if self.dir_fd is None else QueueMode.SPOOLING

    def open_sink(self) -> BinaryIO:
        try:
            return open(self.path, "wb", opener=lambda path, _flags: os.open(path, _SINK_FLAGS))
        except OSError as e:
            raise OpenFailed(self.name, e) from e

    def create(self, filename: str) -> BinaryIO:
        """Exclusively create a job file, owner write-only until committed."""
        def opener(path: str, _flags: int) -> int:
            return os.open(path, _EXCL_FLAGS, IN_FLIGHT_MODE, dir_fd=self.dir_fd)

        try:
            f = open(filename, "wb", opener=opener)
        except OSError as e:
            raise OpenFailed(filename, e) from e
        self.created.append(filename)
        return f

    @staticmethod
    def commit(f: BinaryIO) -> None:
        os.fchmod(f.fileno(), COMMITTED_MODE)

    def take(self, filename: str) -> bytes:
        """Read a committed job file back and remove it."""
        fd = os.open(filename, os.O_RDONLY, dir_fd=self.dir_fd)
        with open(fd, "rb") as f:
            content = f.read()
        self.unlink(filename)
        return content

    def unlink(self, filename: str) -> None:
        os.unlink(filename, dir_fd=self.dir_fd)
        if filename in self.created:
            self.created.remove(filename)

    def discard(self) -> None:
        for filename in list(self.created):
            try:
                self.unlink(filename)
            except FileNotFoundError:
                self.created.remove(filename)
            else:
                logging.info("removed incomplete job file %s/%s", self.name, filename)

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass, field
from typing import Callable, Mapping, Sequence

from .channel import PeerChannel
from .command import JobRequest, Subcommand, SubcommandKind
from .errors import BadFilename, DuplicateSubcommand, IncompleteJob, NoCommand, SessionError
from .helper import exec_helper, helper_environment
from .sanitize import sanitize
from .spool import Queue, QueueMode, Received
from .transfer import receive_payload

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

Executor = Callable[[Sequence[str], Mapping[str, str], str], None]


@dataclass(slots=True)
class SessionState:
    queue: str | None = None
    mode: QueueMode | None = None
    received: Received = Received.NOTHING
    control_file: str | None = None
    data_file: str | None = None


@dataclass(slots=True)
class Session:
    """Receive one job over one connection.

    ``helper`` is the command line to run once both job files are stored;
    ``execute`` replaces the process with it and does not return in
    production.
    """

    channel: PeerChannel
    spool_dir: str = "."
    helper: Sequence[str] = ()
    execute: Executor = exec_helper
    state: SessionState = field(default_factory=SessionState)

    def run(self) -> int:
        try:
            self._serve()
        except SessionError as e:
            logging.warning("session failed: %s", e)
            if e.message is not None:
                self._tell(e.message)
            return EXIT_FAILURE
        except OSError as e:
            logging.error("session failed: %s", e)
            self._tell(str(e))
            return EXIT_FAILURE
        return EXIT_SUCCESS

    def _tell(self, message: str) -> None:
        # the peer may already be gone; the local log has the error
        with contextlib.suppress(OSError):
            self.channel.say(message)

    def _serve(self) -> None:
        raw = self.channel.read_command()
        if raw is None:
            raise NoCommand()
        request = JobRequest.from_bytes(raw)
        self.state.queue = request.queue

        with Queue(self.spool_dir, request.queue) as queue:
            self.state.mode = queue.mode
            logging.info("receiving job for queue %s (%s)", queue.name, queue.mode.value)
            self.channel.signal_ok()

            while True:
                raw = self.channel.read_command()
                if raw is None:
                    if queue.mode is QueueMode.SPOOLING and not self.state.received.complete:
                        raise IncompleteJob()
                    logging.info("peer closed; queue %s done", queue.name)
                    return

                self._receive_file(queue, raw)
                self.channel.signal_ok()

                if queue.mode is QueueMode.SPOOLING and self.state.received.complete and self.helper:
                    self._run_helper(queue)
                    return

    def _receive_file(self, queue: Queue, raw: bytes) -> None:
        bit = Received.for_kind(SubcommandKind.of(raw))
        if bit in self.state.received:
            raise DuplicateSubcommand()
        sub = Subcommand.from_bytes(raw)
        logging.debug("%s file %r, %d bytes", sub.kind.name.lower(), sub.filename, sub.length)

        if queue.mode is QueueMode.SINK:
            self._receive_into_sink(queue, sub)
        else:
            self._receive_into_spool(queue, sub)
        self.state.received |= bit

    def _receive_into_sink(self, queue: Queue, sub: Subcommand) -> None:
        if sub.is_control:
            self.channel.signal_ok()
            receive_payload(self.channel, None, sub.length)
            return
        with queue.open_sink() as sink:
            self.channel.signal_ok()
            receive_payload(self.channel, sink, sub.length)
        logging.info("appended %d bytes to %s", sub.length, queue.name)

    def _receive_into_spool(self, queue: Queue, sub: Subcommand) -> None:
        name = sanitize(sub.filename)
        if not name:
            raise BadFilename()
        with queue.create(name) as f:
            if sub.is_control:
                self.state.control_file = name
            else:
                self.state.data_file = name
            self.channel.signal_ok()
            receive_payload(self.channel, f, sub.length)
            queue.commit(f)
        logging.info("stored %s/%s (%d bytes)", queue.name, name, sub.length)

    def _run_helper(self, queue: Queue) -> None:
        if self.state.control_file is None or self.state.data_file is None:
            raise IncompleteJob()
        control = queue.take(self.state.control_file)
        env = helper_environment(self.state.data_file, control)
        self.execute(self.helper, env, queue.path)

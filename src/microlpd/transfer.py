from __future__ import annotations

import logging
from typing import BinaryIO

from .channel import PeerChannel
from .constants import ACK_OK, COPY_CHUNK_SIZE
from .errors import BadAcknowledgement, LengthMismatch


def copy_exact(channel: PeerChannel, dest: BinaryIO | None, length: int) -> int:
    """Move up to ``length`` bytes from the peer into ``dest``.

    ``dest=None`` reads and discards. Returns the number of bytes actually
    moved, which is short only when the peer closed the stream early.
    """
    copied = 0
    while copied < length:
        chunk = channel.read(min(COPY_CHUNK_SIZE, length - copied))
        if not chunk:
            break
        if dest is not None:
            dest.write(chunk)
        copied += len(chunk)
    if dest is not None:
        dest.flush()
    return copied


def receive_payload(channel: PeerChannel, dest: BinaryIO | None, length: int) -> None:
    """Copy one file payload and verify the trailing zero byte."""
    actual = copy_exact(channel, dest, length)
    if actual != length:
        raise LengthMismatch(length, actual)

    ack = channel.read(1)
    if ack != ACK_OK:
        logging.debug("bad trailing byte after %d bytes: %r", length, ack)
        raise BadAcknowledgement()

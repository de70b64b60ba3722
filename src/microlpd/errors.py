from __future__ import annotations


class SessionError(Exception):
    """Terminal failure of one session.

    ``message`` is the diagnostic line for the peer; ``None`` means the
    peer gets no text (it is not following the protocol anyway).
    """

    def __init__(self, message: str | None = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message


class UnsupportedCommand(SessionError):
    def __init__(self, code: int):
        super().__init__(f"Command {code:02x} is not supported")
        self.code = code


class DuplicateSubcommand(SessionError):
    def __init__(self) -> None:
        super().__init__("Duplicated subcommand")


class BadFilename(SessionError):
    def __init__(self) -> None:
        super().__init__("No or bad filename")


class BadLength(SessionError):
    def __init__(self) -> None:
        super().__init__("Bad length")


class FileTooBig(SessionError):
    def __init__(self) -> None:
        super().__init__("File is too big")


class LengthMismatch(SessionError):
    def __init__(self, expected: int, actual: int):
        super().__init__(f"Expected {expected} but got {actual} bytes")
        self.expected = expected
        self.actual = actual


class BadAcknowledgement(SessionError):
    def __init__(self) -> None:
        super().__init__(None)


class EmptyQueueName(SessionError):
    def __init__(self) -> None:
        super().__init__(None)


class IncompleteJob(SessionError):
    def __init__(self) -> None:
        super().__init__(None)


class OpenFailed(SessionError):
    def __init__(self, name: str, err: OSError):
        super().__init__(f"can't open '{name}': {err.strerror or err}")
        self.name = name
        self.errno = err.errno


class NoCommand(SessionError):
    def __init__(self) -> None:
        super().__init__(None)

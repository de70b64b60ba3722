from __future__ import annotations

RECEIVE_JOB = 0x02

SUBCMD_CONTROL = 0x02
SUBCMD_DATA = 0x03

ACK_OK = b"\x00"

MAX_COMMAND_LEN = 4 * 1024  # more than enough for any command line
MAX_CONTROL_LEN = 16 * 1024  # control files are read back into memory
MAX_DECLARED_LEN = 2**31 - 1

COPY_CHUNK_SIZE = 64 * 1024

IN_FLIGHT_MODE = 0o200  # owner write-only while a file is being received
COMMITTED_MODE = 0o600

DATAFILE_ENV = "DATAFILE"

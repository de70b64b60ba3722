"""Control-file parsing and helper invocation.

A control file is a list of directive lines, each a single letter
followed by its value::

    Hclient.example.org
    Palice
    Jreport.pdf
    ldfA001client

Every directive becomes an environment variable named by its letter.
The helper also gets ``DATAFILE``, the name the data file was actually
stored under; ``$l`` comes from the peer and must not be trusted.
"""
from __future__ import annotations

import errno
import logging
import os
import shutil
from typing import Mapping, NoReturn, Sequence

from .constants import DATAFILE_ENV


def parse_control(content: bytes) -> dict[str, str]:
    """Map directive letters to values.

    Parsing stops at the first line that does not start with an ASCII
    letter, and at a final line that lacks its newline.
    """
    directives: dict[str, str] = {}
    pos = 0
    while True:
        end = content.find(b"\n", pos)
        if end < 0:
            break
        line = content[pos:end]
        if not line[:1].isalpha():
            break
        value = line[1:].split(b"\0", 1)[0]
        directives[chr(line[0])] = os.fsdecode(value)
        pos = end + 1
    return directives


def helper_environment(
    datafile: str,
    control: bytes,
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Inherited environment plus ``DATAFILE`` and the control directives."""
    env = dict(os.environ if base is None else base)
    env[DATAFILE_ENV] = datafile
    env.update(parse_control(control))
    return env


def exec_helper(argv: Sequence[str], env: Mapping[str, str], cwd: str) -> NoReturn:
    """Replace the current process with the helper.

    The helper runs inside the queue directory with stdio on /dev/null so
    nothing it prints reaches the peer. If it cannot be started the error
    is raised with the original stdio back in place.
    """
    logging.info("exec helper %s in %s", " ".join(argv), cwd)
    os.chdir(cwd)
    program = shutil.which(argv[0], path=env.get("PATH", os.defpath))
    if program is None:
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), argv[0])

    saved = [os.dup(fd) for fd in (0, 1, 2)]
    devnull = os.open(os.devnull, os.O_RDWR)
    for fd in (0, 1, 2):
        os.dup2(devnull, fd)
    if devnull > 2:
        os.close(devnull)
    try:
        os.execve(program, list(argv), dict(env))
    except OSError:
        for fd, orig in zip((0, 1, 2), saved):
            os.dup2(orig, fd)
        raise
    finally:
        for orig in saved:
            os.close(orig)

"""Micro LPD: receive a single RFC 1179 print job.

One process serves one connection handed over on stdin/stdout:
- the queue is either a sink (device or file) or a spooling directory
- spooled jobs are stored as a control file and a data file
- a helper program, if given, is exec'd to print the spooled job

Nothing partial is left behind when a session fails.
"""

from .session import EXIT_FAILURE, EXIT_SUCCESS, Session

__all__ = ["EXIT_FAILURE", "EXIT_SUCCESS", "Session"]

from __future__ import annotations

import argparse
import logging
import os
import socket
import sys

from .channel import PeerChannel
from .client import DEFAULT_PORT, JobSender, build_control_file
from .session import Session

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logging(level: str, log_file: str | None) -> None:
    if log_file:
        logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT, filename=log_file)
    else:
        logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT, stream=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="microlpd",
        description="Receive one LPD print job on stdin/stdout (run from an inetd style listener).",
    )
    p.add_argument("--log-level", default="WARNING", choices=LOG_LEVELS)
    p.add_argument("--log-file", default=None, help="log here instead of stderr")
    p.add_argument("spool_dir", nargs="?", default=".", help="directory holding the queues")
    p.add_argument("helper", nargs=argparse.REMAINDER, help="program (and args) run for each spooled job")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_file)
    session = Session(PeerChannel.from_stdio(), spool_dir=args.spool_dir, helper=args.helper)
    return session.run()


def build_send_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="microlpd-send", description="Submit a file to an LPD receiver.")
    p.add_argument("--log-level", default="WARNING", choices=LOG_LEVELS)
    p.add_argument("--host", required=True)
    p.add_argument("--port", type=int, default=DEFAULT_PORT)
    p.add_argument("--queue", required=True)
    p.add_argument("--user", default=os.environ.get("USER", "nobody"))
    p.add_argument("--job-name", default=None)
    p.add_argument("--job-number", type=int, default=1)
    p.add_argument("file")
    return p


def send_main(argv: list[str] | None = None) -> int:
    args = build_send_parser().parse_args(argv)
    setup_logging(args.log_level, None)

    with open(args.file, "rb") as f:
        data = f.read()

    host = socket.gethostname()
    suffix = f"A{args.job_number % 1000:03d}{host}"
    data_name = "df" + suffix
    control = build_control_file(host, args.user, args.job_name or os.path.basename(args.file), data_name)

    sender = JobSender.connect(args.host, args.port)
    try:
        sender.send_job(args.queue, "cf" + suffix, control, data_name, data)
    finally:
        sender.close()
    logging.info("sent %d bytes to %s:%d queue %s", len(data), args.host, args.port, args.queue)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

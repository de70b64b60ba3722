from __future__ import annotations

import re

_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


def sanitize(name: str) -> str:
    """Drop every character outside ``[A-Za-z0-9_-]``.

    Peer-supplied queue and file names go through here before they touch
    the filesystem, so ``/``, ``.`` and whitespace can never survive.
    """
    return _UNSAFE.sub("", name)

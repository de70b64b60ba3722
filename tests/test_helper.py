from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

import pytest

from microlpd import helper
from microlpd.helper import helper_environment, parse_control

SRC = Path(__file__).resolve().parents[1] / "src"


def test_parse_directives():
    assert parse_control(b"Hhost\nPuser\nJtest\n") == {"H": "host", "P": "user", "J": "test"}


def test_stops_at_first_non_letter_line():
    content = b"Hhost\n1bogus\nPuser\n"
    assert parse_control(content) == {"H": "host"}


def test_stops_at_empty_line():
    assert parse_control(b"Hhost\n\nPuser\n") == {"H": "host"}


def test_unterminated_last_line_ignored():
    assert parse_control(b"Hhost\nPuser") == {"H": "host"}


def test_value_cut_at_nul():
    assert parse_control(b"Jab\x00cd\n") == {"J": "ab"}


def test_later_directive_wins():
    assert parse_control(b"Nfirst\nNsecond\n") == {"N": "second"}


def test_non_ascii_value_roundtrips_through_fs_encoding():
    env = parse_control(b"J\xe9t\xe9\n")
    assert os.fsencode(env["J"]) == b"\xe9t\xe9"


def test_environment_is_an_overlay():
    base = {"PATH": "/bin", "H": "stale"}
    env = helper_environment("dfA001host", b"Hhost\nldfEVIL\n", base)
    assert env == {"PATH": "/bin", "H": "host", "l": "dfEVIL", "DATAFILE": "dfA001host"}
    assert base == {"PATH": "/bin", "H": "stale"}


def test_environment_defaults_to_process_environment(monkeypatch):
    monkeypatch.setenv("MICROLPD_TEST", "1")
    env = helper_environment("df", b"")
    assert env["MICROLPD_TEST"] == "1"
    assert env["DATAFILE"] == "df"


def fake_stdio(monkeypatch):
    calls = []
    monkeypatch.setattr(helper.os, "chdir", lambda path: calls.append(("chdir", path)))
    monkeypatch.setattr(helper.os, "dup2", lambda fd, fd2: calls.append(("dup2", fd2)))
    return calls


def make_program(directory, name="print-job"):
    prog = directory / name
    prog.write_text("#!/bin/sh\nexit 0\n")
    prog.chmod(0o755)
    return prog


def test_exec_helper_replaces_process(monkeypatch, tmp_path):
    calls = fake_stdio(monkeypatch)
    monkeypatch.setattr(helper.os, "execve", lambda path, argv, env: calls.append(("exec", path, argv, env)))
    prog = make_program(tmp_path)
    env = {"DATAFILE": "df", "PATH": str(tmp_path)}

    helper.exec_helper(("print-job", "-q"), env, str(tmp_path))

    assert calls[0] == ("chdir", str(tmp_path))
    assert [c[1] for c in calls if c[0] == "dup2"] == [0, 1, 2]
    assert calls[-1] == ("exec", str(prog), ["print-job", "-q"], env)


def test_missing_helper_fails_before_redirecting(monkeypatch, tmp_path):
    calls = fake_stdio(monkeypatch)

    with pytest.raises(FileNotFoundError):
        helper.exec_helper(("no-such-helper",), {"PATH": str(tmp_path)}, str(tmp_path))

    assert [c for c in calls if c[0] == "dup2"] == []


def test_failed_exec_restores_stdio(monkeypatch, tmp_path):
    calls = fake_stdio(monkeypatch)

    def refuse(path, argv, env):
        raise PermissionError(13, "Permission denied", path)

    monkeypatch.setattr(helper.os, "execve", refuse)
    make_program(tmp_path)

    with pytest.raises(PermissionError):
        helper.exec_helper(("print-job",), {"PATH": str(tmp_path)}, str(tmp_path))

    # three onto /dev/null, then three back
    assert [c[1] for c in calls if c[0] == "dup2"] == [0, 1, 2, 0, 1, 2]


def test_missing_helper_reported_to_peer(tmp_path):
    spool = tmp_path / "spool1"
    spool.mkdir()
    script = (
        "import sys\n"
        "from microlpd.channel import PeerChannel\n"
        "from microlpd.session import Session\n"
        "session = Session(PeerChannel.from_stdio(), spool_dir=sys.argv[1], helper=['/nonexistent/helper'])\n"
        "sys.exit(session.run())\n"
    )
    stream = b"\x02spool1\n\x026 cfA001\nHhost\n\x00\x034 dfA001\npage\x00"
    env = dict(os.environ, PYTHONPATH=str(SRC))

    proc = subprocess.run(
        [sys.executable, "-c", script, str(tmp_path)],
        input=stream,
        capture_output=True,
        env=env,
        timeout=30,
    )

    assert proc.returncode == 1
    assert proc.stdout.startswith(b"\x00" * 5)
    assert b"No such file or directory" in proc.stdout
    assert os.listdir(spool) == []

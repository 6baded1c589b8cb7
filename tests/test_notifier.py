import subprocess
from types import SimpleNamespace

import wrapix_notify.services.notifier as notifier


def _which_only(*names):
    return lambda cmd: f"/usr/bin/{cmd}" if cmd in names else None


def test_notifier_falls_back_to_stderr(monkeypatch, capsys):
    monkeypatch.setattr(notifier.shutil, "which", lambda cmd: None)

    n = notifier.Notifier(platform="linux")
    assert n.backend == "stderr"
    assert n.notify("Title", "Message") is True
    out = capsys.readouterr()
    assert "[Notification] Title: Message" in out.err


def test_backend_selection(monkeypatch):
    monkeypatch.setattr(notifier.shutil, "which", _which_only("notify-send", "terminal-notifier", "osascript"))
    assert notifier.Notifier(platform="linux").backend == "notify-send"
    assert notifier.Notifier(platform="darwin").backend == "terminal-notifier"

    monkeypatch.setattr(notifier.shutil, "which", _which_only("osascript"))
    assert notifier.Notifier(platform="darwin").backend == "osascript"


def test_command_builders():
    assert notifier.notify_send_command("T", "-m", "Glass") == ["notify-send", "--", "T", "-m"]
    assert notifier.terminal_notifier_command("T", "M") == ["terminal-notifier", "-title", "T", "-message", "M"]
    assert notifier.terminal_notifier_command("T", "M", "Glass")[-2:] == ["-sound", "Glass"]

    cmd = notifier.osascript_command('say "hi"', "back\\slash", "Glass")
    assert cmd[:2] == ["osascript", "-e"]
    assert cmd[2] == 'display notification "back\\\\slash" with title "say \\"hi\\"" sound name "Glass"'


def test_notify_runs_command(monkeypatch):
    monkeypatch.setattr(notifier.shutil, "which", _which_only("notify-send"))
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append((cmd, kwargs))
        return SimpleNamespace(returncode=0, stdout="", stderr="")

    monkeypatch.setattr(notifier.subprocess, "run", fake_run)
    n = notifier.Notifier(platform="linux", timeout=4)
    assert n.notify("Build", "done") is True
    assert calls[0][0] == ["notify-send", "--", "Build", "done"]
    assert calls[0][1]["timeout"] == 4


def test_notify_failures_return_false(monkeypatch):
    monkeypatch.setattr(notifier.shutil, "which", _which_only("notify-send"))
    n = notifier.Notifier(platform="linux")

    monkeypatch.setattr(notifier.subprocess, "run", lambda cmd, **kw: SimpleNamespace(returncode=1, stdout="", stderr="no bus"))
    assert n.notify("T", "M") is False

    def timeout(cmd, **kw):
        raise subprocess.TimeoutExpired(cmd, kw.get("timeout"))

    monkeypatch.setattr(notifier.subprocess, "run", timeout)
    assert n.notify("T", "M") is False

    def missing(cmd, **kw):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(notifier.subprocess, "run", missing)
    assert n.notify("T", "M") is False

import json
import os
import stat
import sys

import pytest

from hostarq.daemon import ExitCode, HostARQError, HostARQHandle, exit_reason

_SCRIPT = """#!{python}
import fcntl, json, os, signal, sys, time

shm_dir = os.environ["HOSTARQ_TEST_SHM_DIR"]
mode = os.environ.get("HOSTARQ_TEST_MODE", "normal")
name, fd = sys.argv[1], int(sys.argv[2])
path = os.path.join(shm_dir, name)
if mode == "exit":
    sys.exit(int(os.environ["HOSTARQ_TEST_EXIT"]))
if mode == "kill":
    os.kill(os.getpid(), signal.SIGKILL)
with open(path + ".args", "w") as out:
    json.dump(sys.argv[1:], out)
if mode != "noshm":
    open(path, "w").close()

def stop(signum, frame):
    if os.path.exists(path):
        os.remove(path)
    sys.exit(0)

signal.signal(signal.SIGTERM, stop)
fcntl.fcntl(fd, fcntl.F_SETFL, fcntl.fcntl(fd, fcntl.F_GETFL) | os.O_NONBLOCK)
os.close(fd)
while True:
    time.sleep(0.05)
"""


@pytest.fixture
def env(tmp_path, monkeypatch):
    shm_dir = tmp_path / "shm"
    shm_dir.mkdir()
    lock_dir = tmp_path / "lock"
    script = tmp_path / "fake_daemon"
    script.write_text(_SCRIPT.format(python=sys.executable))
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    monkeypatch.setenv("HOSTARQ_TEST_SHM_DIR", str(shm_dir))
    return shm_dir, lock_dir, str(script)


def make_handle(name, shm_dir, lock_dir, init=True, queues=()):
    return HostARQHandle(
        name, name, 1234, 45054, 0, init, queues, shm_dir=str(shm_dir), lock_dir=str(lock_dir)
    )


def alive(pid):
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    return True


def test_exit_reasons():
    assert exit_reason(ExitCode.RESET_TIMEOUT) == "FPGA reset timeout reached"
    assert exit_reason(ExitCode.SUCCESS) == "Success. oO?"
    assert exit_reason(ExitCode.MAX_RESENDS) == "Maximum number of resends reached"
    assert exit_reason(99) == "Unknown return code: 99"


def test_daemon_arguments(tmp_path):
    handle = make_handle("127.0.0.1", tmp_path, tmp_path, init=True, queues=[7, 3])
    assert handle.daemon_arguments("hostarq_daemon", 5) == [
        "hostarq_daemon", "127.0.0.1", "5", "127.0.0.1",
        "1234", "45054", "0", "1", "2", "3", "7",
    ]


def test_handle_validation(tmp_path):
    with pytest.raises(ValueError):
        HostARQHandle("x" * 255, "127.0.0.1", 1, 2, 3, False)
    with pytest.raises(ValueError):
        HostARQHandle("name", "", 1, 2, 3, False)
    with pytest.raises(ValueError):
        HostARQHandle("name", "127.0.0.1", 70000, 2, 3, False)


def test_closing(env):
    shm_dir, lock_dir, daemon = env
    names = ["127.0.0.4", "127.0.0.5", "127.0.0.6"]
    handles = [make_handle(n, shm_dir, lock_dir, init=False) for n in names]
    for handle in handles:
        handle.open(daemon, 8)
    assert all((shm_dir / n).exists() for n in names)
    assert all(alive(h.pid) for h in handles)

    assert handles[0].close() == 0
    assert [(shm_dir / n).exists() for n in names] == [False, True, True]
    assert [alive(h.pid) for h in handles] == [False, True, True]

    assert handles[1].close() == 0
    assert [(shm_dir / n).exists() for n in names] == [False, False, True]
    assert [alive(h.pid) for h in handles] == [False, False, True]

    assert handles[2].close() == 0
    assert [(shm_dir / n).exists() for n in names] == [False, False, False]
    assert [alive(h.pid) for h in handles] == [False, False, False]


def test_daemon_receives_arguments(env):
    shm_dir, lock_dir, daemon = env
    handle = make_handle("127.0.0.1", shm_dir, lock_dir, queues=[0x2468])
    handle.open(daemon, 4)
    try:
        args = json.loads((shm_dir / "127.0.0.1.args").read_text())
        assert args[0] == "127.0.0.1"
        assert int(args[1]) > 2
        assert args[2:] == ["127.0.0.1", "1234", "45054", "0", "1", "1", str(0x2468)]
    finally:
        assert handle.close() == 0


def test_open_twice_raises(env):
    shm_dir, lock_dir, daemon = env
    handle = make_handle("127.0.0.2", shm_dir, lock_dir)
    handle.open(daemon, 4)
    try:
        with pytest.raises(HostARQError, match="already set"):
            handle.open(daemon, 4)
    finally:
        assert handle.close() == 0


def test_daemon_exit_code_reported(env, monkeypatch):
    shm_dir, lock_dir, daemon = env
    monkeypatch.setenv("HOSTARQ_TEST_MODE", "exit")
    monkeypatch.setenv("HOSTARQ_TEST_EXIT", str(int(ExitCode.RESET_TIMEOUT)))
    handle = make_handle("127.0.0.3", shm_dir, lock_dir)
    with pytest.raises(HostARQError, match="FPGA reset timeout reached"):
        handle.open(daemon, 4)


def test_daemon_signal_reported(env, monkeypatch):
    shm_dir, lock_dir, daemon = env
    monkeypatch.setenv("HOSTARQ_TEST_MODE", "kill")
    handle = make_handle("127.0.0.3", shm_dir, lock_dir)
    with pytest.raises(HostARQError, match="signal: 9"):
        handle.open(daemon, 4)


def test_too_many_queues(env):
    shm_dir, lock_dir, daemon = env
    handle = make_handle("127.0.0.7", shm_dir, lock_dir, queues=[1, 2, 3])
    with pytest.raises(HostARQError, match="too many unique queues"):
        handle.open(daemon, 2)
    assert handle.pid == 0


def test_close_without_open(tmp_path):
    handle = make_handle("127.0.0.8", tmp_path, tmp_path)
    with pytest.raises(HostARQError, match="pid isn't set"):
        handle.close()


def test_close_missing_shm_file(env, monkeypatch):
    shm_dir, lock_dir, daemon = env
    monkeypatch.setenv("HOSTARQ_TEST_MODE", "noshm")
    handle = make_handle("127.0.0.9", shm_dir, lock_dir)
    handle.open(daemon, 4)
    try:
        with pytest.raises(HostARQError, match="shm_path invalid"):
            handle.close()
    finally:
        os.kill(handle.pid, 15)


def test_lock_dir_not_a_directory(env, tmp_path):
    shm_dir, _, daemon = env
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    handle = make_handle("127.0.0.10", shm_dir, blocker)
    with pytest.raises(HostARQError, match="not a directory"):
        handle.open(daemon, 4)
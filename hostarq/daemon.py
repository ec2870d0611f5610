"""Starting and stopping the HostARQ daemon process for one connection."""

from __future__ import annotations

import enum
import fcntl
import os
import signal
import stat
import subprocess
import tempfile
import time
from typing import Iterable, List, Optional

__all__ = ["ExitCode", "HostARQError", "exit_reason", "HostARQHandle"]

NAME_MAX = 255
_POLL_INTERVAL = 0.01
_CLOSE_WAIT = 1.0


class ExitCode(enum.IntEnum):
    """Exit statuses reported by the daemon."""

    SUCCESS = 0
    UNSPECIFIED_FAILURE = 1
    RESET_TIMEOUT = 2
    FPGA_SETTINGS_MISMATCH = 3
    MAX_RESENDS = 4


class HostARQError(RuntimeError):
    """Raised when the daemon cannot be started or stopped."""


_REASONS = {
    ExitCode.UNSPECIFIED_FAILURE: "Unspecified error",
    ExitCode.RESET_TIMEOUT: "FPGA reset timeout reached",
    ExitCode.FPGA_SETTINGS_MISMATCH: "Settings mismatch between Host and FPGA",
    ExitCode.MAX_RESENDS: "Maximum number of resends reached",
    ExitCode.SUCCESS: "Success. oO?",
}


def exit_reason(returncode: int) -> str:
    """Describe a daemon exit status."""
    try:
        return _REASONS[ExitCode(returncode)]
    except ValueError:
        return f"Unknown return code: {returncode}"


def _check_port(name: str, port: int) -> int:
    if not 0 <= port <= 0xFFFF:
        raise ValueError(f"{name} {port} is not a valid UDP port")
    return port


class HostARQHandle:
    """Configuration and process state of one HostARQ daemon."""

    exit_signal = signal.SIGTERM

    def __init__(
        self,
        shm_name: str,
        remote_ip: str,
        udp_data_port: int,
        udp_reset_port: int,
        udp_data_local_port: int,
        init: bool,
        unique_queues: Iterable[int] = (),
        shm_dir: str = "/dev/shm",
        lock_dir: str = "/var/run/lock/hicann",
    ) -> None:
        if not shm_name:
            raise ValueError("shm_name parameter is unset")
        if len(shm_name) >= NAME_MAX:
            raise ValueError("Filename for shared-memory communication is too long")
        if not remote_ip:
            raise ValueError("remote_ip parameter is unset")
        self.shm_name = shm_name
        self.remote_ip = remote_ip
        self.udp_data_port = _check_port("udp_data_port", udp_data_port)
        self.udp_reset_port = _check_port("udp_reset_port", udp_reset_port)
        self.udp_data_local_port = _check_port("udp_data_local_port", udp_data_local_port)
        self.init = bool(init)
        self.unique_queues = sorted(set(unique_queues))
        self.shm_dir = shm_dir
        self.lock_dir = lock_dir
        self.shm_path = os.path.join(shm_dir, shm_name)
        self._process: Optional[subprocess.Popen] = None

    @property
    def pid(self) -> int:
        """Process id of the daemon, 0 if it was never started."""
        return self._process.pid if self._process is not None else 0

    def daemon_arguments(self, daemon: str, fd: int) -> List[str]:
        """Command line handed to the daemon; ``fd`` is the startup lockfile."""
        return [
            daemon,
            self.shm_name,
            str(fd),
            self.remote_ip,
            str(self.udp_data_port),
            str(self.udp_reset_port),
            str(self.udp_data_local_port),
            str(int(self.init)),
            str(len(self.unique_queues)),
            *(str(queue) for queue in self.unique_queues),
        ]

    def _prepare_lock_dir(self) -> None:
        try:
            os.mkdir(self.lock_dir, 0o777)
        except FileExistsError:
            try:
                info = os.stat(self.lock_dir)
            except OSError as exc:
                raise HostARQError(
                    f"Could not perform stat() on lockdir ({self.lock_dir}): {exc.strerror}"
                ) from exc
            if not stat.S_ISDIR(info.st_mode):
                raise HostARQError(f"lockdir ({self.lock_dir}) exists but is not a directory!")
            if not info.st_mode & (stat.S_IRWXU | stat.S_IRWXG | stat.S_IRWXO):
                raise HostARQError(f"lockdir ({self.lock_dir}) exists but has wrong mode")
        except OSError as exc:
            raise HostARQError(
                f"Failed to create lockdir ({self.lock_dir}): {exc.strerror}"
            ) from exc
        else:
            try:
                os.chmod(self.lock_dir, 0o777)
            except OSError as exc:
                raise HostARQError(
                    f"Could not set lockdir ({self.lock_dir}) mode: {exc.strerror}"
                ) from exc

    def open(self, daemon: str, max_unique_queues: int) -> None:
        """Start the daemon and wait until it reports a finished startup."""
        if self._process is not None:
            raise HostARQError("pid is already set")
        if len(self.unique_queues) > max_unique_queues:
            raise HostARQError(
                "too many unique queues specified (limited by MAX_UNIQUE_QUEUES)"
            )
        self._prepare_lock_dir()
        try:
            fd, _ = tempfile.mkstemp(prefix="hostarq_startup_", dir=self.lock_dir)
        except OSError as exc:
            raise HostARQError(
                f"Could not create/open startup lockfile in {self.lock_dir}: {exc.strerror}"
            ) from exc
        try:
            flag = fcntl.fcntl(fd, fcntl.F_GETFL)
            try:
                self._process = subprocess.Popen(
                    self.daemon_arguments(daemon, fd), pass_fds=(fd,)
                )
            except OSError as exc:
                raise HostARQError(f"Could not spawn HostARQ daemon: {exc}") from exc
            self._await_startup(fd, flag)
        finally:
            os.close(fd)

    def _await_startup(self, fd: int, flag: int) -> None:
        assert self._process is not None
        while True:
            # the daemon changes the file status flags once it is up
            if fcntl.fcntl(fd, fcntl.F_GETFL) != flag:
                return
            status = self._process.poll()
            if status is not None:
                if status < 0:
                    raise HostARQError(
                        f"HostARQ daemon terminated due to signal: {-status}"
                    )
                raise HostARQError(
                    "HostARQ daemon terminated unexpectedly. Reason: " + exit_reason(status)
                )
            time.sleep(_POLL_INTERVAL)

    def close(self) -> int:
        """Ask the daemon to stop; return its exit status once it and its file are gone."""
        if self._process is None:
            raise HostARQError("pid isn't set")
        if not os.path.exists(self.shm_path):
            raise HostARQError(f'shm_path invalid: "{self.shm_path}"?')
        exited: Optional[int] = None
        for _ in range(int(_CLOSE_WAIT / _POLL_INTERVAL)):
            if exited is None:
                self._process.send_signal(self.exit_signal)
                exited = self._process.poll()
            if exited is not None and not os.path.exists(self.shm_path):
                return exited
            time.sleep(_POLL_INTERVAL)
        if exited is not None:
            try:
                os.unlink(self.shm_path)
            except OSError:
                pass
            raise HostARQError(
                f"Shared memory file {self.shm_path} still existing after 1s wait"
            )
        raise HostARQError("Failed to kill hostarq process")
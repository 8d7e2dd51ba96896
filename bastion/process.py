"""Bounded execution of external diagnostic commands.

Every check reaches the host through a ``ProcessRunner``. The system runner
never raises for launch failure or timeout and never blocks past
``timeout + grace_period``:

- stdout and stderr are drained concurrently with the wait (``communicate``),
  so a child writing more than a pipe buffer before exiting cannot deadlock.
- The wait itself is the race between completion and the timeout. Whichever
  side observes the outcome first owns teardown: on ``TimeoutExpired`` this
  call alone terminates the process group, waits the grace window, then
  kills it. The completion side never signals anything.
- Children run in their own session so the whole group (including shells'
  grandchildren that would otherwise hold the pipes open) is torn down.

No state is shared between invocations; one runner can serve many threads.
"""
from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from dataclasses import dataclass
from typing import Protocol, Sequence

logger = logging.getLogger(__name__)

HARDENED_PATH = "/usr/local/bin:/usr/bin:/bin:/usr/sbin:/sbin"

MIN_TIMEOUT = 0.1
MAX_TIMEOUT = 300.0
DEFAULT_TIMEOUT = 10.0
DEFAULT_GRACE_PERIOD = 0.5

# Exit code reported when the command never produced one of its own
SYNTHETIC_EXIT_CODE = -1


@dataclass(frozen=True)
class ProcessResult:
    exit_code: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


class ProcessRunner(Protocol):
    """Anything that can run a command the way checks expect."""

    def run(
        self,
        executable: str,
        arguments: Sequence[str] = (),
        timeout: float = DEFAULT_TIMEOUT,
    ) -> ProcessResult:
        ...


def clamp_timeout(timeout: float) -> float:
    """Keep a misconfigured timeout from hanging or short-circuiting the audit."""
    return max(MIN_TIMEOUT, min(float(timeout), MAX_TIMEOUT))


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace").strip()


class SystemProcessRunner:
    """Runs real processes with a hardened PATH and enforced timeouts."""

    def __init__(
        self,
        path: str = HARDENED_PATH,
        grace_period: float = DEFAULT_GRACE_PERIOD,
    ) -> None:
        self.path = path
        self.grace_period = grace_period

    def _environment(self) -> dict[str, str]:
        env = dict(os.environ)
        env["PATH"] = self.path
        return env

    def run(
        self,
        executable: str,
        arguments: Sequence[str] = (),
        timeout: float = DEFAULT_TIMEOUT,
    ) -> ProcessResult:
        limit = clamp_timeout(timeout)
        argv = [executable, *arguments]
        started = time.monotonic()

        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=self._environment(),
                start_new_session=True,
            )
        except (OSError, ValueError) as e:
            logger.warning("Failed to launch %s: %s", executable, e)
            return ProcessResult(
                exit_code=SYNTHETIC_EXIT_CODE,
                stdout="",
                stderr=f"Failed to launch {executable}: {e}",
            )

        try:
            out, err = proc.communicate(timeout=limit)
        except subprocess.TimeoutExpired:
            out, err = self._tear_down(proc)
            logger.warning(
                "%s timed out after %.1fs (pid %s)", executable, limit, proc.pid,
            )
            return ProcessResult(
                exit_code=SYNTHETIC_EXIT_CODE,
                stdout=_decode(out),
                stderr=_decode(err),
                timed_out=True,
            )

        logger.debug(
            "run: %s exit=%s %.3fs",
            " ".join(argv), proc.returncode, time.monotonic() - started,
        )
        return ProcessResult(
            exit_code=proc.returncode,
            stdout=_decode(out),
            stderr=_decode(err),
        )

    def _tear_down(self, proc: subprocess.Popen) -> tuple[bytes, bytes]:
        """Terminate, wait the grace window, then kill. Returns partial output."""
        self._signal_group(proc, signal.SIGTERM)
        try:
            return proc.communicate(timeout=self.grace_period)
        except subprocess.TimeoutExpired:
            pass

        self._signal_group(proc, signal.SIGKILL)
        try:
            return proc.communicate(timeout=self.grace_period)
        except subprocess.TimeoutExpired:
            # Something outside the group still holds the pipes; stop reading.
            logger.warning("pipes still open after SIGKILL (pid %s)", proc.pid)
            for stream in (proc.stdout, proc.stderr):
                if stream is not None:
                    stream.close()
            proc.wait()
            return b"", b""

    @staticmethod
    def _signal_group(proc: subprocess.Popen, sig: signal.Signals) -> None:
        # The group can outlive its leader; signal it even after the leader exits.
        try:
            os.killpg(proc.pid, sig)
        except ProcessLookupError:
            pass
        except PermissionError:
            proc.send_signal(sig)

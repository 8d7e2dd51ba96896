"""Tests for the process execution primitive against real child processes."""
import signal
import sys
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from bastion.process import (
    MAX_TIMEOUT,
    MIN_TIMEOUT,
    SYNTHETIC_EXIT_CODE,
    ProcessResult,
    SystemProcessRunner,
    clamp_timeout,
)

PY = sys.executable

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX process groups")


# ── Helpers ─────────────────────────────────────────────────────────


def python(code: str, runner: SystemProcessRunner | None = None, timeout: float = 10.0):
    runner = runner or SystemProcessRunner(grace_period=0.2)
    return runner.run(PY, ["-c", code], timeout=timeout)


# ── Basic execution ─────────────────────────────────────────────────


def test_captures_and_trims_output():
    """stdout and stderr are captured separately and whitespace-trimmed."""
    result = python("import sys; print('  hello  '); print('oops', file=sys.stderr)")
    assert result.exit_code == 0
    assert result.stdout == "hello"
    assert result.stderr == "oops"
    assert result.succeeded
    assert not result.timed_out


def test_nonzero_exit_is_not_success():
    result = python("import sys; sys.exit(3)")
    assert result.exit_code == 3
    assert not result.succeeded


def test_hardened_path():
    """The child sees the fixed PATH, not the caller's."""
    runner = SystemProcessRunner(path="/usr/bin:/bin", grace_period=0.2)
    result = python("import os; print(os.environ['PATH'])", runner)
    assert result.stdout == "/usr/bin:/bin"


def test_launch_failure_returns_synthetic_result():
    """A missing executable never raises; it yields exit -1 and a diagnostic."""
    result = SystemProcessRunner().run("/nonexistent/definitely-not-here", ["x"])
    assert result.exit_code == SYNTHETIC_EXIT_CODE
    assert not result.timed_out
    assert not result.succeeded
    assert "Failed to launch" in result.stderr


def test_large_output_does_not_deadlock():
    """1 MB on stdout before exit is drained while waiting."""
    start = time.monotonic()
    result = python("import sys; sys.stdout.write('x' * (1024 * 1024))", timeout=20.0)
    assert result.succeeded
    assert len(result.stdout) == 1024 * 1024
    assert time.monotonic() - start < 20.0


def test_large_output_on_both_streams():
    code = (
        "import sys\n"
        "for _ in range(64):\n"
        "    sys.stdout.write('o' * 16384)\n"
        "    sys.stderr.write('e' * 16384)\n"
    )
    result = python(code, timeout=20.0)
    assert result.succeeded
    assert len(result.stdout) == len(result.stderr) == 64 * 16384


# ── Timeouts ────────────────────────────────────────────────────────


def test_timeout_terminates_process():
    """A sleeping child is stopped and reported as timed out."""
    start = time.monotonic()
    result = python("import time; time.sleep(60)", timeout=0.5)
    elapsed = time.monotonic() - start
    assert result.timed_out
    assert result.exit_code == SYNTHETIC_EXIT_CODE
    assert not result.succeeded
    assert elapsed < 0.5 + 2 * 0.2 + 2.0


def test_timeout_force_kills_when_sigterm_ignored():
    """SIGTERM is ignored, so the call escalates to SIGKILL after the grace window."""
    code = (
        "import signal, time\n"
        "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
        "print('ready', flush=True)\n"
        "time.sleep(60)\n"
    )
    runner = SystemProcessRunner(grace_period=0.3)
    start = time.monotonic()
    result = python(code, runner, timeout=2.0)
    elapsed = time.monotonic() - start
    assert result.timed_out
    assert elapsed < 2.0 + 2 * 0.3 + 2.0
    # Partial output survives the teardown
    assert result.stdout == "ready"


def test_timeout_kills_grandchildren():
    """The whole process group goes, so an inherited pipe cannot stall the call."""
    code = (
        "import subprocess, sys, time\n"
        f"subprocess.Popen([{PY!r}, '-c', 'import time; time.sleep(60)'])\n"
        "time.sleep(60)\n"
    )
    start = time.monotonic()
    result = python(code, timeout=0.5)
    assert result.timed_out
    assert time.monotonic() - start < 0.5 + 2 * 0.2 + 3.0


def test_orphaned_group_gets_sigterm_first(tmp_path):
    """The leader exits early, yet its grandchild still sees SIGTERM before SIGKILL."""
    marker = tmp_path / "terminated"
    grandchild = (
        "import signal, sys, time\n"
        f"def stop(*_):\n    open({str(marker)!r}, 'w').close()\n    sys.exit(0)\n"
        "signal.signal(signal.SIGTERM, stop)\n"
        "time.sleep(60)\n"
    )
    code = f"import subprocess\nsubprocess.Popen([{PY!r}, '-c', {grandchild!r}])\n"
    result = python(code, SystemProcessRunner(grace_period=1.0), timeout=1.5)
    assert result.timed_out
    assert marker.exists()


def test_signal_group_after_leader_exit(monkeypatch):
    sent = []
    monkeypatch.setattr("bastion.process.os.killpg", lambda pid, sig: sent.append((pid, sig)))

    class ExitedLeader:
        pid = 4242

        def poll(self):
            return 0

    SystemProcessRunner._signal_group(ExitedLeader(), signal.SIGTERM)
    assert sent == [(4242, signal.SIGTERM)]


@pytest.mark.parametrize("given,expected", [
    (0, MIN_TIMEOUT), (-5, MIN_TIMEOUT), (0.05, MIN_TIMEOUT),
    (5, 5.0), (MAX_TIMEOUT + 1, MAX_TIMEOUT), (1e9, MAX_TIMEOUT),
])
def test_clamp_timeout(given, expected):
    assert clamp_timeout(given) == expected


# ── Concurrency ─────────────────────────────────────────────────────


def test_concurrent_invocations_do_not_cross_attribute():
    """Each of N parallel calls gets exactly its own output back."""
    runner = SystemProcessRunner(grace_period=0.2)

    def job(i: int) -> tuple[int, ProcessResult]:
        code = f"import time, sys; time.sleep(0.{i % 5}); print('job-{i}'); print('err-{i}', file=sys.stderr)"
        return i, runner.run(PY, ["-c", code], timeout=20.0)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(job, range(24)))

    for i, result in results:
        assert result.succeeded
        assert result.stdout == f"job-{i}"
        assert result.stderr == f"err-{i}"


def test_concurrent_mixed_timeouts():
    """A timing-out call does not disturb its neighbours."""
    runner = SystemProcessRunner(grace_period=0.2)
    with ThreadPoolExecutor(max_workers=4) as pool:
        slow = pool.submit(runner.run, PY, ["-c", "import time; time.sleep(60)"], 0.5)
        fast = [pool.submit(runner.run, PY, ["-c", f"print({n})"], 20.0) for n in range(3)]
        assert slow.result().timed_out
        assert [f.result().stdout for f in fast] == ["0", "1", "2"]

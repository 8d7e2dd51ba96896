"""Code-signing status via the codesign tool."""
from __future__ import annotations

from dataclasses import dataclass

from bastion.process import ProcessRunner
from bastion.sanitize import sanitize_output

CODESIGN = "/usr/bin/codesign"


@dataclass(frozen=True)
class SigningInfo:
    is_signed: bool
    is_apple: bool
    identity: str
    detail: str


def validate_path(runner: ProcessRunner, path: str) -> SigningInfo:
    """Inspect a binary on disk. codesign -dv reports on stderr."""
    result = runner.run(CODESIGN, ["-dv", "--verbose=2", path], timeout=10.0)
    output = result.stderr

    if result.exit_code != 0 or "code object is not signed" in output:
        return SigningInfo(False, False, "unsigned", "Binary is not code signed")

    identity = "unknown"
    for line in output.splitlines():
        if line.startswith("Authority="):
            identity = line[len("Authority="):]
            break
    is_apple = "Apple" in identity or "Software Signing" in identity
    return SigningInfo(True, is_apple, identity, f"Signed by: {identity}")


def validate_pid(runner: ProcessRunner, pid: str) -> SigningInfo:
    """Verify the signature of a running process."""
    result = runner.run(CODESIGN, ["-v", "--pid", pid], timeout=5.0)
    if result.succeeded:
        return SigningInfo(True, False, "valid", "Process has valid signature")
    return SigningInfo(
        False, False, "unsigned/invalid", sanitize_output(result.stderr, max_length=200),
    )

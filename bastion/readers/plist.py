"""Property-list reading without shelling out."""
from __future__ import annotations

import plistlib
from pathlib import Path
from typing import Any


class PlistError(Exception):
    pass


class PlistNotFound(PlistError):
    pass


class PlistInvalid(PlistError):
    pass


class PlistKeyMissing(PlistError):
    pass


def read_plist(path: str | Path) -> dict[str, Any]:
    """Load a plist whose root is a dictionary (XML or binary)."""
    p = Path(path)
    if not p.is_file():
        raise PlistNotFound(str(p))
    try:
        with open(p, "rb") as f:
            data = plistlib.load(f)
    except (plistlib.InvalidFileException, ValueError, OSError) as e:
        raise PlistInvalid(f"{p}: {e}") from e
    if not isinstance(data, dict):
        raise PlistInvalid(f"{p}: root is {type(data).__name__}, expected dict")
    return data


def read_plist_string(path: str | Path, key: str) -> str:
    value = read_plist(path).get(key)
    if not isinstance(value, str):
        raise PlistKeyMissing(key)
    return value


def read_plist_bool(path: str | Path, key: str) -> bool:
    value = read_plist(path).get(key)
    # bool is an int subclass; both map onto truthiness
    if isinstance(value, (bool, int)):
        return bool(value)
    raise PlistKeyMissing(key)


def launch_program(plist: dict[str, Any]) -> str | None:
    """The executable a launchd job starts: Program, else ProgramArguments[0]."""
    program = plist.get("Program")
    if isinstance(program, str) and program:
        return program
    args = plist.get("ProgramArguments")
    if isinstance(args, list) and args and isinstance(args[0], str):
        return args[0]
    return None

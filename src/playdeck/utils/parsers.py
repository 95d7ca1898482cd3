"""
Argument and command parsing utilities.

Cross-cutting utilities for parsing REPL input and command arguments.
"""

from typing import List


def parse_command(user_input: str) -> tuple[str, List[str]]:
    """
    Parse user input into command and arguments.

    Args:
        user_input: Raw user input string

    Returns:
        Tuple of (command, args) where command is lowercase and args is a list
    """
    parts = user_input.strip().split()
    if not parts:
        return "", []

    command = parts[0].lower()
    args = parts[1:] if len(parts) > 1 else []
    return command, args


def parse_track_number(arg: str) -> int:
    """
    Convert a 1-based track number typed by the user into a 0-based index.

    Range checking is left to the playlist, which reports it with the
    track count.

    Raises:
        ValueError: If arg is not an integer
    """
    try:
        number = int(arg)
    except ValueError:
        raise ValueError(f"'{arg}' is not a track number") from None
    return number - 1


def parse_on_off(arg: str) -> bool:
    """
    Parse an on/off style toggle argument.

    Raises:
        ValueError: If arg is not a recognised toggle value
    """
    value = arg.lower()
    if value in ("on", "true", "yes", "1"):
        return True
    if value in ("off", "false", "no", "0"):
        return False
    raise ValueError(f"Expected 'on' or 'off', got '{arg}'")


def parse_float(arg: str, name: str) -> float:
    """
    Parse a numeric argument.

    Raises:
        ValueError: If arg is not a number
    """
    try:
        return float(arg)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{arg}'") from None


__all__ = ["parse_command", "parse_track_number", "parse_on_off", "parse_float"]

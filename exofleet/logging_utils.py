"""Logging utilities for exofleet simulations.

Provides color-coded console output so the deterministic tick work, successes,
errors and run metadata are easy to tell apart when watching a run scroll by.
"""

import os
from enum import Enum


class Color(Enum):
    """ANSI color codes for terminal output."""

    BLUE = "\033[94m"      # Deterministic steps (generation, movement, merges)
    YELLOW = "\033[93m"    # Warnings (declined actions, degraded behaviour)
    RED = "\033[91m"       # Errors
    GREEN = "\033[92m"     # Success/completion
    CYAN = "\033[96m"      # Info/metadata

    # Formatting
    BOLD = "\033[1m"
    RESET = "\033[0m"


# Markers for message types (color-blind accessible)
LOG_TAG_DETERMINISTIC = "[•]"
LOG_TAG_WARNING = "[?]"
LOG_TAG_ERROR = "[!]"
LOG_TAG_SUCCESS = "[✓]"
LOG_TAG_INFO = "[i]"


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap text in ANSI color codes if colors are enabled.

    Args:
        text: Text to colorize
        color: Color to apply
        bold: Whether to make text bold

    Returns:
        Colorized text unless NO_COLOR or EXOFLEET_NO_COLOR is set, otherwise plain text
    """
    if os.getenv("NO_COLOR") or os.getenv("EXOFLEET_NO_COLOR"):
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix

    return f"{prefix}{text}{Color.RESET.value}"


def is_quiet() -> bool:
    """Return True when informational output is silenced (EXOFLEET_QUIET)."""
    return bool(os.getenv("EXOFLEET_QUIET"))


def is_verbose() -> bool:
    """Return True when per-robot chatter is enabled (EXOFLEET_VERBOSE)."""
    return bool(os.getenv("EXOFLEET_VERBOSE")) and not is_quiet()


def log_deterministic(message: str) -> None:
    """Log a deterministic simulation step (blue)."""
    if is_quiet():
        return
    print(colored(f"{LOG_TAG_DETERMINISTIC} {message}", Color.BLUE))


def log_warning(message: str) -> None:
    """Log a warning (yellow)."""
    print(colored(f"{LOG_TAG_WARNING} {message}", Color.YELLOW))


def log_error(message: str) -> None:
    """Log an error (red). Errors are printed even in quiet mode."""
    print(colored(f"{LOG_TAG_ERROR} {message}", Color.RED))


def log_success(message: str) -> None:
    """Log a success (green)."""
    if is_quiet():
        return
    print(colored(f"{LOG_TAG_SUCCESS} {message}", Color.GREEN))


def log_info(message: str) -> None:
    """Log metadata/info (cyan)."""
    if is_quiet():
        return
    print(colored(f"{LOG_TAG_INFO} {message}", Color.CYAN))


def log_verbose(message: str) -> None:
    """Log per-robot detail, only when EXOFLEET_VERBOSE is set."""
    if not is_verbose():
        return
    print(colored(f"  {LOG_TAG_DETERMINISTIC} {message}", Color.BLUE))

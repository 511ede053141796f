import sys
from typing import Optional

import colorama

colorama.init()

COLOR_SUCCESS = colorama.Fore.GREEN
COLOR_WARNING = colorama.Fore.YELLOW
COLOR_ERROR = colorama.Fore.RED
COLOR_INFO = colorama.Fore.CYAN
COLOR_RESET = colorama.Style.RESET_ALL

IS_TTY = sys.stdout.isatty()


def _is_quiet(quiet_arg: Optional[bool]) -> bool:
    """Helper to determine if output should be suppressed."""
    return quiet_arg is True


def _print_colored(message: str, color: str, file=None, quiet: Optional[bool] = False):
    """Internal function to print a message with a specified color."""
    if _is_quiet(quiet):
        return
    if file is None:
        file = sys.stdout

    if IS_TTY:
        print(f"{color}{message}{COLOR_RESET}", file=file)
    else:
        print(message, file=file)


def print_success(message: str, quiet: Optional[bool] = False):
    """Prints a message in the 'success' color (green)."""
    _print_colored(message, COLOR_SUCCESS, quiet=quiet)


def print_warning(message: str, quiet: Optional[bool] = False):
    """Prints a message in the 'warning' color (yellow)."""
    _print_colored(message, COLOR_WARNING, quiet=quiet)


def print_error(message: str, quiet: Optional[bool] = False):
    """Prints a message in the 'error' color (red) to stderr."""
    _print_colored(message, COLOR_ERROR, file=sys.stderr, quiet=quiet)


def print_info(message: str, quiet: Optional[bool] = False):
    """Prints a message in the 'info' color (cyan)."""
    _print_colored(message, COLOR_INFO, quiet=quiet)


def print_summary(passed: int, minor: int, failed: int, quiet: Optional[bool] = False):
    """Prints the tally of a check run, coloured by its worst outcome.

    The summary is printed even in quiet mode, uncoloured, since it is the
    one line a script running the checker needs.
    """
    line = f"{passed} passed, {minor} minor, {failed} failed"
    if _is_quiet(quiet):
        print(line)
        return

    color = COLOR_ERROR if failed else COLOR_WARNING if minor else COLOR_SUCCESS
    if IS_TTY:
        print(f"\n{COLOR_INFO}--- State Check Summary ---{COLOR_RESET}")
        print(f"{color}{line}{COLOR_RESET}")
        print(f"{COLOR_INFO}---------------------------{COLOR_RESET}")
    else:
        print("\n--- State Check Summary ---")
        print(line)
        print("---------------------------")

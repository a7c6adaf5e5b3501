"""Console messages for solver runs and benchmark scripts.

Colors are switched off once at import when stdout is not a terminal, so
captured output (pipes, pytest) stays plain text.
"""

import sys

# Width of the label column in end-of-run reports
FIELD_WIDTH = 22


class Colors:
    """ANSI escape codes used by the message helpers."""

    BLUE: str = "\033[94m"
    GREEN: str = "\033[92m"
    YELLOW: str = "\033[93m"
    RED: str = "\033[91m"
    RESET: str = "\033[0m"
    BOLD: str = "\033[1m"

    @classmethod
    def is_tty(cls) -> bool:
        return sys.stdout.isatty()

    @classmethod
    def disable(cls) -> None:
        for name in ("BLUE", "GREEN", "YELLOW", "RED", "RESET", "BOLD"):
            setattr(cls, name, "")


if not Colors.is_tty():
    Colors.disable()


def info(message: str) -> None:
    """Print an informational message.

    Example:
        >>> info("Method: cg (nmax_iter=100)")
        [INFO] Method: cg (nmax_iter=100)
    """
    print(f"{Colors.BLUE}[INFO]{Colors.RESET} {message}")


def field(label: str, value: object, width: int = FIELD_WIDTH) -> None:
    """Print one ``label : value`` line of a run report, labels left-aligned.

    Example:
        >>> field("Number of variables", 2)
        [INFO] Number of variables    : 2
    """
    info(f"{label:<{width}} : {value}")


def success(message: str) -> None:
    print(f"{Colors.GREEN}✓{Colors.RESET} {message}")


def warning(message: str) -> None:
    """Print a warning, e.g. a line search that could not improve the objective."""
    print(f"{Colors.YELLOW}[WARNING]{Colors.RESET} {message}")


def error(message: str) -> None:
    """Print an error message to stderr."""
    print(f"{Colors.RED}[ERROR]{Colors.RESET} {message}", file=sys.stderr)


def banner(message: str, char: str = "*", width: int = 56) -> None:
    """Print ``message`` framed by two rules of ``char``.

    Example:
        >>> banner("End of the main optimization loop")
        ********************************************************
        End of the main optimization loop
        ********************************************************
    """
    rule = char * width
    print(rule)
    print(f"{Colors.BOLD}{message}{Colors.RESET}")
    print(rule)

"""Command line entry point for greplog.

Usage:
    greplog <log_file> <module_name> <pattern> [up_lines] [bot_lines] [-s]

Each run reports the lines matching <pattern> that were appended to
<log_file> since the previous run for the same module. The first run for a
module and log file only records the current end of file.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence

from .config import GrepLogConfig, load_config
from .errors import GrepLogError, UsageError
from .logging_manager import LoggingManager
from .models import Invocation
from .renderer import render, write_output
from .service import GrepLogService

USAGE = "greplog <log_file> <module_name> <pattern> [up_lines] [bot_lines] [-s]"

_STRIP_CHARS = " \t\r\n"


def _parse_count(value: str, name: str) -> int | None:
    if value == "":
        return None
    try:
        count = int(value)
    except ValueError as e:
        raise UsageError(f"{name} must be an integer, got {value!r}. Usage: {USAGE}") from e
    if count < 0:
        raise UsageError(f"{name} must not be negative, got {count}. Usage: {USAGE}")
    return count


def parse_invocation(argv: Sequence[str], summary_token: str = "-s") -> Invocation:
    """Parse positional parameters into an Invocation.

    The summary token may appear in any of the three optional positions and
    is never read as a context count.

    Args:
        argv: Positional parameters, without the program name.
        summary_token: Literal token that enables the match count module.

    Returns:
        The parsed Invocation.

    Raises:
        UsageError: If fewer than three parameters are given or a count is invalid.
    """
    args = [arg.strip(_STRIP_CHARS) for arg in argv]
    if len(args) < 3:
        raise UsageError(f"Expected at least 3 parameters, got {len(args)}. Usage: {USAGE}")

    log_file, module_name, pattern = args[:3]
    optional = args[3:6]

    summary = summary_token in optional
    counts: list[int | None] = [None, None]
    for position, value in enumerate(optional[:2]):
        if value != summary_token:
            counts[position] = _parse_count(value, ("up_lines", "bot_lines")[position])

    return Invocation(
        log_file=log_file,
        module_name=module_name,
        pattern=pattern,
        up_lines=counts[0],
        bot_lines=counts[1],
        summary=summary,
    )


def run(argv: Sequence[str], config: GrepLogConfig, stdout=None) -> int:
    """Parse, scan, persist and render for one invocation.

    Rendering happens only after the scan and the index update succeed, so a
    failure never leaves partial output behind.
    """
    invocation = parse_invocation(argv, config.summary_token)
    outcome = GrepLogService(config).run(invocation)
    if not outcome.baseline:
        text = render(
            outcome.result,
            invocation.module_name,
            config.output_mode,
            invocation.summary,
        )
        write_output(text, stdout)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point.

    Returns:
        0 on success, the error's exit code on failure. Exactly one
        diagnostic line is written to standard error on failure.
    """
    if argv is None:
        argv = sys.argv[1:]

    logging_manager = None
    try:
        config = load_config()
        logging_manager = LoggingManager(config)
        return run(argv, config)
    except GrepLogError as e:
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code
    finally:
        if logging_manager is not None:
            logging_manager.shutdown()


if __name__ == "__main__":
    sys.exit(main())

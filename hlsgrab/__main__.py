"""
Console entry point for hlsgrab: runs the CLI and turns escaped errors into
exit codes.
"""

import asyncio
import logging
import os
import sys

import typer
from rich.console import Console

from hlsgrab.cli.app import app
from hlsgrab.cli.formatters import format_error_with_suggestions
from hlsgrab.exceptions import FetchError, HlsGrabError, RetryExhaustedError

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def error_context(error: HlsGrabError) -> dict | None:
    """Request details worth showing next to a network error."""
    if not isinstance(error, FetchError):
        return None
    context = {}
    if error.url:
        context["url"] = error.url
    if error.status is not None:
        context["status"] = error.status
    if isinstance(error, RetryExhaustedError):
        context["segment"] = error.key
        context["attempts"] = error.attempts
    return context or None


def main() -> None:
    if os.name == "nt":
        try:
            sys.stdout.reconfigure(encoding="utf-8")
            sys.stderr.reconfigure(encoding="utf-8")
        except (TypeError, AttributeError):
            pass

    log = logging.getLogger("hlsgrab")
    console = Console()

    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]⚠️  Download cancelled by user.[/yellow]")
        sys.exit(EXIT_INTERRUPTED)
    except HlsGrabError as e:
        console.print(f"\n{format_error_with_suggestions(e, error_context(e))}")
        sys.exit(EXIT_FAILURE)
    except Exception as e:
        console.print(f"\n{format_error_with_suggestions(e, {'type': 'Unexpected'})}")
        log.debug("Full traceback:", exc_info=True)
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()

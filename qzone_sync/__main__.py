"""
Main entry point for the qzone-sync application.
Runs the CLI and turns whatever escapes it into a message and an exit code.
"""

import logging
import os
import sys

import typer
from rich.console import Console
from rich.markup import escape

from qzone_sync.cli.app import app
from qzone_sync.cli.formatters import format_error_with_suggestions
from qzone_sync.exceptions import (
    AuthenticationError,
    ConfigurationError,
    QzoneSyncError,
)

EXIT_FAILURE = 1
EXIT_SETUP_REQUIRED = 2

log = logging.getLogger("qzone_sync")


def _use_utf8_console() -> None:
    # Legacy Windows code pages cannot encode CJK album names.
    if os.name != "nt":
        return
    try:
        sys.stdout.reconfigure(encoding="utf-8")
        sys.stderr.reconfigure(encoding="utf-8")
    except (TypeError, AttributeError):
        pass


def main() -> None:
    """Main entry point function."""
    _use_utf8_console()
    console = Console()

    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (ConfigurationError, AuthenticationError) as e:
        console.print(f"\n{format_error_with_suggestions(e)}")
        sys.exit(EXIT_SETUP_REQUIRED)
    except QzoneSyncError as e:
        console.print(f"\n{format_error_with_suggestions(e)}")
        sys.exit(EXIT_FAILURE)
    except OSError as e:
        target = escape(str(e.filename)) if e.filename else "the save directory"
        console.print(
            f"\n[red]✗ Cannot access {target}: {escape(e.strerror or str(e))}[/red]"
        )
        log.debug("Full traceback:", exc_info=True)
        sys.exit(EXIT_FAILURE)
    except Exception as e:
        console.print(f"\n{format_error_with_suggestions(e, {'type': 'Unexpected'})}")
        log.debug("Full traceback:", exc_info=True)
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()

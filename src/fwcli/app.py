"""Typer application and CLI entry point for fwcli.

This module wires together the top-level Typer application and registers
the built-in commands (``login``, ``logout``, ``status``, the project
commands, ``apikey`` and ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`fwcli.config`: Configuration resolution used by :func:`main_callback`.
    :mod:`fwcli.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from fwcli import __version__
from fwcli.commands import error_boundary
from fwcli.commands.apikey import apikey_app
from fwcli.commands.auth import login_command, logout_command, status_command
from fwcli.commands.config import config_app
from fwcli.commands.projects import (
    analysis_command,
    check_update_command,
    create_command,
    delete_command,
    list_command,
    overview_command,
    report_command,
)
from fwcli.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="fwcli",
    help="Command-line client for the firmware analysis service.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"fwcli {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    server: Optional[str] = typer.Option(
        None, "--server", help="Service URL (overrides FWCLI_BASE_URL and config)."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~fwcli.output.OutputManager` from CLI
    flags and the configured default format, resolves the effective
    configuration, refuses to run with a credential file readable by
    other users, and stores shared options in ``ctx.obj``.

    An ``obj`` dict passed by the caller (e.g. ``CliRunner.invoke(...,
    obj={"transport": ...})``) is kept, so an ``httpx`` transport can be
    injected for the commands.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        server: Base URL override (highest precedence).
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output.
        force: Skip interactive confirmations.

    Raises:
        typer.Exit: With code 13 if the credential file is insecure (not checked
            for ``logout``), or 1 if the configuration is invalid.
    """
    from fwcli.auth import CredentialStore
    from fwcli.config import resolve_config
    from fwcli.exceptions import ConfigError
    from fwcli.models import GlobalConfig
    from fwcli.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose

    with error_boundary():
        if ctx.invoked_subcommand == "config":
            # A broken config file must stay repairable through `config set/reset`.
            ctx.obj["config"] = None
        else:
            config: GlobalConfig = resolve_config(cli_base_url=server)
            ctx.obj["config"] = config
            if fmt == OutputFormat.AUTO and config.output.format != OutputFormat.AUTO.value:
                try:
                    configured = OutputFormat(config.output.format)
                except ValueError:
                    raise ConfigError(
                        f"Invalid output.format '{config.output.format}' "
                        f"(expected one of: auto, json, plain, rich)"
                    ) from None
                set_output(
                    OutputManager(format=configured, no_color=no_color, quiet=quiet, verbose=verbose)
                )
        if ctx.invoked_subcommand != "logout":
            # logout removes the file and must work on an insecure one.
            CredentialStore().verify_permissions()


app.command("login")(login_command)
app.command("logout")(logout_command)
app.command("status")(status_command)
app.command("list")(list_command)
app.command("create")(create_command)
app.command("overview")(overview_command)
app.command("analysis")(analysis_command)
app.command("delete")(delete_command)
app.command("report")(report_command)
app.command("check-update")(check_update_command)
app.add_typer(apikey_app, name="apikey", help="API key management.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from fwcli.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``fwcli`` console script.

    Unhandled :class:`~fwcli.exceptions.FwcliError` instances cause a clean
    exit with the error's ``exit_code``. All other exceptions produce a
    crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except Exception as exc:
        from fwcli.exceptions import FwcliError
        from fwcli.output import error

        if isinstance(exc, FwcliError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            error("Please report this issue with the log attached.")
            sys.exit(EXIT_GENERIC_FAILURE)

"""Config commands -- view and modify global configuration.

Provides the ``fwcli config`` sub-command group for reading, updating and
resetting the user's global configuration file
(:class:`~fwcli.models.GlobalConfig`). Settings control the service URL,
request timeouts and retries, token renewal leeway, output format and the
report download directory.
"""

from __future__ import annotations

import typer

from fwcli.commands import error_boundary, is_forced
from fwcli.exceptions import ConfigError, InvalidUsageError
from fwcli.output import format_response, info, success, warning

config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the stored configuration.

    Example::

        fwcli config show
        fwcli config show --json
    """
    from fwcli.config import get_config_dir, load_global_config

    with error_boundary():
        config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g. 'request.timeout')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Nested keys use dot notation. The value is coerced to the type of the
    current field (bool, int or str) and the result validated against
    :class:`~fwcli.models.GlobalConfig` before saving.
    A config file that cannot be parsed is replaced by the defaults plus
    the new value.

    Example::

        fwcli config set base_url https://analysis.example.com
        fwcli config set request.max_attempts 5
        fwcli config set reports_dir ~/reports
    """
    from pydantic import ValidationError

    from fwcli.config import load_global_config, save_global_config
    from fwcli.models import GlobalConfig

    with error_boundary():
        try:
            config = load_global_config()
        except ConfigError as exc:
            warning(f"{exc}\nStarting from the defaults; other settings in the file are discarded.")
            config = GlobalConfig()
        data = config.model_dump(mode="json")

        keys = key.split(".")
        target = data
        for k in keys[:-1]:
            if k not in target or not isinstance(target[k], dict):
                raise InvalidUsageError(f"Invalid config key: {key}")
            target = target[k]

        final_key = keys[-1]
        if final_key not in target or isinstance(target[final_key], dict):
            raise InvalidUsageError(f"Unknown config key: {key}")

        current = target[final_key]
        if isinstance(current, bool):
            coerced: object = value.lower() in ("true", "1", "yes")
        elif isinstance(current, int):
            try:
                coerced = int(value)
            except ValueError:
                raise InvalidUsageError(f"Expected integer for {key}, got: {value}") from None
        else:
            coerced = value
        target[final_key] = coerced

        try:
            new_config = GlobalConfig.model_validate(data)
        except ValidationError as exc:
            raise InvalidUsageError(f"Invalid value for {key}: {exc.errors()[0]['msg']}") from None

        save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Reset configuration to defaults.

    Asks for confirmation unless ``--force`` is active. The stored
    credential is not touched.
    """
    from fwcli.config import save_global_config
    from fwcli.models import GlobalConfig

    if not is_forced(ctx):
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    with error_boundary():
        save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")

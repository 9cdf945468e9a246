"""Config commands -- view and modify global configuration.

Provides the ``mutauth config`` sub-command group for reading, updating,
and resetting the user's global configuration file
(:class:`~mutauth.models.GlobalConfig`). Settings control defaults such as
the flow variant, the surface backend and token verification.
"""

from __future__ import annotations

from typing import Any

import typer

from mutauth.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show current configuration.

    Example::

        mutauth config show
        mutauth --json config show
    """
    from mutauth.config import get_config_dir, load_global_config

    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'output.format')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. The value is coerced to the existing
    field's type and the result validated against
    :class:`~mutauth.models.GlobalConfig` before saving. ``none`` clears an
    optional field.

    Raises:
        typer.Exit: With code 2 if the key path is invalid, the value
            cannot be coerced, or validation fails.

    Example::

        mutauth config set variant single
        mutauth config set return_url https://app.local/home
        mutauth config set developer_token_source env:APPLE_DEVELOPER_TOKEN
    """
    from pydantic import ValidationError

    from mutauth.config import load_global_config, save_global_config
    from mutauth.models import GlobalConfig

    config = load_global_config()
    data = config.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    coerced = _coerce(target[final_key], value)
    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    ctx: typer.Context,
) -> None:
    """Reset configuration to defaults.

    Asks for confirmation unless ``--force`` is active.

    Example::

        mutauth config reset --force
    """
    from mutauth.config import save_global_config
    from mutauth.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")


def _coerce(current: Any, value: str) -> Any:  # noqa: ANN401
    """Coerce a command-line string to the type of the current value.

    ``none`` and ``null`` clear the field; validation rejects that for
    required fields.
    """
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes", "on")
    if value.lower() in ("none", "null"):
        return None
    return value

from __future__ import annotations

import asyncio
import importlib
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, NoReturn, Optional

import typer
import uvicorn

from .command_registry import build_application_commands, sync_commands
from .config import CordhookConfig, load_config
from .errors import ConfigError, DiscordAPIError
from .registry import HandlerRegistry, HandlerTree
from .rest import DiscordRestClient
from .server import create_app_from_config

logger = logging.getLogger("cordhook.cli")

app = typer.Typer(add_completion=False)


def _raise_exit(message: str, *, cause: Optional[BaseException] = None) -> NoReturn:
    typer.echo(message, err=True)
    if cause is not None:
        raise typer.Exit(code=1) from cause
    raise typer.Exit(code=1)


def load_handler_tree(target: str) -> HandlerTree:
    """Import ``module:attr``; a callable attribute is called with no arguments."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigError(f"handlers must look like 'module:attr', got {target!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigError(f"Unable to import handlers module {module_name!r}: {exc}") from exc
    try:
        value: Any = getattr(module, attr)
    except AttributeError:
        raise ConfigError(f"Module {module_name!r} has no attribute {attr!r}") from None
    if callable(value) and not isinstance(value, (list, tuple)):
        value = value()
    return value


def _load(config_path: Optional[Path]) -> CordhookConfig:
    try:
        return load_config(config_path)
    except ConfigError as exc:
        _raise_exit(str(exc), cause=exc)


async def _sync_application_commands(
    config: CordhookConfig,
    handlers: HandlerTree,
    *,
    guild_ids: tuple[str, ...],
    rest_client_factory: Callable[..., Any] = DiscordRestClient,
    sync_func: Callable[..., Awaitable[None]] = sync_commands,
) -> int:
    registry = HandlerRegistry()
    registry.register_all(handlers)
    commands = build_application_commands(registry.commands())
    async with rest_client_factory(
        bot_token=config.require_bot_token(),
        timeout_seconds=config.request_timeout_seconds,
        base_url=config.api_base_url,
        debug=config.debug_rest,
    ) as rest:
        await sync_func(
            rest,
            application_id=config.require_application_id(),
            commands=commands,
            guild_ids=guild_ids,
            logger=logger,
        )
    return len(commands)


@app.command("serve")
def serve(
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="Path to a YAML config file"
    ),
    handlers: str = typer.Option(
        ..., "--handlers", help="Handlers to load, as module:attr"
    ),
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind"),
    port: int = typer.Option(8000, "--port", help="Port to bind"),
) -> None:
    """Serve the interactions endpoint."""
    config = _load(config_path)
    try:
        fastapi_app = create_app_from_config(config, load_handler_tree(handlers))
    except (ConfigError, TypeError, ValueError) as exc:
        _raise_exit(str(exc), cause=exc)
    typer.echo(
        f"Serving interactions on http://{host}:{port}{config.interactions_path} "
        f"(mode={config.execution_mode.value})"
    )
    uvicorn.run(fastapi_app, host=host, port=port)


@app.command("sync-commands")
def sync_commands_command(
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="Path to a YAML config file"
    ),
    handlers: str = typer.Option(
        ..., "--handlers", help="Handlers to load, as module:attr"
    ),
    guild_ids: Optional[list[str]] = typer.Option(
        None, "--guild-id", help="Register in this guild instead of globally (repeatable)"
    ),
) -> None:
    """Overwrite the application's registered commands."""
    config = _load(config_path)
    try:
        count = asyncio.run(
            _sync_application_commands(
                config,
                load_handler_tree(handlers),
                guild_ids=tuple(guild_ids or ()),
            )
        )
    except (ConfigError, DiscordAPIError, TypeError, ValueError) as exc:
        _raise_exit(str(exc), cause=exc)
    scope = ", ".join(guild_ids) if guild_ids else "global"
    typer.echo(f"Synced {count} command(s) ({scope})")


def main() -> None:
    """Entrypoint for CLI execution."""
    app()


if __name__ == "__main__":
    main()

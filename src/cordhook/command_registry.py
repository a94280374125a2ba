from __future__ import annotations

import logging
from typing import Any, Iterable

from .handlers import CommandHandler
from .logging_utils import log_event
from .rest import DiscordRestClient


def build_application_commands(handlers: Iterable[CommandHandler]) -> list[dict[str, Any]]:
    return [handler.to_command_payload() for handler in handlers]


async def sync_commands(
    rest: DiscordRestClient,
    *,
    application_id: str,
    commands: list[dict[str, Any]],
    guild_ids: tuple[str, ...] = (),
    logger: logging.Logger,
) -> None:
    """Overwrite the application's commands globally, or per guild when given."""
    normalized_guild_ids = tuple(
        sorted({guild_id.strip() for guild_id in guild_ids if guild_id.strip()})
    )
    if not normalized_guild_ids:
        updated = await rest.bulk_overwrite_application_commands(
            application_id=application_id,
            commands=commands,
        )
        log_event(
            logger,
            logging.INFO,
            "cordhook.commands.sync.overwrite",
            scope="global",
            application_id=application_id,
            command_count=len(commands),
            updated_count=len(updated),
        )
        return

    for guild_id in normalized_guild_ids:
        updated = await rest.bulk_overwrite_application_commands(
            application_id=application_id,
            guild_id=guild_id,
            commands=commands,
        )
        log_event(
            logger,
            logging.INFO,
            "cordhook.commands.sync.overwrite",
            scope="guild",
            guild_id=guild_id,
            application_id=application_id,
            command_count=len(commands),
            updated_count=len(updated),
        )

"""Interaction dispatch: verify, classify, route, execute, respond.

``InteractionDispatcher.dispatch`` is the only entry point. Each request moves
through ``DispatchStage`` states::

    RECEIVED -> VERIFYING -> REJECTED
                          -> CLASSIFYING -> REJECTED
                                         -> PING_ACK
                                         -> ROUTING -> EXECUTING -> RESPONDED

"No handler registered" is not an error: the request completes as RESPONDED
without invoking anything.
"""

from __future__ import annotations

import functools
import inspect
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional

from .config import ExecutionMode
from .constants import ApplicationCommandType, CallbackType
from .context import (
    AutocompleteContext,
    ChatInputContext,
    ComponentContext,
    HandlerContext,
    MessageCommandContext,
    ModalSubmitContext,
    UserCommandContext,
)
from .errors import (
    HandlerExecutionError,
    InvalidSignature,
    MalformedPayload,
    UnsupportedInteractionType,
)
from .handlers import ContextCommandHandler, Handler, SlashCommandHandler
from .interactions import (
    AutocompleteInteraction,
    ChatInputCommandInteraction,
    ComponentInteraction,
    Interaction,
    MessageCommandInteraction,
    ModalSubmitInteraction,
    PingInteraction,
    UserCommandInteraction,
    classify_interaction,
)
from .logging_utils import log_event
from .registry import HandlerRegistry, HandlerTree, RegistrationResult
from .rest import DiscordRestClient
from .verify import RequestVerifier

BackgroundScheduler = Callable[[Callable[[], Awaitable[None]]], None]

JSON_MEDIA_TYPE = "application/json"
TEXT_MEDIA_TYPE = "text/plain"


class DispatchStage(str, Enum):
    RECEIVED = "received"
    VERIFYING = "verifying"
    REJECTED = "rejected"
    CLASSIFYING = "classifying"
    PING_ACK = "ping_ack"
    ROUTING = "routing"
    EXECUTING = "executing"
    RESPONDED = "responded"


@dataclass(frozen=True)
class InboundRequest:
    headers: Mapping[str, str]
    body: bytes


@dataclass(frozen=True)
class DispatchResponse:
    status_code: int
    body: bytes
    media_type: str
    stage: DispatchStage

    @classmethod
    def text(cls, status_code: int, text: str, stage: DispatchStage) -> "DispatchResponse":
        return cls(status_code, text.encode("utf-8"), TEXT_MEDIA_TYPE, stage)

    @classmethod
    def json(
        cls, status_code: int, payload: Any, stage: DispatchStage
    ) -> "DispatchResponse":
        return cls(status_code, json.dumps(payload).encode("utf-8"), JSON_MEDIA_TYPE, stage)


@dataclass
class RoutedInteraction:
    """A handler paired with the handle it will be invoked with."""

    handler: Handler
    callback: Callable[[Any], Any]
    context: HandlerContext
    label: str = ""


async def _invoke(callback: Callable[[Any], Any], context: HandlerContext) -> None:
    result = callback(context)
    if inspect.isawaitable(result):
        await result


class InteractionDispatcher:
    def __init__(
        self,
        *,
        verifier: RequestVerifier,
        rest: DiscordRestClient,
        registry: Optional[HandlerRegistry] = None,
        execution_mode: ExecutionMode = ExecutionMode.SYNC,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._verifier = verifier
        self._rest = rest
        self._registry = registry if registry is not None else HandlerRegistry()
        self._execution_mode = ExecutionMode(execution_mode)
        self._logger = logger or logging.getLogger(__name__)

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    @property
    def execution_mode(self) -> ExecutionMode:
        return self._execution_mode

    def load_handlers(self, *handlers: HandlerTree) -> list[RegistrationResult]:
        results = self._registry.register_all(*handlers)
        for result in results:
            if result.overwritten:
                log_event(
                    self._logger,
                    logging.WARNING,
                    "cordhook.registry.overwrite",
                    kind=result.kind.value,
                    key=result.key,
                )
        return results

    async def dispatch(
        self,
        request: InboundRequest,
        *,
        schedule: Optional[BackgroundScheduler] = None,
    ) -> DispatchResponse:
        try:
            payload = self._verifier.verify(request.headers, request.body)
        except InvalidSignature as exc:
            log_event(
                self._logger,
                logging.INFO,
                "cordhook.dispatch.rejected",
                reason="signature",
                exc=exc,
            )
            return DispatchResponse.text(401, "Bad request signature.", DispatchStage.REJECTED)
        except MalformedPayload as exc:
            log_event(
                self._logger,
                logging.INFO,
                "cordhook.dispatch.rejected",
                reason="payload",
                exc=exc,
            )
            return DispatchResponse.text(400, "No interaction found.", DispatchStage.REJECTED)

        try:
            interaction = classify_interaction(payload)
        except (UnsupportedInteractionType, MalformedPayload) as exc:
            log_event(
                self._logger,
                logging.WARNING,
                "cordhook.dispatch.rejected",
                reason="classification",
                interaction_type=payload.get("type"),
                exc=exc,
            )
            return DispatchResponse.text(400, "Unsupported interaction.", DispatchStage.REJECTED)

        if isinstance(interaction, PingInteraction):
            self._logger.debug("Received Discord ping")
            return DispatchResponse.json(
                200, {"type": int(CallbackType.PONG)}, DispatchStage.PING_ACK
            )

        routed = self.route(interaction)
        if routed is None:
            log_event(
                self._logger,
                logging.DEBUG,
                "cordhook.dispatch.no_handler",
                interaction_id=interaction.envelope.id,
                interaction_type=interaction.envelope.type.name,
            )
            return DispatchResponse.json(200, {}, DispatchStage.RESPONDED)

        if self._execution_mode is ExecutionMode.BACKGROUND and schedule is not None:
            schedule(functools.partial(self._run_in_background, routed))
            return DispatchResponse.json(202, {}, DispatchStage.RESPONDED)

        try:
            await self.execute(routed)
        except HandlerExecutionError:
            return DispatchResponse.text(500, "Internal server error.", DispatchStage.RESPONDED)
        return DispatchResponse.json(
            200, routed.context.callback_response or {}, DispatchStage.RESPONDED
        )

    def route(self, interaction: Interaction) -> Optional[RoutedInteraction]:
        """Select the handler for a classified interaction, or ``None``."""
        if isinstance(interaction, ChatInputCommandInteraction):
            handler = self._registry.resolve_command(interaction.command_name)
            if isinstance(handler, SlashCommandHandler):
                return RoutedInteraction(
                    handler, handler.callback, ChatInputContext(interaction, self._rest)
                )
            return self._mismatched(interaction.command_name, handler)

        if isinstance(interaction, (UserCommandInteraction, MessageCommandInteraction)):
            handler = self._registry.resolve_command(interaction.command_name)
            expected = (
                ApplicationCommandType.USER
                if isinstance(interaction, UserCommandInteraction)
                else ApplicationCommandType.MESSAGE
            )
            if isinstance(handler, ContextCommandHandler) and handler.command_type is expected:
                context: HandlerContext
                if isinstance(interaction, UserCommandInteraction):
                    context = UserCommandContext(interaction, self._rest)
                else:
                    context = MessageCommandContext(interaction, self._rest)
                return RoutedInteraction(handler, handler.callback, context)
            return self._mismatched(interaction.command_name, handler)

        if isinstance(interaction, AutocompleteInteraction):
            handler = self._registry.resolve_command(interaction.command_name)
            if isinstance(handler, SlashCommandHandler) and handler.autocomplete is not None:
                return RoutedInteraction(
                    handler,
                    handler.autocomplete,
                    AutocompleteContext(interaction, self._rest),
                    label="autocomplete",
                )
            return self._mismatched(interaction.command_name, handler)

        if isinstance(interaction, ComponentInteraction):
            component_handler = self._registry.resolve_component(interaction.custom_id)
            if component_handler is None:
                return None
            return RoutedInteraction(
                component_handler,
                component_handler.callback,
                ComponentContext(interaction, self._rest),
            )

        if isinstance(interaction, ModalSubmitInteraction):
            modal_handler = self._registry.resolve_modal(interaction.custom_id)
            if modal_handler is None:
                return None
            return RoutedInteraction(
                modal_handler,
                modal_handler.callback,
                ModalSubmitContext(interaction, self._rest),
            )

        # Pings are acknowledged before routing.
        return None

    def _mismatched(self, name: str, handler: Optional[Handler]) -> None:
        if handler is not None:
            self._logger.debug(
                "Handler %r (%s) cannot serve this interaction kind", name, handler.kind.value
            )
        return None

    async def execute(self, routed: RoutedInteraction) -> None:
        """Run the handler to completion; failures become ``HandlerExecutionError``."""
        handler_key = f"{routed.handler.kind.value}:{routed.handler.key}"
        if routed.label:
            handler_key = f"{handler_key}:{routed.label}"
        try:
            await _invoke(routed.callback, routed.context)
        except Exception as exc:
            log_event(
                self._logger,
                logging.ERROR,
                "cordhook.handler.failed",
                handler=handler_key,
                interaction_id=routed.context.id,
                exc=exc,
            )
            raise HandlerExecutionError(
                handler_key=handler_key,
                interaction_id=routed.context.id,
                original=exc,
            ) from exc

    async def _run_in_background(self, routed: RoutedInteraction) -> None:
        try:
            await self.execute(routed)
        except HandlerExecutionError:
            # Already logged; the HTTP response has been sent.
            return

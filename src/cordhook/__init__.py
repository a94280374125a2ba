"""Webhook-based Discord interaction handling."""

from .autocomplete import AutocompleteFilter
from .command_registry import build_application_commands, sync_commands
from .config import CordhookConfig, ExecutionMode, load_config
from .constants import (
    DISCORD_API_BASE_URL,
    ApplicationCommandType,
    CallbackType,
    ComponentType,
    InteractionType,
    OptionType,
)
from .context import (
    AutocompleteContext,
    ChatInputContext,
    ComponentContext,
    MessageCommandContext,
    ModalSubmitContext,
    ResponseState,
    UserCommandContext,
)
from .custom_id import ParsedCustomId, parse_custom_id, parse_prefix
from .dispatcher import DispatchResponse, InboundRequest, InteractionDispatcher
from .errors import (
    ConfigError,
    CordhookError,
    DiscordAPIError,
    HandlerExecutionError,
    InteractionTimeout,
    InvalidResponseState,
    InvalidSignature,
    MalformedPayload,
    MissingField,
    MissingRequiredOption,
    RegistryFrozen,
    ResolutionFailure,
    TypeMismatch,
    UnsupportedInteractionType,
)
from .handlers import (
    ComponentHandler,
    ContextCommandHandler,
    HandlerKind,
    ModalHandler,
    SlashCommandHandler,
)
from .interactions import classify_interaction
from .modal_fields import ModalFieldResolver
from .options import OptionResolver
from .registry import HandlerRegistry, RegistrationResult
from .rest import DiscordRestClient
from .server import create_app, create_app_from_config
from .verify import RequestVerifier

__all__ = [
    "DISCORD_API_BASE_URL",
    "ApplicationCommandType",
    "AutocompleteContext",
    "AutocompleteFilter",
    "CallbackType",
    "ChatInputContext",
    "ComponentContext",
    "ComponentHandler",
    "ComponentType",
    "ConfigError",
    "ContextCommandHandler",
    "CordhookConfig",
    "CordhookError",
    "DiscordAPIError",
    "DiscordRestClient",
    "DispatchResponse",
    "ExecutionMode",
    "HandlerExecutionError",
    "HandlerKind",
    "HandlerRegistry",
    "InboundRequest",
    "InteractionDispatcher",
    "InteractionTimeout",
    "InteractionType",
    "InvalidResponseState",
    "InvalidSignature",
    "MalformedPayload",
    "MessageCommandContext",
    "MissingField",
    "MissingRequiredOption",
    "ModalFieldResolver",
    "ModalHandler",
    "ModalSubmitContext",
    "OptionResolver",
    "OptionType",
    "ParsedCustomId",
    "RegistrationResult",
    "RegistryFrozen",
    "RequestVerifier",
    "ResolutionFailure",
    "ResponseState",
    "SlashCommandHandler",
    "TypeMismatch",
    "UnsupportedInteractionType",
    "UserCommandContext",
    "build_application_commands",
    "classify_interaction",
    "create_app",
    "create_app_from_config",
    "load_config",
    "parse_custom_id",
    "parse_prefix",
    "sync_commands",
]

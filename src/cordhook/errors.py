from __future__ import annotations

from typing import Optional


class CordhookError(Exception):
    """Base cordhook error."""


class ConfigError(CordhookError):
    """Configuration is missing or invalid."""


class InvalidSignature(CordhookError):
    """Request signature headers are missing or do not verify."""


class MalformedPayload(CordhookError):
    """Request body is absent, not JSON, or not an interaction object."""


class UnsupportedInteractionType(CordhookError):
    def __init__(
        self, interaction_type: object, command_type: object = None
    ) -> None:
        detail = f"type={interaction_type!r}"
        if command_type is not None:
            detail += f" data.type={command_type!r}"
        super().__init__(f"Unsupported interaction ({detail})")
        self.interaction_type = interaction_type
        self.command_type = command_type


class MissingRequiredOption(CordhookError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Required option {name!r} was not provided")
        self.name = name


class TypeMismatch(CordhookError):
    def __init__(self, name: str, *, expected: object, actual: object) -> None:
        super().__init__(
            f"Option {name!r} is of type {actual!r}, expected {expected!r}"
        )
        self.name = name
        self.expected = expected
        self.actual = actual


class ResolutionFailure(CordhookError):
    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"No resolved {kind} entry for id {entity_id!r}")
        self.kind = kind
        self.entity_id = entity_id


class MissingField(CordhookError):
    def __init__(self, custom_id: str) -> None:
        super().__init__(f"Required modal field {custom_id!r} was not submitted")
        self.custom_id = custom_id


class InvalidResponseState(CordhookError):
    """Response call is not valid in the interaction's current state."""


class RegistryFrozen(CordhookError):
    """Handlers cannot be registered once the registry is frozen."""


class DiscordAPIError(CordhookError):
    """Discord API request error."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InteractionTimeout(DiscordAPIError):
    """Outbound call exceeded the per-call timeout."""


class HandlerExecutionError(CordhookError):
    def __init__(
        self,
        *,
        handler_key: str,
        interaction_id: Optional[str],
        original: BaseException,
    ) -> None:
        super().__init__(
            f"Handler {handler_key!r} failed for interaction {interaction_id}: "
            f"{type(original).__name__}"
        )
        self.handler_key = handler_key
        self.interaction_id = interaction_id
        self.original = original

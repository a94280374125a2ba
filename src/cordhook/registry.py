from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from .custom_id import parse_prefix
from .errors import RegistryFrozen
from .handlers import (
    CommandHandler,
    ComponentHandler,
    ContextCommandHandler,
    Handler,
    HandlerKind,
    ModalHandler,
    SlashCommandHandler,
)

HandlerTree = Union[Handler, Iterable["HandlerTree"]]


@dataclass(frozen=True)
class RegistrationResult:
    kind: HandlerKind
    key: str
    replaced: Optional[Handler] = None

    @property
    def overwritten(self) -> bool:
        return self.replaced is not None


def _flatten(handlers: Iterable[HandlerTree]) -> list[Handler]:
    flat: list[Handler] = []
    for item in handlers:
        if isinstance(
            item, (SlashCommandHandler, ContextCommandHandler, ComponentHandler, ModalHandler)
        ):
            flat.append(item)
        elif isinstance(item, (list, tuple)):
            flat.extend(_flatten(item))
        else:
            raise TypeError(f"Not a handler: {item!r}")
    return flat


class HandlerRegistry:
    """Handlers keyed by command name or custom-id prefix.

    Built once at startup; after ``freeze()`` it is read-only and safe to
    share between concurrent requests.
    """

    def __init__(self) -> None:
        self._commands: dict[str, CommandHandler] = {}
        self._components: dict[str, ComponentHandler] = {}
        self._modals: dict[str, ModalHandler] = {}
        self._frozen = False

    def __len__(self) -> int:
        return len(self._commands) + len(self._components) + len(self._modals)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def register(self, handler: Handler) -> RegistrationResult:
        if self._frozen:
            raise RegistryFrozen(f"Cannot register {handler.kind.value} {handler.key!r}")
        replaced: Optional[Handler]
        if isinstance(handler, (SlashCommandHandler, ContextCommandHandler)):
            replaced = self._commands.get(handler.name)
            self._commands[handler.name] = handler
        elif isinstance(handler, ComponentHandler):
            replaced = self._components.pop(handler.prefix, None)
            self._components[handler.prefix] = handler
        elif isinstance(handler, ModalHandler):
            replaced = self._modals.pop(handler.prefix, None)
            self._modals[handler.prefix] = handler
        else:
            raise TypeError(f"Not a handler: {handler!r}")
        return RegistrationResult(kind=handler.kind, key=handler.key, replaced=replaced)

    def register_all(self, *handlers: HandlerTree) -> list[RegistrationResult]:
        return [self.register(handler) for handler in _flatten(handlers)]

    def resolve_command(self, name: str) -> Optional[CommandHandler]:
        return self._commands.get(name)

    def resolve_component(self, custom_id: str) -> Optional[ComponentHandler]:
        return self._components.get(parse_prefix(custom_id))

    def resolve_modal(self, custom_id: str) -> Optional[ModalHandler]:
        return self._modals.get(parse_prefix(custom_id))

    def commands(self) -> list[CommandHandler]:
        return list(self._commands.values())

    def components(self) -> list[ComponentHandler]:
        return list(self._components.values())

    def modals(self) -> list[ModalHandler]:
        return list(self._modals.values())

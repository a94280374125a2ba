"""Custom identifiers attached to components and modals.

A custom id has the shape ``prefix/component/other/path?param1/param2``. The
prefix routes a submission back to its handler; the rest is free-form data
for the handler itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ParsedCustomId:
    path: tuple[str, ...]
    params: tuple[str, ...]

    @property
    def prefix(self) -> str:
        return self.path[0]

    @property
    def component(self) -> Optional[str]:
        return self.path[1] if len(self.path) > 1 and self.path[1] else None

    @property
    def last_path_item(self) -> str:
        return self.path[-1]

    @property
    def first_param(self) -> Optional[str]:
        return self.params[0] if self.params and self.params[0] else None

    @property
    def last_param(self) -> Optional[str]:
        return self.params[-1] if self.params and self.params[-1] else None


def parse_prefix(custom_id: str) -> str:
    """Return the substring before the first ``/`` or ``?``.

    The whole string is returned when neither separator occurs. A leading
    separator is treated as part of the prefix so the result is never empty
    for a non-empty id.
    """
    for index, char in enumerate(custom_id):
        if char in "/?" and index > 0:
            return custom_id[:index]
    return custom_id


def parse_custom_id(custom_id: str) -> ParsedCustomId:
    path, _, raw_params = custom_id.partition("?")
    params = tuple(raw_params.split("/")) if raw_params else ()
    return ParsedCustomId(path=tuple(path.split("/")), params=params)

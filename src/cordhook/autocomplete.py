"""Filtering autocomplete choices against what the user has typed so far.

Example::

    choices = (
        AutocompleteFilter(ctx.options.get_focused().value, ctx.locale)
        .add_choices(
            {"name": "Choice One", "value": "choice_1"},
            {"name": "Choice Two", "value": "choice_2"},
        )
        .response(["name"])
    )
    await ctx.respond(choices)
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Union

ChoiceValue = Union[str, int, float]
Choice = dict[str, Any]

FILTER_FIELDS = frozenset({"name", "value", "name_localizations"})


def _normalize(value: object) -> str:
    return str(value).lower()


class AutocompleteFilter:
    def __init__(self, value: ChoiceValue, locale: Optional[str] = None) -> None:
        self._needle = _normalize(value)
        self._locale = locale or None
        self._choices: list[Choice] = []

    @property
    def choices(self) -> list[Choice]:
        return list(self._choices)

    def add_choices(self, *choices: Choice) -> "AutocompleteFilter":
        self._choices.extend(choices)
        return self

    def set_choices(self, *choices: Choice) -> "AutocompleteFilter":
        self._choices = list(choices)
        return self

    def clear(self) -> "AutocompleteFilter":
        self._choices = []
        return self

    def _localized_name(self, choice: Choice) -> Optional[str]:
        if self._locale is None:
            return None
        localizations = choice.get("name_localizations")
        if not isinstance(localizations, dict):
            return None
        localized = localizations.get(self._locale)
        return None if localized is None else str(localized)

    def _field_matches(self, choice: Choice, field: str) -> bool:
        if field == "name_localizations":
            localized = self._localized_name(choice)
            return localized is not None and self._needle in _normalize(localized)
        if field not in choice:
            return False
        return self._needle in _normalize(choice[field])

    def matches(self, choice: Choice, fields: Optional[Iterable[str]] = None) -> bool:
        selected = tuple(fields) if fields else tuple(sorted(FILTER_FIELDS))
        unknown = set(selected) - FILTER_FIELDS
        if unknown:
            raise ValueError(f"unknown autocomplete filter fields: {sorted(unknown)}")
        return any(self._field_matches(choice, field) for field in selected)

    def response(self, fields: Optional[Iterable[str]] = None) -> list[Choice]:
        """Return the choices matching the typed value.

        With ``fields`` omitted every field is consulted. A localized name
        only counts when the locale has a localization for that choice.
        """
        selected = tuple(fields) if fields else None
        return [choice for choice in self._choices if self.matches(choice, selected)]

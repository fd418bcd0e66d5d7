"""Shape validation for data function results."""

from collections.abc import Mapping
from typing import Any

from plume.errors import ValidationError


def check_data(data: Any, language: str, function_name: str) -> None:
    """Check that *data* is a record or a non-empty list of records.

    A record is a mapping. List elements must be mappings themselves (a
    nested list is rejected).

    Raises:
        ValidationError: Naming *language* and *function_name*.
    """
    if isinstance(data, Mapping):
        return

    if not isinstance(data, list):
        detail = f"expected a dict or a list of dicts, got {type(data).__name__}: {data!r}"
        raise ValidationError(language, function_name, detail)

    if not data:
        raise ValidationError(language, function_name, "returned an empty list")

    for index, item in enumerate(data):
        if not isinstance(item, Mapping):
            detail = f"list element {index} is not a dict: {item!r}"
            raise ValidationError(language, function_name, detail)


def bracket_field(stem: str) -> str | None:
    """Return ``slug`` for a ``[slug]`` file stem, else ``None``."""
    if len(stem) > 2 and stem.startswith("[") and stem.endswith("]"):
        return stem[1:-1]
    return None

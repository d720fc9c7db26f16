"""Schema registry with package-data-only loading.

Schemas ship inside the ``plugincheck.schemas`` package so validation does
not depend on the current working directory.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from importlib.resources import files
from typing import Any

from jsonschema.validators import Draft202012Validator

SCHEMA_PACKAGE = "plugincheck.schemas"
SCHEMA_SUFFIX = ".schema.json"


@dataclass(frozen=True)
class SchemaRegistry:
    """Registry of available schemas from package data.

    Attributes:
        available: Sorted tuple of canonical schema names (without suffix)
    """

    available: tuple[str, ...] = ()

    def __init__(self) -> None:
        object.__setattr__(self, "available", tuple(sorted(self._discover_schemas())))

    def _discover_schemas(self) -> list[str]:
        try:
            return [
                item.name[: -len(SCHEMA_SUFFIX)]
                for item in files(SCHEMA_PACKAGE).iterdir()
                if item.name.endswith(SCHEMA_SUFFIX)
            ]
        except (ModuleNotFoundError, FileNotFoundError):
            return []

    def get_json(self, name: str) -> dict[str, Any]:
        """Load schema as parsed JSON.

        Raises:
            KeyError: If schema not found (message lists available schemas)
            ValueError: If the packaged schema is malformed
        """
        canonical = name[: -len(SCHEMA_SUFFIX)] if name.endswith(SCHEMA_SUFFIX) else name
        if canonical not in self.available:
            raise KeyError(
                f"Schema '{canonical}' not found in plugincheck package data. "
                f"Available schemas: {', '.join(self.available) or 'none'}"
            )

        text = (files(SCHEMA_PACKAGE) / f"{canonical}{SCHEMA_SUFFIX}").read_text(encoding="utf-8")
        try:
            data: dict[str, Any] = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Schema '{canonical}' contains invalid JSON: {e}") from e
        return data


@lru_cache(maxsize=1)
def get_registry() -> SchemaRegistry:
    return SchemaRegistry()


def validate_data(
    data: dict[str, Any],
    schema_name: str,
    strict: bool = True,
) -> tuple[bool, list[str]]:
    """Validate data against a packaged schema.

    Args:
        data: Data to validate
        schema_name: Name of schema to validate against
        strict: If True, raise on validation errors; if False, return error list

    Returns:
        Tuple of (is_valid, error_messages)

    Raises:
        KeyError: If schema not found in package data
        ValueError: If validation fails and strict=True
    """
    schema = get_registry().get_json(schema_name)
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))

    if not errors:
        return True, []

    messages = [
        f"{'.'.join(str(p) for p in e.path)}: {e.message}" if e.path else e.message
        for e in errors
    ]
    if strict:
        raise ValueError(
            f"Schema validation failed for '{schema_name}':\n"
            + "\n".join(f"  - {msg}" for msg in messages)
        )
    return False, messages

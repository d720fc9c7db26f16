"""Packaged JSON schemas and validation helpers."""

from plugincheck.schemas.registry import SchemaRegistry, get_registry, validate_data

__all__ = ["SchemaRegistry", "get_registry", "validate_data"]

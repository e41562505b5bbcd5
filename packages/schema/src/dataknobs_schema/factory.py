"""Factory for building object schemas from configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from .composites import Array, Object
from .exceptions import SchemaConfigurationError, SchemaDefinitionError
from .primitives import AnyValue, BigInt, Boolean, Date, Enum, Literal, Number, String
from .schema import Schema

logger = logging.getLogger(__name__)

_SCALAR_TYPES: dict[str, Callable[[], Schema]] = {
    "string": String,
    "str": String,
    "integer": lambda: Number().int(),
    "int": lambda: Number().int(),
    "float": Number,
    "number": Number,
    "boolean": Boolean,
    "bool": Boolean,
    "datetime": Date,
    "date": Date,
    "bigint": BigInt,
    "any": AnyValue,
    "json": AnyValue,
}

_STRING_FORMATS = ("email", "url", "uuid", "datetime")


class SchemaFactory:
    """Factory for creating object schemas from configuration.

    Configuration Options:
        name (str): Schema name (used for logging)
        strict (bool): Whether to reject unknown fields (default: False)
        description (str): Optional schema description
        fields (list): List of field definitions

    Field Definition Options:
        name (str): Field name
        type (str): Field type (STRING, INTEGER, FLOAT, NUMBER, BOOLEAN,
            DATETIME, BIGINT, JSON, ARRAY, OBJECT, ENUM, LITERAL)
        required (bool): Whether field is required (default: False)
        default (any): Default value if field is missing
        description (str): Field description
        coerce (bool): Coerce inputs to the field's primitive type
        items (dict): Element definition for ARRAY fields
        fields (list): Nested field definitions for OBJECT fields
        values (list): Options for ENUM fields
        value (any): Value for LITERAL fields
        constraints (list): List of constraint definitions

    Example Configuration:
        name: user_schema
        strict: true
        description: User registration schema
        fields:
          - name: username
            type: STRING
            required: true
            constraints:
              - type: length
                min: 3
                max: 20
              - type: pattern
                pattern: "^[a-zA-Z0-9_]+$"
          - name: age
            type: INTEGER
            coerce: true
            constraints:
              - type: range
                min: 13
                max: 120
    """

    def create(self, **config: Any) -> Object:
        """Create an Object schema from configuration.

        Args:
            **config: Schema configuration

        Returns:
            Object schema

        Raises:
            SchemaConfigurationError: If a field definition cannot be built
        """
        name = config.get("name", "unnamed_schema")
        strict = config.get("strict", False)
        description = config.get("description")

        logger.info(f"Creating schema: {name}")

        schema = self._build_object(config.get("fields", []))
        if strict:
            schema = schema.strict()
        if description:
            schema = schema.describe(description)
        return schema

    def from_yaml(self, path: str | Path) -> Object:
        """Create a schema from a YAML (or JSON) configuration file.

        Args:
            path: Path to the configuration file

        Returns:
            Object schema
        """
        path = Path(path)
        if not path.exists():
            raise SchemaConfigurationError(f"Schema file not found: {path}")

        with open(path) as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise SchemaConfigurationError(
                f"Schema file must contain a mapping: {path}",
                context={"path": str(path)},
            )
        logger.info(f"Loaded schema configuration from {path}")
        return self.create(**data)

    def _build_object(self, field_configs: list[dict[str, Any]]) -> Object:
        shape: dict[str, Schema] = {}
        for field_config in field_configs:
            self._add_field_to_shape(shape, field_config)
        return Object(shape)

    def _add_field_to_shape(self, shape: dict[str, Schema], field_config: dict[str, Any]) -> None:
        """Add a field schema to the shape based on configuration.

        Args:
            shape: Field mapping being built
            field_config: Field configuration
        """
        field_name = field_config.get("name")
        if not field_name:
            logger.warning("Field configuration missing 'name', skipping")
            return

        try:
            schema = self._build_field(field_config)
        except SchemaDefinitionError as e:
            raise SchemaConfigurationError(
                f"Invalid definition for field '{field_name}': {e}",
                context={"field": field_name, **e.context},
            ) from e

        required = field_config.get("required", False)
        if "default" in field_config:
            schema = schema.default(field_config["default"])
        elif not required:
            schema = schema.optional()

        shape[field_name] = schema

    def _build_field(self, field_config: dict[str, Any]) -> Schema:
        """Build the schema for one field or array element (without presence modifiers)."""
        field_type = str(field_config.get("type", "STRING")).lower()
        coerce = field_config.get("coerce", False)

        if field_type in _SCALAR_TYPES:
            schema = _SCALAR_TYPES[field_type]()
        elif field_type == "array":
            items = field_config.get("items") or {"type": "any"}
            schema = Array(self._build_field(items))
        elif field_type == "object":
            schema = self._build_object(field_config.get("fields", []))
            if field_config.get("strict", False):
                schema = schema.strict()
        elif field_type == "enum":
            schema = Enum(field_config.get("values", []))
        elif field_type == "literal":
            schema = Literal(field_config.get("value"))
        else:
            raise SchemaConfigurationError(
                f"Unknown field type: {field_config.get('type')}",
                context={"type": field_config.get("type")},
            )

        if coerce:
            if not getattr(schema, "coercible", False):
                raise SchemaConfigurationError(
                    f"Field type {field_type} cannot be coerced",
                    context={"type": field_config.get("type")},
                )
            schema = schema._copy(coerce=True)

        schema, refinements = self._apply_constraints(schema, field_config.get("constraints", []))
        for refinement in refinements:
            schema = refinement(schema)

        description = field_config.get("description")
        if description:
            schema = schema.describe(description)
        return schema

    def _apply_constraints(
        self, schema: Schema, constraint_configs: list[dict[str, Any]]
    ) -> tuple[Schema, list[Callable[[Schema], Schema]]]:
        """Apply constraint configurations to a schema.

        Check-style constraints are applied directly; constraints that need
        a refinement are returned so they can be applied after all checks.

        Args:
            schema: Schema to constrain
            constraint_configs: List of constraint configurations

        Returns:
            Tuple of (constrained schema, pending refinements)
        """
        refinements: list[Callable[[Schema], Schema]] = []

        for config in constraint_configs:
            constraint_type = config.get("type", "").lower()
            message = config.get("message")

            if constraint_type == "length":
                if config.get("min") is not None:
                    schema = self._call(schema, "min", config["min"], message)
                if config.get("max") is not None:
                    schema = self._call(schema, "max", config["max"], message)

            elif constraint_type == "range":
                if config.get("min") is not None:
                    schema = self._call(schema, "gte", config["min"], message)
                if config.get("max") is not None:
                    schema = self._call(schema, "lte", config["max"], message)

            elif constraint_type == "pattern":
                pattern = config.get("pattern")
                if pattern:
                    schema = self._call(schema, "regex", pattern, message)

            elif constraint_type == "format":
                string_format = config.get("format")
                if string_format not in _STRING_FORMATS:
                    raise SchemaConfigurationError(
                        f"Unknown string format: {string_format}",
                        context={"format": string_format, "options": list(_STRING_FORMATS)},
                    )
                schema = self._call(schema, string_format, message)

            elif constraint_type == "multiple_of":
                schema = self._call(schema, "multiple_of", config.get("value"), message)

            elif constraint_type == "enum":
                values = list(config.get("values", []))
                if values:
                    refinements.append(_membership(values, message))

            else:
                logger.warning(f"Unknown constraint type: {constraint_type}")

        return schema, refinements

    def _call(self, schema: Schema, method: str, *args: Any) -> Schema:
        builder = getattr(schema, method, None)
        if builder is None or method.startswith("_"):
            raise SchemaConfigurationError(
                f"Constraint '{method}' does not apply to {schema.kind} fields",
                context={"constraint": method, "kind": schema.kind},
            )
        return builder(*args)


def _membership(values: list[Any], message: str | None) -> Callable[[Schema], Schema]:
    def apply(schema: Schema) -> Schema:
        return schema.refine(
            lambda value: value in values,
            message or f"Must be one of: {', '.join(str(v) for v in values)}",
            params={"options": values},
        )

    return apply


# Shared instance
schema_factory = SchemaFactory()

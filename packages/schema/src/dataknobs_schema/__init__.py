"""Composable schema validation and coercion.

This package provides:
- Immutable, fluent schema builders (primitives, objects, collections, unions)
- Type coercion for form and query-string input
- Complete, path-located issue reporting (never stops at the first failure)
- Refinements, transforms and pipes with sync and async execution
- Error projections (flatten, treeify, format) and static constraint
  introspection for UI collaborators
"""

from .coercer import UNCOERCIBLE, Coercer, coerce
from .composites import Array, Map, Object, Record, Set, Tuple
from .config import DEFAULT_CONFIG, ErrorMap, ValidationConfig
from .context import CancelSignal
from .effects import (
    Catch,
    Default,
    Lazy,
    Nullable,
    Optional,
    Pipeline,
    Preprocess,
    Refinement,
    RefinementContext,
    SuperRefinement,
    Transform,
    preprocess,
)
from .exceptions import (
    SchemaConfigurationError,
    SchemaCycleError,
    SchemaDefinitionError,
    SchemaError,
    SchemaValidationError,
    ValidationCancelledError,
)
from .factory import SchemaFactory, schema_factory
from .introspection import static_constraints
from .issues import Issue, IssueCode, Path, PathSegment, default_message
from .primitives import (
    AnyValue,
    BigInt,
    Boolean,
    Date,
    Enum,
    Literal,
    NativeEnum,
    Never,
    Null,
    Number,
    String,
    Undefined,
    Unknown,
    Void,
)
from .projections import flatten, format, treeify
from .result import ValidationResult
from .schema import Schema, validate, validate_async
from .unions import DiscriminatedUnion, Intersection, Union
from .values import MISSING, is_missing

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "validate",
    "validate_async",
    # Result and issues
    "ValidationResult",
    "Issue",
    "IssueCode",
    "Path",
    "PathSegment",
    "default_message",
    "MISSING",
    "is_missing",
    # Schema base
    "Schema",
    # Primitives
    "String",
    "Number",
    "Boolean",
    "Date",
    "BigInt",
    "Literal",
    "Enum",
    "NativeEnum",
    "AnyValue",
    "Unknown",
    "Never",
    "Null",
    "Undefined",
    "Void",
    # Composites
    "Object",
    "Array",
    "Tuple",
    "Record",
    "Map",
    "Set",
    # Unions
    "Union",
    "DiscriminatedUnion",
    "Intersection",
    # Modifiers and pipeline
    "Optional",
    "Nullable",
    "Default",
    "Catch",
    "Lazy",
    "Refinement",
    "RefinementContext",
    "SuperRefinement",
    "Transform",
    "Pipeline",
    "Preprocess",
    "preprocess",
    # Coercion
    "Coercer",
    "coerce",
    "UNCOERCIBLE",
    # Projections and introspection
    "flatten",
    "treeify",
    "format",
    "static_constraints",
    # Configuration
    "ValidationConfig",
    "DEFAULT_CONFIG",
    "ErrorMap",
    "CancelSignal",
    # Factories
    "SchemaFactory",
    "schema_factory",
    # Exceptions
    "SchemaError",
    "SchemaDefinitionError",
    "SchemaConfigurationError",
    "SchemaCycleError",
    "SchemaValidationError",
    "ValidationCancelledError",
]

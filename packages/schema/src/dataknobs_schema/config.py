"""Validation configuration.

A :class:`ValidationConfig` is passed explicitly to each validation call.
There is no process-wide mutable default, so concurrent validations may use
different configurations safely.

Example configuration file:
    ```yaml
    coerce: true
    report_input: false
    messages:
      invalid_type: "Please enter a {expected}"
      too_small: "Must be at least {minimum}"
    ```
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Union

import yaml  # type: ignore[import-untyped]

from .exceptions import SchemaConfigurationError
from .issues import Issue, IssueCode

logger = logging.getLogger(__name__)

ErrorMap = Callable[[Issue], Union[str, None]]


class _TemplateValues(dict):
    """format_map source that leaves unknown placeholders untouched."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


@dataclass(frozen=True)
class ValidationConfig:
    """Options threaded through a single validation call.

    Attributes:
        coerce: Treat inputs as form data: empty strings become absent and
            string leaves are coerced to the schema's primitive kind
        error_map: Callable mapping a draft issue to a message, or None to
            fall through to the next message source
        messages: Per-code message templates, formatted with the issue
            context (plus ``path`` and ``input``)
        report_input: Whether issues keep the offending input value
    """

    coerce: bool = False
    error_map: ErrorMap | None = None
    messages: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    report_input: bool = True

    def __post_init__(self) -> None:
        unknown = [key for key in self.messages if key not in IssueCode._value2member_map_]
        if unknown:
            raise SchemaConfigurationError(
                f"Unknown issue code(s) in messages: {', '.join(sorted(unknown))}",
                context={"codes": sorted(unknown)},
            )
        object.__setattr__(self, "messages", MappingProxyType(dict(self.messages)))

    def with_overrides(self, **changes: Any) -> ValidationConfig:
        """Return a copy of this configuration with fields replaced."""
        return replace(self, **changes)

    def message_for(self, issue: Issue) -> str | None:
        """Resolve a message from the configured error map or templates.

        Args:
            issue: Draft issue (message not yet set)

        Returns:
            The configured message, or None when the configuration has none
        """
        if self.error_map is not None:
            message = self.error_map(issue)
            if message is not None:
                return message
        template = self.messages.get(issue.code.value)
        if template is None:
            return None
        values = _TemplateValues(issue.context)
        values["path"] = ".".join(str(segment) for segment in issue.path)
        values["input"] = issue.input
        return template.format_map(values)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ValidationConfig:
        """Create a configuration from a dictionary.

        Args:
            data: Mapping with optional ``coerce``, ``report_input`` and
                ``messages`` entries

        Returns:
            ValidationConfig instance
        """
        known = {"coerce", "report_input", "messages"}
        for key in data:
            if key not in known:
                logger.warning(f"Ignoring unknown validation config key: {key}")
        messages = data.get("messages") or {}
        if not isinstance(messages, Mapping):
            raise SchemaConfigurationError(
                "'messages' must be a mapping of issue code to template",
                context={"messages": repr(messages)},
            )
        return cls(
            coerce=bool(data.get("coerce", False)),
            report_input=bool(data.get("report_input", True)),
            messages={str(k): str(v) for k, v in messages.items()},
        )

    @classmethod
    def from_file(cls, path: str | Path) -> ValidationConfig:
        """Load a configuration from a YAML or JSON file.

        Args:
            path: Path to a ``.yaml``, ``.yml`` or ``.json`` file

        Returns:
            ValidationConfig instance

        Raises:
            SchemaConfigurationError: If the file is missing or unsupported
        """
        path = Path(path)
        if not path.exists():
            raise SchemaConfigurationError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()
        with open(path) as f:
            if suffix in [".yaml", ".yml"]:
                data = yaml.safe_load(f)
            elif suffix == ".json":
                data = json.load(f)
            else:
                raise SchemaConfigurationError(f"Unsupported file format: {suffix}")

        logger.info(f"Loaded validation config from {path}")
        return cls.from_dict(data or {})

    from_yaml = from_file


DEFAULT_CONFIG = ValidationConfig()

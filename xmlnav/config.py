"""Configuration system for xmlnav.

This module defines how users specify compile options for XPath
expressions and how the process-wide compiled-expression cache behaves.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Tuple

from .errors import ConfigurationError


@dataclass
class CompileOptions:
    """Options passed to the XPath compiler.

    Attributes:
        namespaces: Prefix -> namespace URI bindings for prefixed name tests
        variables: Name -> value bindings for ``$name`` references
    """

    namespaces: Dict[str, str] = field(default_factory=dict)
    variables: Dict[str, Any] = field(default_factory=dict)

    def cache_key(self) -> Tuple:
        """Return a hashable key identifying these options.

        Default options yield an empty tuple, so the cache key is
        effectively the expression string alone. Scalar variables are keyed
        by type and value; node-sets and other objects by the identity of
        what they hold, since a cached expression keeps those objects alive.
        """
        if not self.namespaces and not self.variables:
            return ()
        return (
            tuple(sorted(self.namespaces.items())),
            tuple(sorted((k, _value_key(v)) for k, v in self.variables.items())),
        )


def _value_key(value: Any) -> Tuple:
    if isinstance(value, (bool, int, float, str)):
        return (type(value).__name__, repr(value))
    if isinstance(value, (list, tuple)):
        return ("nodes",) + tuple(id(item) for item in value)
    return ("object", id(value))


@dataclass
class QueryConfig:
    """Process-wide settings for the query facade."""

    cache_enabled: bool = True
    cache_max_entries: int = 50  # <= 0 disables caching

    @property
    def caching(self) -> bool:
        """True if compiled expressions should be cached."""
        return self.cache_enabled and self.cache_max_entries > 0

    def validate(self) -> List[str]:
        """Validate configuration for consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []
        if not isinstance(self.cache_enabled, bool):
            errors.append("cache_enabled must be a bool")
        if not isinstance(self.cache_max_entries, int) or isinstance(self.cache_max_entries, bool):
            errors.append("cache_max_entries must be an int")
        return errors


_config = QueryConfig()


def get_config() -> QueryConfig:
    """Return the active process-wide configuration."""
    return _config


def configure(**kwargs) -> QueryConfig:
    """Replace the active configuration with updated values.

    Args:
        **kwargs: QueryConfig fields to change

    Returns:
        The new active QueryConfig

    Raises:
        ConfigurationError: If an unknown field is given or validation fails
    """
    global _config
    known = {f.name for f in fields(QueryConfig)}
    unknown = [key for key in kwargs if key not in known]
    if unknown:
        raise ConfigurationError(f"Unknown config options: {', '.join(sorted(unknown))}")

    new_config = replace(_config, **kwargs)
    errors = new_config.validate()
    if errors:
        raise ConfigurationError(f"Invalid configuration: {'; '.join(errors)}")

    _config = new_config
    return _config

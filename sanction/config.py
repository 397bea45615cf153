"""
Engine configuration for Sanction.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from sanction.exceptions import ConfigurationError


@dataclass(frozen=True)
class EngineConfig:
    """
    Configuration for a DecisionEngine.

    Attributes:
        name: Engine name, used in log messages and decision metadata.
        log_decisions: Log every decision (granted at DEBUG, denied at INFO).
        require_policies: Raise ConfigurationError when evaluating with no
            policies pushed, instead of logging a warning and denying.

    Example:
        >>> config = EngineConfig.from_dict({"name": "blog", "require_policies": True})
        >>> engine = DecisionEngine(config=config)
    """

    name: str = "sanction"
    log_decisions: bool = True
    require_policies: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ConfigurationError(
                config_key="name",
                expected="non-empty string",
                received=self.name,
            )
        for key in ("log_decisions", "require_policies"):
            value = getattr(self, key)
            if not isinstance(value, bool):
                raise ConfigurationError(config_key=key, expected="bool", received=value)

    @classmethod
    def default(cls) -> EngineConfig:
        """Create default configuration."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> EngineConfig:
        """
        Build a configuration from a plain mapping.

        Raises:
            ConfigurationError: On unknown keys or invalid values.
        """
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(
                config_key=unknown[0],
                expected=f"one of: {', '.join(sorted(known))}",
            )
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

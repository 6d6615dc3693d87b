"""Configuration for DepExtract."""

import json
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional


DEFAULT_SWIFT_PARSER_HOST = "http://swift.libraries.io"
DEFAULT_REMOTE_TIMEOUT = 60.0

ENV_PREFIX = "DEP_EXTRACT_"


@dataclass(frozen=True)
class DepExtractConfig:
    """Settings for parsers that depend on external services."""

    swift_parser_host: str = DEFAULT_SWIFT_PARSER_HOST
    remote_timeout: float = DEFAULT_REMOTE_TIMEOUT

    def __post_init__(self) -> None:
        """Validate the configuration."""
        if not self.swift_parser_host:
            raise ValueError("swift_parser_host cannot be empty")
        if self.remote_timeout <= 0:
            raise ValueError("remote_timeout must be positive")
        # Normalize so endpoint URLs can be built by simple concatenation
        object.__setattr__(self, "swift_parser_host", self.swift_parser_host.rstrip("/"))

    @property
    def swift_to_json_endpoint(self) -> str:
        return f"{self.swift_parser_host}/to-json"

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "DepExtractConfig":
        """Build a config from a mapping, ignoring unknown keys.

        Args:
            values: Mapping of field names to values

        Returns:
            Configuration instance

        Raises:
            ValueError: If a value has the wrong type
        """
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {key: value for key, value in values.items() if key in known}

        if "remote_timeout" in kwargs:
            try:
                kwargs["remote_timeout"] = float(kwargs["remote_timeout"])
            except (TypeError, ValueError):
                raise ValueError(f"Invalid remote_timeout: {kwargs['remote_timeout']!r}")
        if "swift_parser_host" in kwargs and not isinstance(kwargs["swift_parser_host"], str):
            raise ValueError(f"Invalid swift_parser_host: {kwargs['swift_parser_host']!r}")

        return cls(**kwargs)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DepExtractConfig":
        """Build a config from DEP_EXTRACT_* environment variables.

        Args:
            environ: Environment mapping (defaults to os.environ)

        Returns:
            Configuration instance
        """
        environ = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            key = ENV_PREFIX + f.name.upper()
            if environ.get(key):
                values[f.name] = environ[key]
        return cls.from_mapping(values)

    @classmethod
    def from_file(cls, path: Path) -> "DepExtractConfig":
        """Load a config from a JSON file.

        Args:
            path: Path to a JSON object with config keys

        Returns:
            Configuration instance

        Raises:
            ValueError: If the file is not a JSON object
        """
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a JSON object: {path}")
        return cls.from_mapping(data)

    def merge(self, **overrides: Any) -> "DepExtractConfig":
        """Return a copy with the non-None overrides applied."""
        values = asdict(self)
        values.update({key: value for key, value in overrides.items() if value is not None})
        return self.from_mapping(values)

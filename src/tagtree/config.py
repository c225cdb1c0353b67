"""Configuration system for tagtree.

Provides hierarchical configuration with precedence:
1. CLI flags (highest)
2. Environment variables
3. Project config (.tagtree/config.json)
4. Global config (~/.tagtree_config.json)
5. Hardcoded defaults (lowest)
"""

from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from tagtree.sources import VALID_SOURCE_FORMATS

logger = logging.getLogger(__name__)

# Valid values for enums
VALID_OUTPUT_FORMATS = ("ascii", "json")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Hardcoded defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
DEFAULT_CORS_ORIGINS = ["http://localhost:1337"]
DEFAULT_CORS_HEADERS = ["Content-Type", "Authorization", "Origin", "Accept"]
DEFAULT_CSP_DIRECTIVES = {
    "default-src": ["'self'"],
    "connect-src": ["'self'", "https:"],
    "img-src": ["'self'", "data:", "blob:"],
    "media-src": ["'self'", "data:", "blob:"],
}

# Environment variable names
ENV_OUTPUT_FORMAT = "TAGTREE_OUTPUT_FORMAT"
ENV_LOG_LEVEL = "TAGTREE_LOG_LEVEL"
ENV_SOURCE = "TAGTREE_SOURCE"
ENV_HOST = "TAGTREE_HOST"
ENV_PORT = "TAGTREE_PORT"
ENV_CORS_ORIGINS = "TAGTREE_CORS_ORIGINS"


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


class ConfigLoadError(Exception):
    """Raised when configuration file cannot be loaded."""

    pass


def _check_unknown(cls: type, data: dict[str, Any], section: str) -> None:
    """Reject keys that are not dataclass fields. Template comments are allowed."""
    known_fields = {f.name for f in fields(cls)}
    unknown = {
        k for k in data.keys() - known_fields if not k.startswith("_comment")
    }
    if unknown:
        raise ConfigValidationError(
            f"Unknown fields in {section} config: {', '.join(sorted(unknown))}"
        )


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigValidationError(f"Config section '{name}' must be a JSON object")
    return section


@dataclass
class DefaultsConfig:
    """Default configuration values."""

    output_format: str = "ascii"
    log_level: str = "WARNING"

    def validate(self) -> None:
        """Validate configuration values."""
        if self.output_format not in VALID_OUTPUT_FORMATS:
            raise ConfigValidationError(
                f"Invalid output_format '{self.output_format}'. "
                f"Valid values: {', '.join(VALID_OUTPUT_FORMATS)}"
            )
        if not isinstance(self.log_level, str) or self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ConfigValidationError(
                f"Invalid log_level '{self.log_level}'. "
                f"Valid values: {', '.join(VALID_LOG_LEVELS)}"
            )

    def to_dict(self, exclude_none: bool = False) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"output_format": self.output_format, "log_level": self.log_level}

    @classmethod
    def from_dict(cls, data: dict[str, Any], strict: bool = False) -> "DefaultsConfig":
        """Create from dictionary."""
        if strict:
            _check_unknown(cls, data, "defaults")

        return cls(
            output_format=data.get("output_format", "ascii"),
            log_level=data.get("log_level", "WARNING"),
        )


@dataclass
class SourceConfig:
    """Where the tag collection is read from."""

    path: str | None = None
    format: str = "auto"

    def validate(self) -> None:
        """Validate source configuration."""
        if self.format not in VALID_SOURCE_FORMATS:
            raise ConfigValidationError(
                f"Invalid source format '{self.format}'. "
                f"Valid values: {', '.join(VALID_SOURCE_FORMATS)}"
            )

    def to_dict(self, exclude_none: bool = False) -> dict[str, Any]:
        """Convert to dictionary."""
        result = {"path": self.path, "format": self.format}
        if exclude_none:
            return {k: v for k, v in result.items() if v is not None}
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any], strict: bool = False) -> "SourceConfig":
        """Create from dictionary."""
        if strict:
            _check_unknown(cls, data, "source")

        return cls(
            path=data.get("path"),
            format=data.get("format", "auto"),
        )


@dataclass
class ServerConfig:
    """HTTP server bind settings."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    def validate(self) -> None:
        """Validate server values."""
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise ConfigValidationError(
                f"port must be an integer, got {self.port!r}"
            )
        if not 0 < self.port < 65536:
            raise ConfigValidationError(
                f"port must be between 1 and 65535, got {self.port}"
            )

    def to_dict(self, exclude_none: bool = False) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"host": self.host, "port": self.port}

    @classmethod
    def from_dict(cls, data: dict[str, Any], strict: bool = False) -> "ServerConfig":
        """Create from dictionary."""
        if strict:
            _check_unknown(cls, data, "server")

        return cls(
            host=data.get("host", DEFAULT_HOST),
            port=data.get("port", DEFAULT_PORT),
        )


@dataclass
class CorsConfig:
    """Cross-origin settings for the HTTP API."""

    enabled: bool = True
    origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    headers: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_HEADERS))
    allow_credentials: bool = True

    def validate(self) -> None:
        """Validate CORS values."""
        if self.allow_credentials and "*" in self.origins:
            raise ConfigValidationError(
                "CORS origin '*' cannot be combined with allow_credentials"
            )

    def to_dict(self, exclude_none: bool = False) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "enabled": self.enabled,
            "origins": list(self.origins),
            "headers": list(self.headers),
            "allow_credentials": self.allow_credentials,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], strict: bool = False) -> "CorsConfig":
        """Create from dictionary."""
        if strict:
            _check_unknown(cls, data, "cors")

        return cls(
            enabled=data.get("enabled", True),
            origins=list(data.get("origins", DEFAULT_CORS_ORIGINS)),
            headers=list(data.get("headers", DEFAULT_CORS_HEADERS)),
            allow_credentials=data.get("allow_credentials", True),
        )


@dataclass
class SecurityConfig:
    """Response security headers."""

    content_security_policy: dict[str, list[str]] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_CSP_DIRECTIVES)
    )
    powered_by: str | None = None

    def validate(self) -> None:
        """Validate CSP directives."""
        if not isinstance(self.content_security_policy, dict):
            raise ConfigValidationError(
                "content_security_policy must map directives to lists of sources"
            )
        for directive, sources in self.content_security_policy.items():
            if not isinstance(sources, list):
                raise ConfigValidationError(
                    f"CSP directive '{directive}' must be a list of sources"
                )

    def csp_header(self) -> str:
        """Serialize directives into a Content-Security-Policy header value."""
        return "; ".join(
            f"{directive} {' '.join(sources)}" if sources else directive
            for directive, sources in self.content_security_policy.items()
        )

    def to_dict(self, exclude_none: bool = False) -> dict[str, Any]:
        """Convert to dictionary."""
        result = {
            "content_security_policy": copy.deepcopy(self.content_security_policy),
            "powered_by": self.powered_by,
        }
        if exclude_none:
            return {k: v for k, v in result.items() if v is not None}
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any], strict: bool = False) -> "SecurityConfig":
        """Create from dictionary."""
        if strict:
            _check_unknown(cls, data, "security")

        csp = data.get("content_security_policy", DEFAULT_CSP_DIRECTIVES)
        if not isinstance(csp, dict):
            raise ConfigValidationError(
                "content_security_policy must map directives to lists of sources"
            )

        return cls(
            content_security_policy=copy.deepcopy(csp),
            powered_by=data.get("powered_by"),
        )


@dataclass
class TagtreeConfig:
    """Main configuration container."""

    version: str = "1"
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    cors: CorsConfig = field(default_factory=CorsConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)

    def validate(self) -> None:
        """Validate entire configuration."""
        self.defaults.validate()
        self.source.validate()
        self.server.validate()
        self.cors.validate()
        self.security.validate()

    def to_dict(self, exclude_none: bool = False) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "version": self.version,
            "defaults": self.defaults.to_dict(exclude_none),
            "source": self.source.to_dict(exclude_none),
            "server": self.server.to_dict(exclude_none),
            "cors": self.cors.to_dict(exclude_none),
            "security": self.security.to_dict(exclude_none),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], strict: bool = False) -> "TagtreeConfig":
        """Create from dictionary."""
        if strict:
            _check_unknown(cls, data, "top-level")

        return cls(
            version=data.get("version", "1"),
            defaults=DefaultsConfig.from_dict(_section(data, "defaults"), strict),
            source=SourceConfig.from_dict(_section(data, "source"), strict),
            server=ServerConfig.from_dict(_section(data, "server"), strict),
            cors=CorsConfig.from_dict(_section(data, "cors"), strict),
            security=SecurityConfig.from_dict(_section(data, "security"), strict),
        )


def get_global_config_path() -> Path:
    """Get path to global config file."""
    return Path.home() / ".tagtree_config.json"


def get_project_config_path(project_root: Path) -> Path:
    """Get path to project config file."""
    return project_root / ".tagtree" / "config.json"


def load_config_file(path: Path, strict: bool = False) -> TagtreeConfig:
    """Load configuration from a JSON file.

    Args:
        path: Path to the config file
        strict: If True, fail on unknown fields

    Returns:
        TagtreeConfig instance (defaults if the file does not exist)

    Raises:
        ConfigLoadError: If file cannot be read or parsed
        ConfigValidationError: If strict=True and unknown fields found
    """
    if not path.exists():
        return TagtreeConfig()

    try:
        content = path.read_text()
    except PermissionError as e:
        raise ConfigLoadError(f"Permission denied reading {path}: {e}")
    except OSError as e:
        raise ConfigLoadError(f"Error reading {path}: {e}")

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"Invalid JSON in {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigLoadError(f"Config in {path} must be a JSON object")

    logger.debug("Loaded config from %s", path)
    return TagtreeConfig.from_dict(data, strict=strict)


def merge_configs(*configs: TagtreeConfig) -> TagtreeConfig:
    """Merge multiple configs with later configs taking precedence.

    Values equal to the hardcoded defaults in later configs do NOT override
    earlier values, so partial configs layer properly.

    Args:
        *configs: Configs to merge (first is base, last has highest priority)

    Returns:
        Merged TagtreeConfig
    """
    if not configs:
        return TagtreeConfig()

    base = TagtreeConfig()
    result = copy.deepcopy(configs[0])

    for config in configs[1:]:
        # Merge defaults (only non-default values)
        if config.defaults.output_format != base.defaults.output_format:
            result.defaults.output_format = config.defaults.output_format
        if config.defaults.log_level != base.defaults.log_level:
            result.defaults.log_level = config.defaults.log_level

        # Merge source
        if config.source.path is not None:
            result.source.path = config.source.path
        if config.source.format != base.source.format:
            result.source.format = config.source.format

        # Merge server
        if config.server.host != base.server.host:
            result.server.host = config.server.host
        if config.server.port != base.server.port:
            result.server.port = config.server.port

        # Merge CORS
        if not config.cors.enabled:
            result.cors.enabled = False
        if config.cors.origins != base.cors.origins:
            result.cors.origins = list(config.cors.origins)
        if config.cors.headers != base.cors.headers:
            result.cors.headers = list(config.cors.headers)
        if not config.cors.allow_credentials:
            result.cors.allow_credentials = False

        # Merge security (directives merge per key)
        for directive, sources in config.security.content_security_policy.items():
            if base.security.content_security_policy.get(directive) != sources:
                result.security.content_security_policy[directive] = list(sources)
        if config.security.powered_by is not None:
            result.security.powered_by = config.security.powered_by

    return result


def apply_env_overrides(config: TagtreeConfig) -> TagtreeConfig:
    """Apply environment variable overrides to config.

    Args:
        config: Base configuration

    Returns:
        New config with env var overrides applied

    Raises:
        ConfigValidationError: If env var value is invalid
    """
    result = copy.deepcopy(config)

    if output_format := os.environ.get(ENV_OUTPUT_FORMAT):
        result.defaults.output_format = output_format

    if log_level := os.environ.get(ENV_LOG_LEVEL):
        result.defaults.log_level = log_level.upper()

    if source := os.environ.get(ENV_SOURCE):
        result.source.path = source

    if host := os.environ.get(ENV_HOST):
        result.server.host = host

    if port_str := os.environ.get(ENV_PORT):
        try:
            result.server.port = int(port_str)
        except ValueError:
            raise ConfigValidationError(
                f"{ENV_PORT} must be an integer, got '{port_str}'"
            )

    if origins := os.environ.get(ENV_CORS_ORIGINS):
        result.cors.origins = [o.strip() for o in origins.split(",") if o.strip()]

    return result


def get_config(project_root: Path | None = None) -> TagtreeConfig:
    """Load and merge configuration from all sources.

    Loads in order (later sources override earlier):
    1. Hardcoded defaults
    2. Global config (~/.tagtree_config.json)
    3. Project config (.tagtree/config.json)
    4. Environment variables

    Args:
        project_root: Directory holding .tagtree/ (for project config)

    Returns:
        Merged configuration with all overrides applied
    """
    base_config = TagtreeConfig()

    global_config = load_config_file(get_global_config_path())

    project_config = TagtreeConfig()
    if project_root is not None:
        project_config = load_config_file(get_project_config_path(project_root))

    merged = merge_configs(base_config, global_config, project_config)

    return apply_env_overrides(merged)


def generate_config_template() -> dict[str, Any]:
    """Generate a config template dictionary.

    Returns:
        Dictionary suitable for JSON serialization
    """
    return {
        "version": "1",
        "_comment_version": "Config file format version",
        "defaults": {
            "output_format": "ascii",
            "_comment_output_format": f"CLI output format. Valid: {', '.join(VALID_OUTPUT_FORMATS)}",
            "log_level": "WARNING",
            "_comment_log_level": f"Log level. Valid: {', '.join(VALID_LOG_LEVELS)}",
        },
        "source": {
            "path": None,
            "_comment_path": "Tag file (JSON or YAML) used when no SOURCE argument is given",
            "format": "auto",
            "_comment_format": f"Tag file format. Valid: {', '.join(VALID_SOURCE_FORMATS)}",
        },
        "server": {
            "host": DEFAULT_HOST,
            "port": DEFAULT_PORT,
            "_comment": "Bind address for 'tagtree serve'",
        },
        "cors": {
            "enabled": True,
            "origins": list(DEFAULT_CORS_ORIGINS),
            "headers": list(DEFAULT_CORS_HEADERS),
            "allow_credentials": True,
            "_comment": "Cross-origin access to the HTTP API",
        },
        "security": {
            "content_security_policy": copy.deepcopy(DEFAULT_CSP_DIRECTIVES),
            "_comment_content_security_policy": "Directives joined into the Content-Security-Policy header",
            "powered_by": None,
            "_comment_powered_by": "Value for the X-Powered-By header (omitted when null)",
        },
    }

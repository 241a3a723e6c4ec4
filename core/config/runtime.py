"""
Runtime Configuration

Central configuration for pass contents, signing credentials, asset
retrieval and the pass state store.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Optional
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

ENV_PREFIX = "PKPASS_"


@dataclass
class PassConfig:
    """Static pass.json values shared by every issued pass."""
    pass_type_identifier: str = "pass.com.example.loyalty"
    team_identifier: str = "TEAMID0000"
    organization_name: str = "The Flying Dutchman"
    description: str = "Loyalty Card"
    logo_text: Optional[str] = "The Flying Dutchman"
    foreground_color: Optional[str] = "rgb(0,0,0)"
    background_color: Optional[str] = "rgb(255,182,193)"
    currency_code: str = "EUR"
    balance_label: str = "€ AVAILABLE"
    holder_label: str = "CARD OF"
    links_text: Optional[str] = "Tap the button on the back for more."
    web_service_url: Optional[str] = None
    default_holder_name: str = "Customer"


@dataclass
class SigningConfig:
    """
    Signing credentials.

    Each PEM can be given inline or as a path; inline wins.
    ``mode`` is "raw" (bare RSA signature) or "cms" (detached SignedData).
    """
    mode: str = "raw"
    private_key_pem: Optional[str] = None
    private_key_path: Optional[str] = None
    private_key_password: Optional[str] = None
    certificate_pem: Optional[str] = None
    certificate_path: Optional[str] = None
    intermediate_pem: Optional[str] = None
    intermediate_path: Optional[str] = None

    @property
    def has_private_key(self) -> bool:
        return bool(self.private_key_pem or self.private_key_path)


@dataclass
class AssetConfig:
    """Which binary assets go into every pass, and where they come from."""
    names: list[str] = field(default_factory=lambda: ["logo.png"])
    source: str = "directory"  # directory | http
    directory: str = "assets"
    base_url: Optional[str] = None


@dataclass
class HttpConfig:
    """Settings for the asset download client."""
    timeout: float = 30.0
    user_agent: str = "pkpass-service/0.1"


@dataclass
class StoreConfig:
    """Pass state store backend."""
    backend: str = "memory"  # memory | json
    path: str = "data/passes.json"


def _build(cls, data: Optional[dict[str, Any]]):
    """Construct a section dataclass, ignoring unknown keys."""
    if not data:
        return cls()
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in known})


# (section, attribute, variable suffix)
_ENV_MAP: tuple[tuple[Optional[str], str, str], ...] = (
    ("pass_", "pass_type_identifier", "PASS_TYPE_ID"),
    ("pass_", "team_identifier", "TEAM_ID"),
    ("pass_", "organization_name", "ORGANIZATION_NAME"),
    ("pass_", "web_service_url", "WEB_SERVICE_URL"),
    ("signing", "mode", "SIGNING_MODE"),
    ("signing", "private_key_pem", "PRIVATE_KEY"),
    ("signing", "private_key_path", "PRIVATE_KEY_PATH"),
    ("signing", "private_key_password", "PRIVATE_KEY_PASSWORD"),
    ("signing", "certificate_pem", "CERTIFICATE"),
    ("signing", "certificate_path", "CERTIFICATE_PATH"),
    ("signing", "intermediate_pem", "INTERMEDIATE_CERTIFICATE"),
    ("signing", "intermediate_path", "INTERMEDIATE_CERTIFICATE_PATH"),
    ("assets", "source", "ASSET_SOURCE"),
    ("assets", "directory", "ASSETS_DIR"),
    ("assets", "base_url", "ASSETS_BASE_URL"),
    ("store", "backend", "STORE_BACKEND"),
    ("store", "path", "STORE_PATH"),
    (None, "log_level", "LOG_LEVEL"),
)


@dataclass
class RuntimeConfig:
    """
    Everything the service and CLI need to build and serve passes.

    Built from a JSON or YAML file, from PKPASS_* variables, or directly.
    """
    pass_: PassConfig = field(default_factory=PassConfig)
    signing: SigningConfig = field(default_factory=SigningConfig)
    assets: AssetConfig = field(default_factory=AssetConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    log_level: str = "INFO"
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Nested override dict read from PKPASS_* variables. Unset or empty
        variables are skipped.

        Recognised suffixes (all prefixed with PKPASS_):
        - PASS_TYPE_ID, TEAM_ID, ORGANIZATION_NAME, WEB_SERVICE_URL
        - SIGNING_MODE: "raw" or "cms"
        - PRIVATE_KEY / PRIVATE_KEY_PATH / PRIVATE_KEY_PASSWORD
        - CERTIFICATE / CERTIFICATE_PATH
        - INTERMEDIATE_CERTIFICATE / INTERMEDIATE_CERTIFICATE_PATH
        - ASSET_SOURCE, ASSETS_DIR, ASSETS_BASE_URL, ASSET_NAMES (comma separated)
        - STORE_BACKEND, STORE_PATH
        - HTTP_TIMEOUT
        - LOG_LEVEL
        """
        overrides: dict[str, Any] = {}

        for section, attr, suffix in _ENV_MAP:
            value = os.getenv(ENV_PREFIX + suffix)
            if not value:
                continue
            if section is None:
                overrides[attr] = value
            else:
                overrides.setdefault(section, {})[attr] = value

        names = os.getenv(ENV_PREFIX + "ASSET_NAMES")
        if names:
            overrides.setdefault("assets", {})["names"] = [
                n.strip() for n in names.split(",") if n.strip()
            ]

        timeout = os.getenv(ENV_PREFIX + "HTTP_TIMEOUT")
        if timeout:
            overrides.setdefault("http", {})["timeout"] = float(timeout)

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """Defaults overlaid with PKPASS_* variables; no file is read."""
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Parse a YAML config; an empty document yields the defaults."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Build from nested dicts; missing sections and keys keep their defaults."""
        pass_data = data.get("pass_") or data.get("pass") or {}
        return cls(
            pass_=_build(PassConfig, pass_data),
            signing=_build(SigningConfig, data.get("signing")),
            assets=_build(AssetConfig, data.get("assets")),
            http=_build(HttpConfig, data.get("http")),
            store=_build(StoreConfig, data.get("store")),
            log_level=str(data.get("log_level", "INFO")).upper(),
            extra=data.get("extra", {}),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Copy of this config with PKPASS_* values written over it.

        Returns self unchanged when no variable is set.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)
        for section, values in overrides.items():
            if isinstance(values, dict):
                target = getattr(new_config, section)
                for key, value in values.items():
                    setattr(target, key, value)
            else:
                setattr(new_config, section, values)
        new_config.log_level = new_config.log_level.upper()
        return new_config

    def to_dict(self, *, redact: bool = True) -> dict[str, Any]:
        """Plain nested dict; inline secrets are masked unless redact is False."""
        def section(obj) -> dict[str, Any]:
            return {f.name: copy.deepcopy(getattr(obj, f.name)) for f in fields(obj)}

        signing = section(self.signing)
        if redact:
            for key in ("private_key_pem", "private_key_password", "certificate_pem", "intermediate_pem"):
                if signing.get(key):
                    signing[key] = "***"

        return {
            "pass": section(self.pass_),
            "signing": signing,
            "assets": section(self.assets),
            "http": section(self.http),
            "store": section(self.store),
            "log_level": self.log_level,
            "extra": self.extra,
        }


def default_config_paths() -> list[Path]:
    """Config file search order."""
    return [
        Path.cwd() / "pkpass.json",
        Path.cwd() / ".pkpass.json",
        Path.home() / ".config" / "pkpass" / "config.json",
    ]


def load_config_file(path: str | Path) -> RuntimeConfig:
    """Load a JSON or YAML (.yaml/.yml) config file."""
    path = Path(path)
    if path.suffix in (".yaml", ".yml"):
        return RuntimeConfig.from_yaml(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path) as f:
        data = json.load(f)
    return RuntimeConfig.from_dict(data or {})


def load_config(config_path: str | Path | None = None) -> RuntimeConfig:
    """
    Resolve the effective configuration.

    An explicit path must exist. Without one the default locations are
    searched and the first existing file wins. Environment variables
    ALWAYS override file values.
    """
    config: Optional[RuntimeConfig] = None

    if config_path is not None:
        config = load_config_file(config_path)
    else:
        for path in default_config_paths():
            if path.exists():
                config = load_config_file(path)
                logger.info(f"Loaded config from {path}")
                break

    if config is None:
        config = RuntimeConfig()

    return config.with_env_overrides()


_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Process-wide config, built from the environment on first call."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: Optional[RuntimeConfig]) -> None:
    """Set (or with None, reset) the default runtime configuration."""
    global _default_config
    _default_config = config

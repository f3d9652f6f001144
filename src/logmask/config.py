"""YAML/dict config loader for logmask.

Supports loading from a YAML file or a plain dict (for embedding
in a larger application config).

Example YAML:

    logmask:
      strict_values: true
      card_policy: payment_context   # "always" or "payment_context"
      skip_categories:
        - TIMESTAMP
      allow_keys:
        - currency
        - country
      allow_list:
        - support@example.com
      secret_placeholder: "[REDACTED_SECRET]"
      use_presidio: false
      upload:
        max_bytes: 5242880
        allowed_extensions: [".log", ".txt", ".json"]
"""

from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .patterns import (
    DEFAULT_ALLOW_KEYS,
    DEFAULT_SECRET_KEYS,
    DEFAULT_USERNAME_KEYS,
    Category,
)
from .redactor import Redactor, RedactorConfig
from .upload import ALLOWED_EXTENSIONS, MAX_UPLOAD_BYTES, UploadPolicy

logger = logging.getLogger(__name__)

CARD_POLICIES = ("always", "payment_context")


def _truthy(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _category_name(c: Any) -> str:
    return c.value if isinstance(c, Category) else str(c).strip().upper()


def load_config(data: dict[str, Any]) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    # Support nested under "logmask" key or flat
    if "logmask" in data:
        data = data["logmask"] or {}

    upload = data.get("upload") or {}
    cfg = {
        "strict_values": bool(data.get("strict_values", False)),
        "skip_categories": {_category_name(c) for c in data.get("skip_categories", [])},
        "allow_keys": {k.lower() for k in data.get("allow_keys", DEFAULT_ALLOW_KEYS)},
        "allow_list": set(data.get("allow_list", [])),
        "secret_keys": tuple(data.get("secret_keys", DEFAULT_SECRET_KEYS)),
        "username_keys": tuple(data.get("username_keys", DEFAULT_USERNAME_KEYS)),
        "secret_placeholder": data.get("secret_placeholder", "[REDACTED_SECRET]"),
        "username_placeholder": data.get("username_placeholder", "[REDACTED_USER]"),
        "card_policy": data.get("card_policy", "always"),
        "use_presidio": bool(data.get("use_presidio", False)),
        "language": data.get("language", "en"),
        "score_threshold": float(data.get("score_threshold", 0.35)),
        "max_bytes": int(upload.get("max_bytes", MAX_UPLOAD_BYTES)),
        "allowed_extensions": tuple(upload.get("allowed_extensions", ALLOWED_EXTENSIONS)),
    }
    _validate(cfg)
    return cfg


def _validate(cfg: dict[str, Any]) -> None:
    known = {c.value for c in Category}
    unknown = {_category_name(c) for c in cfg["skip_categories"]} - known
    if unknown:
        raise ConfigError(f"unknown categories in skip_categories: {sorted(unknown)}")

    if cfg["card_policy"] not in CARD_POLICIES:
        raise ConfigError(
            f"card_policy must be one of {CARD_POLICIES}, got {cfg['card_policy']!r}"
        )

    for name in ("secret_placeholder", "username_placeholder"):
        placeholder = cfg[name]
        if not placeholder or "\n" in placeholder:
            raise ConfigError(f"{name} must be a non-empty single-line string")

    if not cfg["secret_keys"]:
        raise ConfigError("secret_keys must not be empty")
    if not cfg["username_keys"]:
        raise ConfigError("username_keys must not be empty")
    if cfg["max_bytes"] <= 0:
        raise ConfigError("upload.max_bytes must be positive")


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")
    logger.debug("loaded config from %s", path)
    return load_config(raw)


def load_default() -> dict[str, Any]:
    """Config from ``$LOGMASK_CONFIG`` if set, else defaults; ``$LOGMASK_STRICT`` overrides."""
    path = os.environ.get("LOGMASK_CONFIG")
    cfg = load_from_yaml(path) if path else load_config({})
    strict = os.environ.get("LOGMASK_STRICT")
    if strict is not None:
        cfg["strict_values"] = _truthy(strict)
    return cfg


def _normalised(config: dict[str, Any]) -> dict[str, Any]:
    # Already-loaded configs may have been edited since, so check them again
    if "max_bytes" in config:
        _validate(config)
        return config
    return load_config(config)


def create_redactor(config: dict[str, Any]) -> Redactor:
    """Create a fully configured Redactor from a config dict."""
    cfg = _normalised(config)

    redactor_config = RedactorConfig(
        strict_values=cfg["strict_values"],
        allow_keys=cfg["allow_keys"],
        skip_categories=cfg["skip_categories"],
        allow_list=cfg["allow_list"],
        secret_keys=cfg["secret_keys"],
        username_keys=cfg["username_keys"],
        secret_placeholder=cfg["secret_placeholder"],
        username_placeholder=cfg["username_placeholder"],
        card_policy=cfg["card_policy"],
        use_presidio=cfg["use_presidio"],
        language=cfg["language"],
        score_threshold=cfg["score_threshold"],
    )
    logger.info(
        "redactor ready (strict_values=%s, card_policy=%s, presidio=%s)",
        redactor_config.strict_values,
        redactor_config.card_policy,
        redactor_config.use_presidio,
    )
    return Redactor(redactor_config)


def create_upload_policy(config: dict[str, Any]) -> UploadPolicy:
    cfg = _normalised(config)
    return UploadPolicy(
        max_bytes=cfg["max_bytes"],
        allowed_extensions=cfg["allowed_extensions"],
    )

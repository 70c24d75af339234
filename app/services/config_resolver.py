"""Delivery configuration resolution.

Precedence per field: persisted override (system_config row, non-empty) >
environment variable (non-empty) > literal default. Only the sender address
has a literal default; an absent API key or recipient is a valid result.

Nothing is cached: every ``resolve()`` re-reads the store so an admin edit
takes effect on the very next send. A failing store read never propagates;
it is logged and the resolver degrades to environment values.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from sqlalchemy.orm import Session

from app.config import (
    CONFIG_KEY_API_KEY,
    CONFIG_KEY_RECIPIENT,
    CONFIG_KEY_SENDER,
    DELIVERY_CONFIG_KEYS,
    EMAIL_SETTINGS,
)
from app.models.db.system_config import SystemConfig
from app.utils import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DeliveryConfig:
    api_key: Optional[str]
    recipient: Optional[str]
    sender_address: str

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.recipient)

    def missing_fields(self) -> list[str]:
        missing = []
        if not self.api_key:
            missing.append(CONFIG_KEY_API_KEY)
        if not self.recipient:
            missing.append(CONFIG_KEY_RECIPIENT)
        return missing


class ConfigResolver:
    """Resolve :class:`DeliveryConfig` from an injected storage handle + environment."""

    def __init__(self, session_factory: Callable[[], Session], environ: Optional[Mapping[str, str]] = None):
        self._session_factory = session_factory
        self._environ = environ if environ is not None else os.environ

    def _read_overrides(self) -> dict[str, str]:
        overrides: dict[str, str] = {}
        try:
            session = self._session_factory()
            try:
                rows = (
                    session.query(SystemConfig)
                    .filter(SystemConfig.config_key.in_(DELIVERY_CONFIG_KEYS))
                    .all()
                )
                for row in rows:
                    if row.config_value:
                        overrides[row.config_key] = row.config_value
            finally:
                session.close()
        except Exception as e:
            logger.warning(
                "Could not read system_config overrides; using environment values",
                error=str(e),
                error_type=type(e).__name__,
            )
            return {}
        return overrides

    def _pick(self, key: str, overrides: Mapping[str, str]) -> Optional[str]:
        return overrides.get(key) or self._environ.get(key) or None

    def resolve(self) -> DeliveryConfig:
        overrides = self._read_overrides()
        config = DeliveryConfig(
            api_key=self._pick(CONFIG_KEY_API_KEY, overrides),
            recipient=self._pick(CONFIG_KEY_RECIPIENT, overrides),
            sender_address=self._pick(CONFIG_KEY_SENDER, overrides) or str(EMAIL_SETTINGS["default_from_address"]),
        )
        logger.debug(
            "Resolved delivery config",
            overridden_keys=sorted(overrides),
            configured=config.is_configured,
        )
        return config


__all__ = ["DeliveryConfig", "ConfigResolver"]

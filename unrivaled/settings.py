from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from datetime import datetime, timezone

from cryptography.fernet import Fernet, InvalidToken

from unrivaled.ingestion.leagues import CURRENT_SEASON, LEAGUE_ID
from unrivaled.models import AppSettings

logger = logging.getLogger(__name__)
_FERNET: Fernet | None = None

FREE_TIER_API_KEY = "123"


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    v1_base_url: str = "https://www.thesportsdb.com/api/v1/json"
    v2_base_url: str = "https://www.thesportsdb.com/api/v2/json"
    site_url: str = "https://www.unrivaled.basketball"
    league_id: str = LEAGUE_ID
    season: str = CURRENT_SEASON
    initial_api_key: str = FREE_TIER_API_KEY
    timeout_seconds: float = 12.0
    max_attempts: int = 3
    live_poll_seconds: float = 30.0
    display_timezone: str = "America/New_York"
    scrape_free_tier: bool = False


def load_config() -> Config:
    return Config(
        v1_base_url=os.getenv(
            "SPORTSDB_V1_BASE_URL", "https://www.thesportsdb.com/api/v1/json"
        ).rstrip("/"),
        v2_base_url=os.getenv(
            "SPORTSDB_V2_BASE_URL", "https://www.thesportsdb.com/api/v2/json"
        ).rstrip("/"),
        site_url=os.getenv("UNRIVALED_SITE_URL", "https://www.unrivaled.basketball").rstrip("/"),
        league_id=os.getenv("UNRIVALED_LEAGUE_ID", LEAGUE_ID),
        season=os.getenv("UNRIVALED_SEASON", CURRENT_SEASON),
        initial_api_key=(os.getenv("SPORTSDB_API_KEY") or FREE_TIER_API_KEY).strip(),
        timeout_seconds=float(os.getenv("SPORTSDB_TIMEOUT_SECONDS", "12")),
        max_attempts=int(os.getenv("SPORTSDB_MAX_ATTEMPTS", "3")),
        live_poll_seconds=float(os.getenv("LIVE_POLL_SECONDS", "30")),
        display_timezone=os.getenv("DISPLAY_TIMEZONE", "America/New_York"),
        scrape_free_tier=_env_flag("UNRIVALED_SCRAPE_FREE_TIER"),
    )


def get_fernet() -> Fernet:
    global _FERNET
    if _FERNET is not None:
        return _FERNET
    secret = (os.getenv("APP_SECRET_KEY") or "").strip()
    if not secret:
        secret = Fernet.generate_key().decode("utf-8")
        logger.warning(
            "APP_SECRET_KEY missing. Generated a temporary key: %s. "
            "Set APP_SECRET_KEY to this value to persist decryption.",
            secret,
        )
    _FERNET = Fernet(secret.encode("utf-8"))
    return _FERNET


def encrypt_api_key(api_key: str | None) -> str | None:
    if not api_key:
        return None
    fernet = get_fernet()
    return fernet.encrypt(api_key.encode("utf-8")).decode("utf-8")


def decrypt_api_key(encrypted: str | None) -> str | None:
    if not encrypted:
        return None
    fernet = get_fernet()
    try:
        return fernet.decrypt(encrypted.encode("utf-8")).decode("utf-8")
    except InvalidToken:
        logger.error("Failed to decrypt TheSportsDB API key. Check APP_SECRET_KEY.")
        return None


def get_or_create_settings(db) -> AppSettings:
    settings = db.query(AppSettings).filter(AppSettings.id == 1).one_or_none()
    if settings:
        return settings
    settings = AppSettings(id=1, sportsdb_api_key_enc=None, updated_at_utc=datetime.now(timezone.utc))
    db.add(settings)
    db.commit()
    db.refresh(settings)
    return settings


class CredentialManager:
    """Holds the TheSportsDB credential and decides the access tier.

    The key is read fresh on every request; changing it never triggers a
    refresh by itself. When ``session_factory`` is given, the key is persisted
    encrypted in ``app_settings``.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        default_key: str = FREE_TIER_API_KEY,
        session_factory=None,
    ) -> None:
        self._default_key = default_key
        self._session_factory = session_factory
        self._lock = threading.Lock()
        stored = self._load_persisted()
        self._api_key = stored or api_key or default_key

    @property
    def default_key(self) -> str:
        return self._default_key

    @property
    def api_key(self) -> str:
        with self._lock:
            return self._api_key

    @property
    def is_premium(self) -> bool:
        key = self.api_key
        return bool(key) and key != self._default_key

    @property
    def tier(self) -> str:
        return "premium" if self.is_premium else "free"

    def set_api_key(self, api_key: str | None) -> bool:
        """Store a new credential. Returns True when the tier changed."""
        was_premium = self.is_premium
        cleaned = (api_key or "").strip()
        with self._lock:
            self._api_key = cleaned
        self._persist(cleaned)
        tier_changed = was_premium != self.is_premium
        logger.info(
            "API key updated: tier=%s tier_changed=%s (refresh required)",
            self.tier,
            tier_changed,
        )
        return tier_changed

    def reset_to_free(self) -> bool:
        return self.set_api_key(self._default_key)

    def _load_persisted(self) -> str | None:
        if self._session_factory is None:
            return None
        with self._session_factory() as db:
            settings = get_or_create_settings(db)
            return decrypt_api_key(settings.sportsdb_api_key_enc)

    def _persist(self, api_key: str) -> None:
        if self._session_factory is None:
            return
        with self._session_factory() as db:
            settings = get_or_create_settings(db)
            settings.sportsdb_api_key_enc = encrypt_api_key(api_key)
            settings.updated_at_utc = datetime.now(timezone.utc)
            db.commit()

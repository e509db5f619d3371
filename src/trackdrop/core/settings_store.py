"""
Application settings persisted as settings.json, and the credit ledger
that gates AI enrichment.
"""

import json
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Optional

from loguru import logger


@dataclass(frozen=True)
class AppSettings:
    """User-editable application settings."""

    openai_api_key: Optional[str] = None
    credits: int = 10
    download_quality: Optional[str] = None  # Overrides [download] audio_quality


_KEYS = {
    "openai_api_key": "openaiApiKey",
    "credits": "credits",
    "download_quality": "downloadQuality",
}


class SettingsStore:
    """settings.json read once on open and rewritten on every change."""

    def __init__(self, settings_path: Path, default_credits: int = 10) -> None:
        self.settings_path = Path(settings_path)
        self._defaults = AppSettings(credits=default_credits)
        self._cache = self._defaults

    def open(self) -> "SettingsStore":
        if not self.settings_path.exists():
            self._cache = self._defaults
            return self
        try:
            raw = json.loads(self.settings_path.read_text(encoding="utf-8"))
            stored = {
                name: raw[key] for name, key in _KEYS.items() if key in raw
            }
            self._cache = replace(self._defaults, **stored)
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Ignoring unreadable settings file {self.settings_path}: {e}")
            self._cache = self._defaults
        return self

    def get(self) -> AppSettings:
        return self._cache

    def set(self, **changes) -> AppSettings:
        self._cache = replace(self._cache, **changes)
        self._write()
        return self._cache

    def _write(self) -> None:
        self.settings_path.parent.mkdir(parents=True, exist_ok=True)
        data = {_KEYS[name]: value for name, value in asdict(self._cache).items()}
        self.settings_path.write_text(json.dumps(data, indent=2), encoding="utf-8")


class CreditLedger:
    """Enrichment credit counter stored in the settings file.

    get() and deduct() are separate calls with no compare-and-swap: two
    concurrent enrichments can both pass the gate on the last credit.
    """

    def __init__(self, settings: SettingsStore) -> None:
        self._settings = settings

    def get(self) -> int:
        return self._settings.get().credits

    def deduct(self) -> bool:
        """Remove one credit. Returns False (and changes nothing) at zero."""
        credits = self.get()
        if credits <= 0:
            return False
        self._settings.set(credits=credits - 1)
        logger.debug(f"Credit deducted, {credits - 1} remaining")
        return True

    def set(self, credits: int) -> None:
        if credits < 0:
            raise ValueError("Credit balance cannot be negative")
        self._settings.set(credits=credits)

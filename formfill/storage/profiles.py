"""JSON-file store for per-site mapping profiles and global fill settings."""
import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import urlsplit

from formfill.config import config
from formfill.domain.exceptions import ProfileStoreError
from formfill.domain.models import FillOptions
from formfill.logger import get_logger, set_level

logger = get_logger(__name__)

PROFILES_KEY = "profiles"
SETTINGS_KEY = "global_settings"

SETTING_KEYS = ("delay", "skip_filled", "stop_on_error", "highlight_fields", "enable_logging")


def default_settings() -> Dict[str, Any]:
    """Settings in effect until something is saved: the environment's fill defaults."""
    fill = config.fill
    return {
        "delay": fill.delay_ms,
        "skip_filled": fill.skip_filled,
        "stop_on_error": fill.stop_on_error,
        "highlight_fields": fill.highlight_fields,
        "enable_logging": False,
    }


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Profile:
    """A saved mapping for one site."""
    mapping: Dict[str, Dict[str, Any]]
    settings: Dict[str, Any] = field(default_factory=dict)
    last_used: str = field(default_factory=_now)
    created_at: str = field(default_factory=_now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        return cls(
            mapping=dict(data.get("mapping") or {}),
            settings=dict(data.get("settings") or {}),
            last_used=data.get("last_used") or _now(),
            created_at=data.get("created_at") or _now(),
        )


class ProfileStore:
    """Profiles keyed by domain plus global settings, in one JSON file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ProfileStoreError(f"Cannot read profile store {self.path}: {e}")
        if not isinstance(data, dict):
            raise ProfileStoreError(f"Profile store {self.path} is not a JSON object")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            tmp_path.replace(self.path)
        except OSError as e:
            raise ProfileStoreError(f"Cannot write profile store {self.path}: {e}")

    def get_all_profiles(self) -> Dict[str, Profile]:
        raw = self._read().get(PROFILES_KEY) or {}
        return {domain: Profile.from_dict(data) for domain, data in raw.items()}

    def get_profile(self, domain: str) -> Optional[Profile]:
        return self.get_all_profiles().get(domain)

    def get_profile_for_site(self, url: str) -> Optional[Tuple[str, Profile]]:
        """Profile for a URL's host, falling back to its parent domain."""
        try:
            domain = urlsplit(url).hostname
        except ValueError:
            return None
        if not domain:
            return None

        profile = self.get_profile(domain)
        if profile is not None:
            return domain, profile

        parts = domain.split(".")
        if len(parts) > 2:
            parent = ".".join(parts[-2:])
            profile = self.get_profile(parent)
            if profile is not None:
                return parent, profile
        return None

    def save_profile(
        self,
        domain: str,
        mapping: Dict[str, Dict[str, Any]],
        settings: Optional[Dict[str, Any]] = None,
    ) -> Profile:
        data = self._read()
        profiles = data.setdefault(PROFILES_KEY, {})
        existing = profiles.get(domain) or {}
        profile = Profile(
            mapping=mapping,
            settings=settings or {},
            created_at=existing.get("created_at") or _now(),
        )
        profiles[domain] = asdict(profile)
        self._write(data)
        logger.info("Saved profile for %s (%d columns)", domain, len(mapping))
        return profile

    def delete_profile(self, domain: str) -> None:
        data = self._read()
        if data.get(PROFILES_KEY, {}).pop(domain, None) is not None:
            self._write(data)

    def update_profile_last_used(self, domain: str) -> None:
        data = self._read()
        profile = data.get(PROFILES_KEY, {}).get(domain)
        if profile is not None:
            profile["last_used"] = _now()
            self._write(data)

    def get_settings(self, domain: Optional[str] = None) -> Dict[str, Any]:
        """Global settings over the defaults, with a site's own settings on top."""
        data = self._read()
        settings = {**default_settings(), **(data.get(SETTINGS_KEY) or {})}
        if domain is not None:
            profile = (data.get(PROFILES_KEY) or {}).get(domain) or {}
            settings.update(profile.get("settings") or {})
        return {key: settings[key] for key in SETTING_KEYS}

    def save_settings(self, settings: Dict[str, Any]) -> Dict[str, Any]:
        data = self._read()
        saved = dict(data.get(SETTINGS_KEY) or {})
        saved.update({key: value for key, value in settings.items() if key in SETTING_KEYS})
        data[SETTINGS_KEY] = saved
        self._write(data)
        return self.get_settings()

    def reset_settings(self) -> None:
        data = self._read()
        if data.pop(SETTINGS_KEY, None) is not None:
            self._write(data)

    def fill_options(self, domain: Optional[str] = None) -> FillOptions:
        """Effective settings as FillOptions."""
        settings = self.get_settings(domain)
        try:
            delay_ms = int(settings["delay"])
        except (TypeError, ValueError):
            raise ProfileStoreError(f"Saved delay is not a number: {settings['delay']!r}")
        return FillOptions(
            skip_filled=bool(settings["skip_filled"]),
            stop_on_error=bool(settings["stop_on_error"]),
            highlight_fields=bool(settings["highlight_fields"]),
            delay_ms=max(delay_ms, 0),
        )

    def apply_logging(self) -> None:
        """Log at DEBUG while enable_logging is on, else at the configured level."""
        enabled = bool(self.get_settings()["enable_logging"])
        set_level("DEBUG" if enabled else config.log_level)

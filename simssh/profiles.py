"""Saved connection profiles.

Profiles are kept in a JSON file (data/profiles.json by default). Only the
label, host, username, port and auth type are stored. Passwords and keys
have no field here and are therefore never written to disk.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import get_config

LOGGER = logging.getLogger(__name__)


@dataclass
class SavedConnection:
    id: str
    label: str
    host: str
    username: str
    port: int = 22
    auth_type: str = "password"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SavedConnection":
        """Build from stored JSON, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["port"] = int(values.get("port", 22))
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ProfileStore:
    """JSON-file backed list of SavedConnection entries."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else get_config().profiles_path

    def load(self) -> List[SavedConnection]:
        """Read all profiles. A missing or unreadable file yields []."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            LOGGER.error("Failed to read saved connections %s: %s", self.path, exc)
            return []
        if not raw.strip():
            return []

        try:
            data = json.loads(raw)
            return [SavedConnection.from_dict(item) for item in data]
        except (ValueError, TypeError, KeyError, AttributeError) as exc:
            LOGGER.error("Failed to parse saved connections: %s", exc)
            return []

    def _write(self, profiles: List[SavedConnection]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps([p.to_dict() for p in profiles], indent=2), encoding="utf-8"
        )

    def get(self, profile_id: str) -> Optional[SavedConnection]:
        for profile in self.load():
            if profile.id == profile_id:
                return profile
        return None

    def save_profile(
        self,
        label: str,
        host: str,
        username: str,
        port: int = 22,
        auth_type: str = "password",
        profile_id: Optional[str] = None,
    ) -> SavedConnection:
        """Create a profile, or update the one with profile_id in place.

        Raises:
            ValueError: if label is empty
        """
        if not label:
            raise ValueError("Please enter a label for this connection.")

        profiles = self.load()
        profile = SavedConnection(
            id=profile_id or uuid.uuid4().hex[:12],
            label=label,
            host=host,
            username=username,
            port=int(port),
            auth_type=auth_type,
        )

        for index, existing in enumerate(profiles):
            if existing.id == profile.id:
                profiles[index] = profile
                break
        else:
            profiles.append(profile)

        self._write(profiles)
        LOGGER.info("Saved connection profile '%s'", label)
        return profile

    def delete_profile(self, profile_id: str) -> bool:
        profiles = self.load()
        remaining = [p for p in profiles if p.id != profile_id]
        if len(remaining) == len(profiles):
            return False
        self._write(remaining)
        LOGGER.info("Deleted connection profile %s", profile_id)
        return True

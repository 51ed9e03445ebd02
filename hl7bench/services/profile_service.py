# profile_service.py

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from hl7bench.models import TransportConfig, TransportMode
from hl7bench.models.transport_config import DEFAULT_HTTP_URL, DEFAULT_MLLP_PORT, DEFAULT_TIMEOUT_MS


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ServerProfile:
    """A named connection target. TLS identities are never persisted."""
    name: str
    mode: TransportMode
    host: str = ""
    port: int = 0
    url: str = ""
    use_tls: bool = False
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    # ---------- factories ------------------------------------------------- #
    @classmethod
    def from_config(cls, name: str, config: TransportConfig) -> "ServerProfile":
        return cls(
            name       = name,
            mode       = config.mode,
            host       = config.host,
            port       = config.port,
            url        = config.url,
            use_tls    = config.use_tls,
            timeout_ms = config.timeout_ms,
        )

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ServerProfile":
        return cls(
            name       = row["name"],
            mode       = TransportMode(row["mode"]),
            host       = row.get("host") or "",
            port       = int(row.get("port") or 0),
            url        = row.get("url") or "",
            use_tls    = bool(row.get("use_tls", False)),
            timeout_ms = int(row.get("timeout_ms") or DEFAULT_TIMEOUT_MS),
        )

    def to_row(self) -> Dict[str, Any]:
        row = asdict(self)
        row["mode"] = self.mode.value
        return row

    def to_config(self) -> TransportConfig:
        return TransportConfig(
            mode       = self.mode,
            host       = self.host,
            port       = self.port,
            url        = self.url,
            use_tls    = self.use_tls,
            timeout_ms = self.timeout_ms,
        )

    def __str__(self) -> str:
        return self.name


DEFAULT_PROFILES = (
    ServerProfile("Local MLLP (2575)", TransportMode.MLLP, host="localhost", port=DEFAULT_MLLP_PORT),
    ServerProfile("Local HTTP (8080)", TransportMode.HTTP, url=DEFAULT_HTTP_URL),
)


class ServerProfileStore:
    """Named server profiles kept in a JSON file.

    Reads never fail: a missing, unreadable or empty file yields the
    default profiles. Write failures are logged.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def load_all(self) -> List[ServerProfile]:
        if not self.path.exists():
            return list(DEFAULT_PROFILES)
        try:
            rows = json.loads(self.path.read_text(encoding="utf-8"))
            profiles = [ServerProfile.from_row(row) for row in rows]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Error loading server profiles from {self.path}: {e}")
            return list(DEFAULT_PROFILES)
        return profiles or list(DEFAULT_PROFILES)

    def get(self, name: str) -> Optional[ServerProfile]:
        return next((p for p in self.load_all() if p.name == name), None)

    def save_all(self, profiles: List[ServerProfile]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps([p.to_row() for p in profiles], indent=2)
            self.path.write_text(payload, encoding="utf-8")
            logger.info(f"Saved {len(profiles)} server profile(s) to {self.path}")
        except OSError as e:
            logger.error(f"Error saving server profiles to {self.path}: {e}")

    def save(self, profile: ServerProfile) -> None:
        """Add or replace a profile; the saved one moves to the front."""
        profiles = [p for p in self.load_all() if p.name != profile.name]
        profiles.insert(0, profile)
        self.save_all(profiles)

    def delete(self, name: str) -> None:
        self.save_all([p for p in self.load_all() if p.name != name])

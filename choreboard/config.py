import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError

STORAGE_BACKENDS = ("memory", "json", "database")
DEFAULT_RESIDENTS = ["Anna", "Bo", "Carla", "David"]


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [part.strip() for part in raw.split(",") if part.strip()]


def _default_database_url() -> str:
    data_dir = "/data"
    if os.path.isdir(data_dir):
        return f"sqlite:///{os.path.join(data_dir, 'choreboard.db')}"
    return "sqlite:///choreboard.db"


@dataclass(frozen=True)
class Settings:
    storage_backend: str = "memory"
    data_dir: Path = Path("data")
    database_url: str = "sqlite:///choreboard.db"
    session_secret: str = "dev-secret"
    session_ttl_days: int = 7
    admin_emails: list[str] = field(default_factory=list)
    residents: list[str] = field(default_factory=lambda: list(DEFAULT_RESIDENTS))
    log_level: str = "INFO"
    log_format: str = "text"

    def __post_init__(self):
        if self.storage_backend not in STORAGE_BACKENDS:
            raise ConfigError(
                f"STORAGE_BACKEND must be one of {', '.join(STORAGE_BACKENDS)}, "
                f"got {self.storage_backend!r}"
            )
        if self.session_ttl_days < 1:
            raise ConfigError("SESSION_TTL_DAYS must be at least 1")

    @property
    def session_max_age(self) -> int:
        return self.session_ttl_days * 24 * 60 * 60

    def is_admin_email(self, email: str) -> bool:
        return email.strip().lower() in {e.lower() for e in self.admin_emails}

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        ttl_raw = os.getenv("SESSION_TTL_DAYS", "7")
        try:
            ttl = int(ttl_raw)
        except ValueError as exc:
            raise ConfigError(f"SESSION_TTL_DAYS is not a number: {ttl_raw!r}") from exc
        return cls(
            storage_backend=os.getenv("STORAGE_BACKEND", "memory").strip().lower(),
            data_dir=Path(os.getenv("DATA_DIR", "data")).expanduser(),
            database_url=os.getenv("DATABASE_URL", _default_database_url()),
            session_secret=os.getenv("SESSION_SECRET", "dev-secret"),
            session_ttl_days=ttl,
            admin_emails=_env_list("ADMIN_EMAILS", []),
            residents=_env_list("RESIDENTS", DEFAULT_RESIDENTS),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("LOG_FORMAT", "text").strip().lower(),
        )

"""Runtime configuration for flowershop.

Settings are read from FLOWERSHOP_* environment variables. Anything unset
falls back to the module defaults below.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

# Local data directory within the flowershop project
# Can be overridden via FLOWERSHOP_DATA_DIR environment variable
_default_data_dir = Path(__file__).parent.parent.parent / "data"
DATA_DIR = Path(os.environ.get("FLOWERSHOP_DATA_DIR", _default_data_dir))
DATABASE_FILE = "flowershop.db"

STORAGE_BACKENDS = ("database", "memory")

DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:3000",
)

_TRUE = {"1", "true", "yes", "on"}


def _default_database_url(data_dir: Path) -> str:
    return f"sqlite:///{data_dir / DATABASE_FILE}"


def cors_origins_from_env(environ: dict[str, str] | None = None) -> tuple[str, ...]:
    """Read FLOWERSHOP_CORS_ORIGINS (comma-separated), or the defaults if unset."""
    env = os.environ if environ is None else environ
    origins = env.get("FLOWERSHOP_CORS_ORIGINS")
    if not origins:
        return DEFAULT_CORS_ORIGINS
    return tuple(o.strip() for o in origins.split(",") if o.strip())


@dataclass
class Settings:
    """Resolved configuration."""

    storage: str = "database"
    database_url: str = field(default_factory=lambda: _default_database_url(DATA_DIR))
    data_dir: Path = DATA_DIR
    seed: bool = True
    log_level: str = "INFO"
    echo_sql: bool = False
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS

    def __post_init__(self) -> None:
        if self.storage not in STORAGE_BACKENDS:
            raise ValueError(
                f"Unknown storage backend {self.storage!r}; "
                f"expected one of: {', '.join(STORAGE_BACKENDS)}"
            )

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Build settings from environment variables."""
        env = os.environ if environ is None else environ

        data_dir = Path(env.get("FLOWERSHOP_DATA_DIR", DATA_DIR))

        return cls(
            storage=env.get("FLOWERSHOP_STORAGE", "database").strip().lower(),
            database_url=env.get("FLOWERSHOP_DATABASE_URL") or _default_database_url(data_dir),
            data_dir=data_dir,
            seed=env.get("FLOWERSHOP_SEED", "1").strip().lower() in _TRUE,
            log_level=env.get("FLOWERSHOP_LOG_LEVEL", "INFO").strip().upper(),
            echo_sql=env.get("FLOWERSHOP_ECHO_SQL", "0").strip().lower() in _TRUE,
            cors_origins=cors_origins_from_env(env),
        )

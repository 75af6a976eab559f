"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

STORAGE_BACKENDS = ("memory", "sqlite")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the service.

    Attributes:
        session_id: Fixed key of the single tracked WhatsApp session.
        rate_limit_max_requests: Admissions per window per client address.
        rate_limit_window_seconds: Length of the trailing throttle window.
        storage_backend: ``memory`` or ``sqlite``.
        database_dir: Directory of the SQLite database (sqlite backend only).
        whatsapp_store_dir: Directory where the WhatsApp client keeps its login state.
        client_url: Origin allowed by CORS.
        app_env: ``development`` exposes exception text in 500 responses.
        log_level: Root logging level name.
        version: Reported by the health endpoint.
        host: Interface the HTTP server binds to.
        port: Port the HTTP server listens on.
    """

    session_id: str = "zapzap-session"
    rate_limit_max_requests: int = 100
    rate_limit_window_seconds: int = 15 * 60
    storage_backend: str = "memory"
    database_dir: Optional[Path] = None
    whatsapp_store_dir: Path = Path("data")
    client_url: str = "http://localhost:3000"
    app_env: str = "production"
    log_level: str = "INFO"
    version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = 3000

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from the environment (and a .env file if present)."""
        load_dotenv()

        backend = os.getenv("STORAGE_BACKEND", "memory").strip().lower()
        if backend not in STORAGE_BACKENDS:
            raise RuntimeError(
                f"STORAGE_BACKEND must be one of {', '.join(STORAGE_BACKENDS)}, got {backend!r}"
            )

        database_dir = os.getenv("DATABASE_DIR")
        if backend == "sqlite" and not (database_dir and database_dir.strip()):
            raise RuntimeError("DATABASE_DIR environment variable is required when STORAGE_BACKEND=sqlite")

        return cls(
            session_id=os.getenv("WHATSAPP_SESSION_ID", "zapzap-session"),
            rate_limit_max_requests=_env_int("RATE_LIMIT_MAX_REQUESTS", 100),
            rate_limit_window_seconds=_env_int("RATE_LIMIT_WINDOW_SECONDS", 15 * 60),
            storage_backend=backend,
            database_dir=Path(database_dir) if database_dir else None,
            whatsapp_store_dir=Path(os.getenv("WHATSAPP_STORE_DIR", "data")),
            client_url=os.getenv("CLIENT_URL", "http://localhost:3000"),
            app_env=os.getenv("APP_ENV", "production").strip().lower(),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            version=os.getenv("APP_VERSION", "1.0.0"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_env_int("PORT", 3000),
        )

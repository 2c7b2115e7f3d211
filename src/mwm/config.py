"""Application configuration.

``AppConfig`` is a frozen dataclass, immutable after creation,
IDE-autocompletable, no string-key dict lookups.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from mwm.errors import ConfigurationError

PACKAGE_DIR = Path(__file__).parent

_DEV_SECRET = "mwm-development-secret"
_TRUE = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have development defaults. Override what you need::

        config = AppConfig(debug=False, secret_key="s3cr3t")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    debug: bool = True

    # Security
    secret_key: str = _DEV_SECRET
    session_cookie: str = "mwm_session"
    session_max_age: int = 60 * 60 * 24 * 7  # one week
    argon2_memory_cost: int = 65536  # KiB
    argon2_time_cost: int = 2

    # Storage
    database_url: str = "sqlite:///mwm.db"
    migrations_dir: str | Path = PACKAGE_DIR / "data" / "migrations"
    echo_sql: bool = False

    # Routes, templates, assets
    routes_dir: str | Path = PACKAGE_DIR / "routes"
    public_dir: str | Path = PACKAGE_DIR / "public"
    app_title: str = "mwm App"

    # Logging
    log_level: str = "info"

    @property
    def secure_cookies(self) -> bool:
        """Mark cookies ``Secure`` outside development."""
        return not self.debug

    @property
    def static_cache_control(self) -> str:
        if self.debug:
            return "no-cache"
        return "public, max-age=31536000, immutable"

    def validate(self) -> None:
        """Raise ``ConfigurationError`` for settings unusable in production."""
        if not self.secret_key:
            msg = "secret_key must not be empty (set MWM_SECRET_KEY)"
            raise ConfigurationError(msg)
        if not self.debug and self.secret_key == _DEV_SECRET:
            msg = "The development secret_key cannot be used in production (set MWM_SECRET_KEY)"
            raise ConfigurationError(msg)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "AppConfig":
        """Build a config from ``MWM_*`` environment variables.

        ``MWM_ENV=production`` turns debug off unless ``MWM_DEBUG`` says
        otherwise.
        """
        env = os.environ if environ is None else environ
        production = env.get("MWM_ENV", "development").lower() == "production"
        debug = env.get("MWM_DEBUG")
        port = env.get("MWM_PORT", "3000")
        try:
            port_number = int(port)
        except ValueError:
            msg = f"MWM_PORT must be an integer, got {port!r}"
            raise ConfigurationError(msg) from None
        config = cls(
            host=env.get("MWM_HOST", "127.0.0.1"),
            port=port_number,
            debug=(debug.lower() in _TRUE) if debug is not None else not production,
            secret_key=env.get("MWM_SECRET_KEY", _DEV_SECRET),
            database_url=env.get("MWM_DATABASE_URL", "sqlite:///mwm.db"),
            echo_sql=env.get("MWM_ECHO_SQL", "").lower() in _TRUE,
            log_level=env.get("MWM_LOG_LEVEL", "info"),
        )
        config.validate()
        return config

"""Central application settings (pydantic-settings).

- Loads variables from the `.env` at the project root.
- Groups settings by area: App, CORS/hosts, Mongo, Auth/JWT, Cookie, Storage.
"""
from pathlib import Path
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the .env at the project root (independent of the CWD)
ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    """Configuration values with sensible defaults.

    Every value can be overridden through environment variables (.env).
    """
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "Noter API"
    api_prefix: str = "/api"
    port: int = 8000
    log_level: str = "INFO"

    # Hosts / CORS
    frontend_host_url: str = "http://localhost:5173"
    backend_host_url: str = "http://localhost:8000"
    cors_origins: list[str] = []

    # Mongo: either a full URI or the DB_* parts
    mongo_uri: str | None = None
    db_uri_scheme: str = "mongodb"
    db_user: str | None = None
    db_password: str | None = None
    db_host: str = "localhost:27017"
    db_database: str = "noter"
    mongo_db: str | None = None
    mongo_tls: bool = False
    mongo_tls_insecure: bool = False
    mongo_tls_allow_invalid_hostnames: bool = False

    # Auth / JWT (expiry times in seconds)
    access_token_secret: str = "change-me-access"
    refresh_token_secret: str = "change-me-refresh"
    access_token_expiry_time: int = 15 * 60
    refresh_token_expiry_time: int = 7 * 24 * 60 * 60
    jwt_algorithm: str = "HS256"

    # Refresh cookie
    refresh_cookie_name: str = "token"
    refresh_cookie_max_age_days: int = 7

    # Attachments
    upload_dir: str = "data/uploads"
    static_prefix: str = "/data/uploads"
    max_upload_size_mb: int = 25

    @property
    def api_prefix_normalized(self) -> str:
        """`api_prefix` with a leading '/' and no trailing '/' ("" when empty)."""
        pref = (self.api_prefix or "").strip()
        if not pref:
            return ""
        if not pref.startswith("/"):
            pref = "/" + pref
        if len(pref) > 1 and pref.endswith("/"):
            pref = pref[:-1]
        return pref

    @property
    def static_prefix_normalized(self) -> str:
        pref = "/" + (self.static_prefix or "").strip().strip("/")
        return pref

    @property
    def allowed_origins(self) -> list[str]:
        origins = list(self.cors_origins)
        if self.frontend_host_url and self.frontend_host_url not in origins:
            origins.append(self.frontend_host_url)
        return origins

    @property
    def mongo_uri_resolved(self) -> str:
        """Full Mongo URI, composed from the DB_* parts when MONGO_URI is unset."""
        if self.mongo_uri:
            return self.mongo_uri
        credentials = ""
        if self.db_user:
            credentials = quote_plus(self.db_user)
            if self.db_password:
                credentials += ":" + quote_plus(self.db_password)
            credentials += "@"
        return f"{self.db_uri_scheme}://{credentials}{self.db_host}/{self.db_database}"

    @property
    def mongo_db_name(self) -> str:
        return self.mongo_db or self.db_database

    @property
    def is_local_server(self) -> bool:
        return "localhost" in (self.backend_host_url or "")

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


settings = Settings()

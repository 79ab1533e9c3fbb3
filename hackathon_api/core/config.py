"""Configuración central de la aplicación (Pydantic Settings).

- Carga variables desde .env en la raíz del proyecto.
- Agrupa ajustes por área: App, CORS, Redis, Auth/JWT, QStash, Email, Logging.
"""
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path

# Resuelve el .env ubicado en la raíz del proyecto (independiente del CWD)
ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    """Conjunto de variables de configuración con valores por defecto razonables.

    Nota: los valores pueden sobreescribirse vía variables de entorno (.env).
    """
    # App
    app_name: str = "Hackathon Template API"
    api_prefix: str = "/api"
    log_level: str = "INFO"

    # CORS (frontend Vite/Netlify en localhost)
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8888"]
    cors_allow_any: bool = False  # Permite todos los orígenes (usa con cuidado)

    # Redis (Upstash expone también protocolo Redis vía rediss://)
    redis_url: str = Field(
        "redis://localhost:6379/0",
        validation_alias=AliasChoices("REDIS_URL", "UPSTASH_REDIS_URL"),
    )
    redis_socket_timeout: float = 5.0

    # Auth / JWT
    jwt_secret: str | None = None
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(60, ge=1, le=60)
    jwt_issuer: str = "hackathon-template"
    jwt_audience: str = "hackathon-users"
    auth_mode: Literal["cookie", "bearer"] = "cookie"
    auth_cookie_name: str = "auth_token"
    cookie_secure: bool = False
    admin_emails: list[str] = []

    # Rate limit de login
    login_max_attempts: int = 5
    login_window_seconds: int = 15 * 60

    # QStash (tareas en segundo plano)
    public_url: str = Field(
        "http://localhost:8888",
        validation_alias=AliasChoices("PUBLIC_URL", "URL"),
    )
    qstash_url: str = "https://qstash.upstash.io"
    qstash_token: str | None = None
    qstash_current_signing_key: str | None = None
    qstash_next_signing_key: str | None = None
    qstash_timeout_seconds: int = 10
    qstash_clock_tolerance_seconds: int = 0

    # Email / SMTP (correo de bienvenida)
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_pass: str | None = None
    smtp_from_email: str | None = None
    smtp_from_name: str = "Hackathon Template"
    smtp_use_tls: bool = True

    # Guestbook
    guestbook_page_size: int = 50
    guestbook_max_entries: int = 100

    # --- Utilidades derivadas / helpers ---
    @property
    def api_prefix_normalized(self) -> str:
        """Devuelve `api_prefix` con formato consistente.

        - Siempre inicia con '/'
        - Sin '/' final (excepto cuando es solo '/')
        - Si está vacío, devuelve ""
        """
        pref = (self.api_prefix or "").strip()
        if not pref:
            return ""
        if not pref.startswith('/'):
            pref = '/' + pref
        if len(pref) > 1 and pref.endswith('/'):
            pref = pref[:-1]
        return pref

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_pass)

    @property
    def qstash_signing_keys(self) -> list[str]:
        """Llaves de firma en orden de preferencia (actual, siguiente)."""
        return [k for k in (self.qstash_current_signing_key, self.qstash_next_signing_key) if k]

    def webhook_url(self) -> str:
        """URL pública a la que QStash entrega las tareas."""
        return f"{self.public_url.rstrip('/')}{self.api_prefix_normalized}/qstash/webhook"

    def is_admin_email(self, email: str) -> bool:
        return email.lower() in {e.lower() for e in self.admin_emails}

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # no fallar si hay variables no usadas
    )


settings = Settings()

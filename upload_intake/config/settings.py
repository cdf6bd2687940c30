# upload_intake/config/settings.py
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # subpath the app is mounted under, e.g. "/apps/upload-intake"
    app_prefix: str = ""
    cors_origins_raw: str = "http://localhost:5173,http://127.0.0.1:5173"

    upload_dir: str = "./uploads"
    max_upload_size: int = 1024 * 1024 * 1024  # 1 GiB, whole request body
    rename_on_store: bool = True
    name_length: int = 25
    sanitize_extension: bool = False
    overwrite_existing: bool = True
    max_form_parts: int = 1000

    # Whitelist of sniffed types, comma separated. Empty = allow all.
    # Ex: "image/jpeg,image/png,application/pdf"
    allowed_mime_types_raw: str = "image/jpeg,image/png,image/gif"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("upload_dir", "app_prefix", "log_level", mode="before")
    @classmethod
    def strip_strings(cls, v):
        if isinstance(v, str):
            return v.strip().strip('"').strip("'")
        return v

    @property
    def allowed_mime_types(self) -> set[str]:
        return _split_csv(self.allowed_mime_types_raw)

    @property
    def cors_origins(self) -> list[str]:
        return sorted(_split_csv(self.cors_origins_raw))

    @property
    def api_prefix(self) -> str:
        return self.app_prefix.rstrip("/")


def _split_csv(raw: str | None) -> set[str]:
    raw = (raw or "").strip()
    if not raw:
        return set()
    return {p.strip() for p in raw.split(",") if p.strip()}


settings = Settings()

"""Application settings, read from the environment (and backend/.env)."""

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    db_path: str = Field(default="threadchat.db")

    # Identity provider
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    session_cookie: str = Field(default="sb-access-token")
    admin_emails: str = Field(default="")

    # Completion providers
    openai_api_key: str | None = None
    anthropic_api_key: str | None = None
    completion_provider: str = Field(default="openai")
    completion_model: str = Field(default="gpt-4o-mini")
    completion_max_tokens: int = Field(default=2048)
    title_model: str = Field(default="gpt-4o-mini")

    cors_origins: str = Field(default="http://localhost:3000")
    log_level: str = Field(default="INFO")

    @property
    def admin_email_set(self) -> frozenset[str]:
        return _split_csv(self.admin_emails, lower=True)

    @property
    def cors_origin_list(self) -> list[str]:
        return sorted(_split_csv(self.cors_origins))

    @property
    def identity_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)


def _split_csv(raw: str, *, lower: bool = False) -> frozenset[str]:
    items = (item.strip() for item in raw.split(","))
    return frozenset(item.lower() if lower else item for item in items if item)


@lru_cache
def get_settings() -> Settings:
    """Load settings once. Secrets live in backend/.env, not the shell profile."""
    load_dotenv(Path(__file__).resolve().parent.parent / ".env")
    return Settings()

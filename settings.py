# settings.py
from typing import Annotated, List, Literal, Optional

from pydantic import ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
  model_config = SettingsConfigDict(
    env_file=".env",
    extra="ignore",
    env_ignore_empty=True,
    str_strip_whitespace=True,
  )

  store_backend: Literal["local", "remote"] = "local"
  local_store_path: str = ".paynapple/store.json"
  database_url: Optional[str] = None
  account_id: str = "local"
  checkout_session_url: Optional[str] = None
  app_origin: str = "http://localhost:5173"
  stripe_secret_key: Optional[str] = None
  demo_delay_seconds: float = 1.5
  checkout_timeout: float = 10.0
  # comma separated in the environment
  cors_origins: Annotated[List[str], NoDecode] = ["http://127.0.0.1:5173", "http://localhost:5173"]
  log_level: str = "INFO"

  @field_validator("store_backend", mode="before")
  @classmethod
  def _lower_backend(cls, value):
    return value.strip().lower() if isinstance(value, str) else value

  @field_validator("database_url", "checkout_session_url", "stripe_secret_key", mode="before")
  @classmethod
  def _blank_is_unset(cls, value):
    if isinstance(value, str) and not value.strip():
      return None
    return value

  @field_validator("cors_origins", mode="before")
  @classmethod
  def _split_origins(cls, value):
    if isinstance(value, str):
      return [part.strip() for part in value.split(",") if part.strip()]
    return value

  @field_validator("app_origin")
  @classmethod
  def _strip_trailing_slash(cls, value: str) -> str:
    return value.rstrip("/")

  @field_validator("log_level")
  @classmethod
  def _upper_level(cls, value: str) -> str:
    return value.upper()

  @model_validator(mode="after")
  def _remote_needs_database(self):
    if self.store_backend == "remote" and not self.database_url:
      raise ValueError("DATABASE_URL is not set in backend .env")
    return self


def load_settings() -> Settings:
  try:
    return Settings()
  except ValidationError as exc:
    raise RuntimeError(f"invalid backend configuration: {exc}") from exc

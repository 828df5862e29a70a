"""Application configuration.

Defines `Settings` read from environment variables (and `.env`).
"""
# app/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Supplier Evaluation"
    DEBUG: bool = False
    LOG_PATH: str = "logging"
    SECRET_KEY: str = "change-me-in-env"
    DATABASE_URL: str = "sqlite:///./app.db"

    ADMIN_ROLE_NAME: str = "admin"
    EVALUATOR_ROLE_NAME: str = "evaluator"
    SUPPLIER_ROLE_NAME: str = "supplier"

    # category (lower-cased) -> priority, lower is more urgent
    RECOMMENDATION_PRIORITIES: dict[str, int] = {}
    # answer kind -> priority, used when the category is unmapped
    ANSWER_SEVERITY_PRIORITIES: dict[str, int] = {"no": 1, "not_applicable": 2}
    DEFAULT_RECOMMENDATION_PRIORITY: int = 3
    TOP_PERFORMERS_LIMIT: int = 5

    SESSION_TOKEN_TTL: int = 60 * 60 * 8  # 8h


settings = Settings()

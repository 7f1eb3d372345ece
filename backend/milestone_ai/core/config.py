"""Application configuration managed via environment variables."""
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Milestone.AI Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://milestone@localhost:5432/milestone_ai"
    db_auto_create: bool = False
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o"
    llm_temperature: float = 0.8
    llm_verify_key: bool = False
    # "json" asks the model for a plan object, "markdown" for the heading grammar.
    plan_response_format: str = "json"
    fragment_month_titles: List[str] = [
        "Month 1: Academic Foundations and Skill Enhancement",
        "Month 2: Implementation and Progress",
        "Month 3: Refinement and Completion",
    ]
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "milestone-ai"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()

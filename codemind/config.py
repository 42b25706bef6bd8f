from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CODEMIND_")

    # Storage settings
    notes_path: Path = Path("codemind.md")
    auto_save: bool = True

    # Note id settings
    id_length: int = 6

    # Writer settings
    summary_max_length: int = 50
    sort_notes: bool = True

    # Query defaults used by the CLI and HTTP adapters
    search_limit: int = 20
    related_depth: int = 1
    popular_limit: int = 10
    page_size: int = 20

    log_level: str = "INFO"  # Can be DEBUG, INFO, WARNING, ERROR, CRITICAL


settings = Settings()

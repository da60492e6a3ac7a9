from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_title: str = "Avalon Engine"
    log_level: str = "INFO"
    # CORS origins for the HTTP adapter (JSON list in AVALON_ALLOWED_ORIGINS)
    allowed_origins: List[str] = ["*"]
    # Fixed seed for reproducible sessions; unset means fresh randomness per game
    game_seed: Optional[int] = None
    # Seconds a finished or aborted game stays readable before it is pruned
    game_retention_seconds: float = 300

    model_config = SettingsConfigDict(
        env_prefix="AVALON_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
    )


settings = Settings()

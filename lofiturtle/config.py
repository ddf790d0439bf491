from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Process-level settings.
    Loads from LOFITURTLE_* environment variables and .env file.
    """
    APP_NAME: str = "LofiTurtle"
    DEBUG: bool = False

    # Layout Settings
    LAYOUT_CONFIG: str = "layout.toml"
    LOG_DIR: str = "~/.lofiturtle"
    LOG_FILE: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="LOFITURTLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

settings = Settings()

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Process-level settings pulled from environment variables."""

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Logging format (console or json)")

    class Config:
        env_prefix = "CAVEGEN_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

"""Configuration settings for the application."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Pydantic settings class for the application."""

    # Define the settings with default values and types
    # These will be loaded from environment variables or a .env file if not provided
    API_PORT: int = 8000
    DEBUG: bool = True
    LOG_LEVEL: str = "info"  # Options: debug, info, warning, error, critical

    # AI backend configuration
    BACKEND: str = "openai"  # Options: openai, anthropic
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    ANTHROPIC_API_KEY: str | None = None
    ANTHROPIC_MODEL: str = "claude-3-5-haiku-latest"
    TEMPERATURE: float = 0.9
    MAX_TOKENS: int = 3000  # Enough for single-day and multi-day plans
    FOLLOWUP_MAX_TOKENS: int = 1000  # Natural-language reply after a tool result
    BACKEND_TIMEOUT: float = 60.0

    # Orchestration
    MAX_CHAIN_DEPTH: int = 8
    EXCHANGE_TIMEOUT: float = 60.0
    MAX_HISTORY_MESSAGES: int = 10

    class Config:
        """Configuration for Pydantic settings."""

        # Load environment variables from a .env file
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()

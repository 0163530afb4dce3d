from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # API Configuration
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    debug: bool = False

    # LLM Configuration
    llm_provider: str = "anthropic"
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_model: str = "claude-3-7-sonnet-20250219"
    openai_model: str = "gpt-4o-mini"
    llm_max_tokens: int = 1024

    # Timeout Configuration
    llm_timeout: int = 60
    mcp_client_timeout: int = 30

    # MCP Configuration
    mcp_config_path: str = "mcp_config.json"
    mcp_host: str = "localhost"

    # User preferences (provider choice)
    preferences_path: str = "preferences.json"

    # Logging Configuration
    log_dir: str = "logs"
    log_to_file: bool = True
    log_retention_days: int = 3

    class Config:
        env_file = [".env", "../.env"]
        extra = "ignore"

settings = Settings()

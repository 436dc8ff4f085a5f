"""
Configuration settings for NodeFlow.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""
    
    # Application
    APP_NAME: str = "NodeFlow"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    
    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    
    # Workflow Engine
    HANDLER_LATENCY_SCALE: float = 1.0  # Multiplier for simulated handler latency (0 disables)
    DATA_FLOW_MODE: str = "initial"  # "initial" or "upstream"
    LOAD_TEMPLATES: bool = True  # Seed example workflows at startup
    
    # Logging
    LOG_LEVEL: str = "INFO"
    
    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()

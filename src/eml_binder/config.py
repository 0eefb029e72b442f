"""
Application configuration management.

This module handles configuration from environment variables using Pydantic Settings.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application configuration from environment variables.

    All settings can be overridden via environment variables with the same name.
    """

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_workers: int = 4

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Processing limits
    max_email_size_mb: int = 25
    max_attachments: int = 50

    # Batch import
    import_workers: int = 4

    # External capabilities
    legacy_reader_timeout_seconds: float = 10.0
    print_timeout_seconds: float = 10.0
    print_command: str = "lp"

    # Output naming
    merged_pdf_filename: str = "merged_attachments.pdf"
    download_dir: str = "downloads"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


# Global settings instance
settings = Settings()

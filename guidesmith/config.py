"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OutputPaths(BaseModel):
    """Resolved output directories."""

    research_raw_dir: Path
    outlines_dir: Path
    documents_dir: Path


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=("settings_",),
    )

    # Application Configuration
    app_title: str = Field(default="Guidesmith", description="Application title")
    app_version: str = Field(default="0.1.0", description="Application version")
    port: int = Field(default=4000, description="HTTP port")
    cors_origin: str = Field(
        default="http://localhost:5173",
        description="Comma separated list of allowed origins, '*' allows all",
    )

    # Language model configuration
    openai_api_key: str = Field(default="", description="OpenAI API key, empty enables mock responses")
    model_name: str = Field(default="gpt-4o-mini", description="Chat model used for generation")
    model_temperature: float = Field(default=0.2, description="Sampling temperature")

    # Output locations
    research_output_dir: Path = Field(default=Path("../data/research"))
    outline_output_dir: Path = Field(default=Path("../data/outlines"))
    document_output_dir: Path = Field(default=Path("../data/documents"))

    # Workers and browser
    draft_workers: int = Field(default=2, ge=1, description="Concurrent section draft workers")
    browser_headless: bool = Field(default=True, description="Launch Chromium headless")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    log_json: bool = Field(default=True, description="Use JSON log format")
    log_file: str | None = Field(default=None, description="Optional log file path")

    @property
    def paths(self) -> OutputPaths:
        return OutputPaths(
            research_raw_dir=self.research_output_dir / "raw",
            outlines_dir=self.outline_output_dir,
            documents_dir=self.document_output_dir,
        )

    @property
    def allowed_origins(self) -> list[str]:
        return [entry.strip() for entry in self.cors_origin.split(",") if entry.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

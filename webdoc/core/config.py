"""
Configuration management using Pydantic Settings.
Loads from environment variables and .env file.
"""

from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application configuration loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # LLM Provider
    llm_provider: Literal["openai", "anthropic"] = Field(
        default="openai",
        description="Which LLM provider backs the reasoning service"
    )

    # OpenAI
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o", description="OpenAI model name")

    # Anthropic
    anthropic_api_key: str = Field(default="", description="Anthropic API key")
    anthropic_model: str = Field(
        default="claude-3-5-sonnet-20241022",
        description="Anthropic model name"
    )

    # Server
    api_host: str = Field(default="127.0.0.1", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Browser
    headless: bool = Field(default=False, description="Run browser in headless mode")
    browser_timeout: int = Field(default=30000, description="Browser timeout in ms")
    soft_navigation_timeout: int = Field(
        default=15000,
        description="Timeout in ms for DOM-ready navigations during exploration"
    )
    slow_mo: int = Field(default=100, description="Playwright slow-mo delay in ms")
    viewport_width: int = Field(default=1280, description="Viewport width")
    viewport_height: int = Field(default=720, description="Viewport height")

    # Documentation output
    webdoc_docs_path: str = Field(
        default="docs",
        description="Directory for generated documentation (relative to cwd)"
    )

    # Capture
    capture_body_limit: int = Field(
        default=20000,
        description="Maximum characters kept for request/response bodies"
    )
    capture_idle_seconds: float = Field(
        default=8.0,
        description="Seconds without API activity before auto-finalizing a capture"
    )
    include_third_party: bool = Field(
        default=False,
        description="Capture calls to hosts outside the target's base domain"
    )

    # Exploration
    max_exploration_pages: int = Field(
        default=8,
        description="Maximum pages visited per exploration run"
    )
    max_navigation_candidates: int = Field(
        default=25,
        description="Maximum navigation candidates collected per page"
    )
    explore_settle_seconds: float = Field(
        default=1.5,
        description="Delay after navigating so asynchronous API calls can fire"
    )
    explore_return_settle_seconds: float = Field(
        default=0.8,
        description="Delay after returning to the base page"
    )

    # Guardrails
    authorized_domains: str = Field(
        default="",
        description="Comma-separated list of authorized domains"
    )

    @property
    def authorized_domain_list(self) -> list[str]:
        """Authorized domains as a normalized list."""
        return [
            d.strip().lower()
            for d in self.authorized_domains.split(",")
            if d.strip()
        ]


# Global settings instance
settings = Settings()

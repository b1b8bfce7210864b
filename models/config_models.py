"""Configuration models for validation using Pydantic."""

from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator


class CredentialsConfig(BaseModel):
    """API credentials loaded from environment variables."""

    # GitHub token is optional - it only raises the API rate limit
    github_token: Optional[str] = Field(None, description="GitHub personal access token (optional, raises rate limits)")

    # Supabase (required) - prompt store, event log and eval datasets
    supabase_url: str = Field(..., min_length=1, description="Supabase project URL")
    supabase_key: str = Field(..., min_length=1, description="Supabase API key")
    database_url: Optional[str] = Field(None, description="PostgreSQL database URL (optional, for schema setup)")

    # LLM configuration
    openai_api_key: Optional[str] = Field(None, description="OpenAI API key")
    anthropic_api_key: Optional[str] = Field(None, description="Anthropic API key for Claude")
    llm_provider: str = Field(default="openai", description="LLM provider: 'openai' or 'anthropic'")

    @field_validator("llm_provider")
    @classmethod
    def validate_llm_provider(cls, v: str) -> str:
        """Validate the LLM provider is supported."""
        v_lower = v.lower()
        if v_lower not in ("openai", "anthropic"):
            raise ValueError("LLM provider must be 'openai' or 'anthropic'")
        return v_lower

    @field_validator("github_token")
    @classmethod
    def validate_github_token(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty or placeholder GitHub tokens as unset."""
        if not v or v == "ghp_your_token_here":
            return None
        return v

    @field_validator("supabase_url")
    @classmethod
    def validate_supabase_url(cls, v: str) -> str:
        """Validate Supabase URL format."""
        if not v or v == "https://your-project.supabase.co":
            raise ValueError("Supabase URL must be set in .env file")
        if not v.startswith("https://"):
            raise ValueError("Supabase URL must start with https://")
        return v

    @field_validator("supabase_key")
    @classmethod
    def validate_supabase_key(cls, v: str) -> str:
        """Validate Supabase key is set."""
        if not v or v == "your_supabase_anon_key_here":
            raise ValueError("Supabase key must be set in .env file")
        return v

    @property
    def llm_api_key(self) -> Optional[str]:
        """API key for the configured provider."""
        if self.llm_provider == "anthropic":
            return self.anthropic_api_key
        return self.openai_api_key


class GenerationConfig(BaseModel):
    """Prompt store lookup and model defaults for changelog generation."""

    project_name: str = Field(default="changelog-generator", min_length=1, description="Prompt store project")
    prompt_slug: str = Field(default="generate-changelog-1", min_length=1, description="Prompt template slug")
    default_model: str = Field(default="gpt-4o", min_length=1, description="Model used when the template has none")
    default_temperature: float = Field(default=0.2, ge=0.0, le=2.0, description="Temperature used when the template has none")
    judge_model: str = Field(default="gpt-4.1", min_length=1, description="Model used by LLM-judge scorers")
    request_timeout: float = Field(default=30.0, gt=0, description="Timeout in seconds for each upstream call")


class Config(BaseModel):
    """Application configuration."""

    credentials: CredentialsConfig
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v_upper

    @model_validator(mode='after')
    def validate_llm_key_present(self):
        """Ensure the configured LLM provider has an API key."""
        if not self.credentials.llm_api_key:
            env_name = "ANTHROPIC_API_KEY" if self.credentials.llm_provider == "anthropic" else "OPENAI_API_KEY"
            raise ValueError(
                f"{env_name} must be set for LLM provider '{self.credentials.llm_provider}'"
            )
        return self

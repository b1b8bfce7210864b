"""Configuration loader that reads from .env and validates with Pydantic."""

import os
import sys
from pathlib import Path
from dotenv import load_dotenv
from pydantic import ValidationError

from models.config_models import Config, CredentialsConfig, GenerationConfig


def load_config() -> Config:
    """
    Load and validate configuration from environment variables.

    Reads from .env file in the project root and validates all required
    credentials and settings using Pydantic models. Optional generation
    settings fall back to the GenerationConfig defaults when unset.

    Returns:
        Config: Validated configuration object

    Raises:
        SystemExit: If configuration is invalid or missing required fields
    """
    # Load .env file from project root
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)

    # Only pass generation settings that are actually set
    generation_env = {
        "project_name": os.getenv("PROJECT_NAME"),
        "prompt_slug": os.getenv("PROMPT_SLUG"),
        "default_model": os.getenv("DEFAULT_MODEL"),
        "default_temperature": os.getenv("DEFAULT_TEMPERATURE"),
        "judge_model": os.getenv("JUDGE_MODEL"),
        "request_timeout": os.getenv("REQUEST_TIMEOUT_SECONDS"),
    }
    generation_settings = {k: v for k, v in generation_env.items() if v}

    try:
        config = Config(
            credentials=CredentialsConfig(
                github_token=os.getenv("GITHUB_TOKEN"),
                supabase_url=os.getenv("SUPABASE_URL", ""),
                supabase_key=os.getenv("SUPABASE_KEY", ""),
                database_url=os.getenv("DATABASE_URL"),
                openai_api_key=os.getenv("OPENAI_API_KEY"),
                anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
                llm_provider=os.getenv("LLM_PROVIDER", "openai"),
            ),
            generation=GenerationConfig(**generation_settings),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

        return config

    except ValidationError as e:
        print("❌ Configuration validation failed:", file=sys.stderr)
        print("\nPlease check your .env file. Missing or invalid fields:", file=sys.stderr)

        for error in e.errors():
            field_path = " → ".join(str(x) for x in error["loc"])
            message = error["msg"]
            print(f"  • {field_path}: {message}", file=sys.stderr)

        print("\nHint: Copy .env.example to .env and fill in your credentials.", file=sys.stderr)
        sys.exit(1)

"""Data models for the changelog generator."""

from models.config_models import Config, CredentialsConfig, GenerationConfig
from models.data_models import (
    CommitHistory,
    CommitRecord,
    DatasetExample,
    FeedbackEvent,
    FeedbackReceipt,
    GenerationEvent,
    PromptMessage,
    PromptPayload,
    RepositoryReference,
    ScoreResult,
)

__all__ = [
    "Config",
    "CredentialsConfig",
    "GenerationConfig",
    "CommitHistory",
    "CommitRecord",
    "DatasetExample",
    "FeedbackEvent",
    "FeedbackReceipt",
    "GenerationEvent",
    "PromptMessage",
    "PromptPayload",
    "RepositoryReference",
    "ScoreResult",
]

"""Data models for commit history, prompts, generation and feedback events."""

from datetime import datetime, timezone
from typing import Any, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class RepositoryReference(BaseModel):
    """A GitHub repository identified by owner and name."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class CommitRecord(BaseModel):
    """A single commit as read from the GitHub commits endpoint.

    `message` is the full commit message (used in prompts); `summary` is
    its first line (used in logs and judge inputs).
    """

    model_config = ConfigDict(frozen=True)

    sha: str
    message: str
    author: Optional[str] = None
    date: Optional[str] = None  # author timestamp, ISO 8601

    @property
    def summary(self) -> str:
        return self.message.split("\n", 1)[0].strip()


class CommitHistory(BaseModel):
    """Commits newest-first plus the resolved since boundary.

    `since` is the latest release publish time, else the oldest fetched
    commit's author time, else None.
    """

    model_config = ConfigDict(frozen=True)

    commits: list[CommitRecord] = Field(default_factory=list)
    since: Optional[str] = None


class PromptMessage(BaseModel):
    """One rendered chat message."""

    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


class PromptPayload(BaseModel):
    """A fully rendered prompt ready to send to the model.

    Built once per request from the stored template plus the commit
    history. Immutable after construction.
    """

    model_config = ConfigDict(frozen=True)

    template_slug: str
    template_version: Optional[str] = None
    variables: dict[str, Any]
    messages: list[PromptMessage] = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    temperature: float = Field(..., ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(None, gt=0)

    def chat_messages(self) -> list[dict[str, str]]:
        """Messages in the shape the chat completions API expects."""
        return [{"role": m.role, "content": m.content} for m in self.messages]


class GenerationEvent(BaseModel):
    """Observability record for one changelog generation.

    Created when generation starts; output and error are filled in when
    the stream finishes, only for logging.
    """

    correlation_id: str
    input: dict[str, Any]
    metadata: dict[str, Any] = Field(default_factory=dict)
    output: str = ""
    error: Optional[str] = None
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None


class FeedbackEvent(BaseModel):
    """A thumbs-up/down judgment tied to a generation by correlation id."""

    correlation_id: str = Field(..., min_length=1)
    score: Literal[0, 1]
    input: str
    output: str
    comment: Optional[str] = None
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("comment")
    @classmethod
    def normalize_comment(cls, v: Optional[str]) -> Optional[str]:
        """Trim the comment and drop it when empty."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @property
    def category(self) -> str:
        return "positive" if self.score == 1 else "negative"


class FeedbackReceipt(BaseModel):
    """Response returned after feedback is recorded."""

    feedback_id: str
    category: Literal["positive", "negative"]


class DatasetExample(BaseModel):
    """A fixed (input, expected) pair for offline evaluation."""

    id: str
    input: dict[str, Any]
    expected: str = ""


class ScoreResult(BaseModel):
    """One scorer's grade for one output.

    `score` is None when the scorer itself failed; `error` then says why.
    """

    name: str
    score: Optional[float] = None
    choice: Optional[str] = None
    reasoning: Optional[str] = None
    error: Optional[str] = None

"""
Task functions for evaluation runs.

A task takes a dataset input and returns the generated changelog text.
- prompt task: the stored changelog prompt, the same one the API uses
- parameterized task: an inline prompt with tunable detail level,
  author attribution and audience, for comparing prompt variants
"""

import logging
from typing import Any, Dict, Optional

from changelog.llm_client import LLMClient
from changelog.prompt_builder import PromptBuilder, format_commit_messages
from evals.dataset import commits_from_input
from evals.harness import Task

logger = logging.getLogger(__name__)

DETAIL_LEVELS = ("short", "standard", "verbose")
TARGET_AUDIENCES = ("developers", "marketers", "product managers")


def make_prompt_task(
    prompt_builder: PromptBuilder,
    llm_client: LLMClient,
    slug: Optional[str] = None
) -> Task:
    """
    Build a task that renders the stored prompt and returns the completion.

    The template is loaded once, when the task is created.
    """
    template = prompt_builder.load_template(slug)
    logger.debug(f"Prompt task using template {template.get('slug')} v{template.get('version')}")

    def task(input: Dict[str, Any]) -> str:
        commits = commits_from_input(input)
        payload = prompt_builder.build_from_template(template, {
            "url": input.get("repository_url", ""),
            "since": input.get("since"),
            "commits": format_commit_messages(commits),
        })
        return llm_client.send_messages(
            payload.chat_messages(),
            model=payload.model,
            temperature=payload.temperature,
            max_tokens=payload.max_tokens,
        )

    return task


def build_parameterized_messages(
    input: Dict[str, Any],
    detail_level: str = "standard",
    include_authors: bool = True,
    target_audience: str = "developers"
) -> list[dict[str, str]]:
    """Chat messages for the parameterized changelog prompt."""
    commit_lines = "\n".join(
        f"- {commit.message} (by {commit.author}, {commit.date})"
        for commit in commits_from_input(input)
    )

    user_parts = [
        f"Create a {detail_level} changelog.",
        "Make sure to include the authors of the changes."
        if include_authors
        else "Do NOT include the authors of the changes.",
        f"The target audience of this changelog are {target_audience}.",
        f"The most recent commits for {input.get('repository_url')} since {input.get('since')} are below:",
        commit_lines,
    ]

    return [
        {
            "role": "system",
            "content": "You are an expert changelog generator. You are given a list of "
                       "commits and you need to create a changelog for them.",
        },
        {"role": "user", "content": " ".join(part for part in user_parts if part)},
    ]


def make_parameterized_task(
    llm_client: LLMClient,
    model: str = "gpt-4o",
    detail_level: str = "standard",
    include_authors: bool = True,
    target_audience: str = "developers"
) -> Task:
    """
    Build a task using the inline parameterized prompt.

    Raises:
        ValueError: If detail_level or target_audience is not supported
    """
    if detail_level not in DETAIL_LEVELS:
        raise ValueError(f"detail_level must be one of: {', '.join(DETAIL_LEVELS)}")
    if target_audience not in TARGET_AUDIENCES:
        raise ValueError(f"target_audience must be one of: {', '.join(TARGET_AUDIENCES)}")

    logger.debug(
        f"Parameterized task: model={model}, detail={detail_level}, "
        f"authors={include_authors}, audience={target_audience}"
    )

    def task(input: Dict[str, Any]) -> str:
        messages = build_parameterized_messages(
            input,
            detail_level=detail_level,
            include_authors=include_authors,
            target_audience=target_audience,
        )
        return llm_client.send_messages(messages, model=model)

    return task

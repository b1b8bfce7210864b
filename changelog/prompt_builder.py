"""
Prompt builder for changelog generation.

Loads the versioned prompt template from the prompt store and renders it
with the repository URL, since boundary and commit messages into a
validated PromptPayload.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from models.data_models import CommitRecord, PromptPayload
from storage.supabase_client import SupabaseClient
from utils.errors import PromptNotFoundError, PromptTemplateError, UpstreamError

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([\w.]+)\s*\}\}")

# Rendered in place of a since boundary that could not be resolved
NULL_SINCE = "null"


def render_template(template: str, variables: Dict[str, Any]) -> str:
    """
    Substitute {{name}} placeholders in a template string.

    Lists are rendered by joining their items; None renders as "null".
    Unknown placeholders render as an empty string.

    Args:
        template: Template text with {{name}} placeholders
        variables: Placeholder values

    Returns:
        Rendered text
    """
    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name not in variables:
            logger.warning(f"Prompt placeholder '{{{{{name}}}}}' has no value")
            return ""
        value = variables[name]
        if value is None:
            return NULL_SINCE
        if isinstance(value, list):
            return "".join(str(item) for item in value)
        return str(value)

    return PLACEHOLDER_PATTERN.sub(_replace, template)


def format_commit_messages(commits: List[CommitRecord]) -> List[str]:
    """One prompt item per commit: the full message followed by a blank line."""
    return [f"{commit.message}\n\n" for commit in commits]


class PromptBuilder:
    """Build PromptPayloads from the stored changelog template."""

    def __init__(
        self,
        prompt_store: SupabaseClient,
        project_name: str,
        prompt_slug: str,
        default_model: str,
        default_temperature: float
    ):
        """
        Initialize prompt builder.

        Args:
            prompt_store: Client used to load templates
            project_name: Project the template belongs to
            prompt_slug: Template slug (e.g., "generate-changelog-1")
            default_model: Model used when the template does not set one
            default_temperature: Temperature used when the template does not set one
        """
        self.prompt_store = prompt_store
        self.project_name = project_name
        self.prompt_slug = prompt_slug
        self.default_model = default_model
        self.default_temperature = default_temperature

    def load_template(self, slug: Optional[str] = None) -> Dict[str, Any]:
        """
        Load a template record from the prompt store.

        Args:
            slug: Template slug (defaults to the configured slug)

        Returns:
            Raw template record

        Raises:
            PromptNotFoundError: If no template exists for project + slug
            UpstreamError: If the prompt store query fails
        """
        slug = slug or self.prompt_slug

        try:
            template = self.prompt_store.get_prompt(self.project_name, slug)
        except Exception as e:
            raise UpstreamError(f"Failed to load prompt template '{slug}': {e}") from e

        if not template:
            raise PromptNotFoundError(
                f"Prompt template '{slug}' not found in project '{self.project_name}'"
            )

        return template

    def build_prompt(
        self,
        repo_url: str,
        since: Optional[str],
        commits: List[CommitRecord],
        slug: Optional[str] = None
    ) -> PromptPayload:
        """
        Render the changelog prompt for one request.

        Args:
            repo_url: Repository URL as supplied by the user
            since: Since boundary, or None if unresolved
            commits: Commits newest first
            slug: Optional template slug override

        Returns:
            PromptPayload with rendered messages and generation parameters

        Raises:
            PromptNotFoundError: If the template does not exist
            PromptTemplateError: If the template is missing required fields
        """
        template = self.load_template(slug)

        variables = {
            "url": repo_url,
            "since": since,
            "commits": format_commit_messages(commits),
        }

        return self.build_from_template(template, variables)

    def build_from_template(self, template: Dict[str, Any], variables: Dict[str, Any]) -> PromptPayload:
        """
        Validate a template record and render it with variables.

        Args:
            template: Raw template record from the prompt store
            variables: Placeholder values

        Returns:
            PromptPayload

        Raises:
            PromptTemplateError: If messages are missing or fields are malformed
        """
        slug = template.get("slug") or self.prompt_slug
        raw_messages = template.get("messages")

        if not isinstance(raw_messages, list) or not raw_messages:
            raise PromptTemplateError(f"Prompt template '{slug}' has no messages")

        messages = []
        for i, message in enumerate(raw_messages):
            if not isinstance(message, dict) or not isinstance(message.get("content"), str):
                raise PromptTemplateError(
                    f"Prompt template '{slug}' message {i} must have string content"
                )
            messages.append({
                "role": message.get("role", "user"),
                "content": render_template(message["content"], variables),
            })

        model = template.get("model") or self.default_model
        temperature = template.get("temperature")
        if temperature is None:
            temperature = self.default_temperature

        try:
            payload = PromptPayload(
                template_slug=slug,
                template_version=str(template["version"]) if template.get("version") is not None else None,
                variables=variables,
                messages=messages,
                model=model,
                temperature=temperature,
                max_tokens=template.get("max_tokens"),
            )
        except ValidationError as e:
            fields = ", ".join(".".join(str(x) for x in err["loc"]) for err in e.errors())
            raise PromptTemplateError(
                f"Prompt template '{slug}' has invalid fields: {fields}"
            ) from e

        logger.debug(
            f"Built prompt '{slug}' (model={payload.model}, "
            f"temperature={payload.temperature}, "
            f"{len(variables.get('commits', []))} commits)"
        )

        return payload

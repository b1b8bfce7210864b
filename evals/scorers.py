"""
Changelog scorers.

Every scorer is called as scorer(input, output, expected=None) and returns
a ScoreResult:
- LLMJudgeScorer: asks a judge model to apply a rubric (accuracy,
  completeness) and maps its choice to a number
- formatting_scorer: checks section headers appear in canonical order
- similarity_scorer: normalized Levenshtein similarity to the expected changelog
"""

import logging
import re
from typing import Any, Dict, List, Optional

from autoevals.string import Levenshtein

from changelog.llm_client import LLMClient
from evals.dataset import commits_from_input
from evals.rubrics import ACCURACY_RUBRIC, CHOICE_SCORES, COMPLETENESS_RUBRIC
from models.data_models import ScoreResult

logger = logging.getLogger(__name__)

# Canonical section order; a changelog may omit sections but not reorder them
CHANGELOG_SECTIONS = [
    "Breaking Changes",
    "New Features",
    "Improvements",
    "Bug Fixes",
]

# Heading lines only, e.g. "## 🚨 Breaking Changes" or "### Bug Fixes"
SECTION_PATTERNS = [
    re.compile(rf"^#+[ \t]*(?:\S+[ \t]+)?{re.escape(section)}", re.MULTILINE)
    for section in CHANGELOG_SECTIONS
]


def format_commits_for_judge(commits: List[Any]) -> str:
    """
    Render a dataset commit list as bullet lines for a judge prompt.

    Commits may be plain strings, flat dicts or raw GitHub commit objects.
    """
    records = commits_from_input({"commits": commits})
    if not records:
        return "(no commits)"

    lines = []
    for commit in records:
        details = [v for v in (commit.author, commit.date) if v]
        suffix = f" ({', '.join(details)})" if details else ""
        lines.append(f"- {commit.message}{suffix}")
    return "\n".join(lines)


class LLMJudgeScorer:
    """
    Score a changelog by asking a judge model to apply a rubric.

    The judge reasons first ("Reasoning: ...") and then picks one of the
    choices ("Choice: Good"), which is mapped through choice_scores.
    """

    CHOICE_PATTERN = re.compile(r"Choice:\s*\**\s*([A-Za-z]+)", re.IGNORECASE)
    REASONING_PATTERN = re.compile(r"Reasoning:\s*(.*?)\s*Choice:", re.IGNORECASE | re.DOTALL)

    def __init__(
        self,
        name: str,
        rubric: str,
        llm_client: LLMClient,
        model: str = "gpt-4.1",
        choice_scores: Optional[Dict[str, float]] = None,
        max_retries: int = 1
    ):
        """
        Initialize judge scorer.

        Args:
            name: Scorer name used in reports (e.g., "accuracy")
            rubric: Template with {commits} and {output} placeholders
            llm_client: Client used to call the judge
            model: Judge model
            choice_scores: Choice label -> score (default: Excellent..Poor)
            max_retries: Extra judge calls when no valid choice is found
        """
        self.name = name
        self.rubric = rubric
        self.llm_client = llm_client
        self.model = model
        self.choice_scores = choice_scores or CHOICE_SCORES
        self.max_retries = max_retries

    def build_prompt(self, input: Dict[str, Any], output: str) -> str:
        return self.rubric.format(
            commits=format_commits_for_judge(input.get("commits", [])),
            output=output,
        )

    def parse_choice(self, response_text: str) -> tuple[str, Optional[str]]:
        """
        Extract the choice and reasoning from a judge response.

        The last "Choice:" line wins, in case the judge restates the options.

        Returns:
            Tuple of (choice label, reasoning or None)

        Raises:
            ValueError: If no valid choice is found
        """
        labels = {label.lower(): label for label in self.choice_scores}

        matches = self.CHOICE_PATTERN.findall(response_text or "")
        for candidate in reversed(matches):
            if candidate.lower() in labels:
                reasoning_match = self.REASONING_PATTERN.search(response_text)
                reasoning = reasoning_match.group(1).strip() if reasoning_match else None
                return labels[candidate.lower()], reasoning

        raise ValueError(
            f"No valid choice in judge response (expected one of: "
            f"{', '.join(self.choice_scores)})"
        )

    def __call__(
        self,
        input: Dict[str, Any],
        output: str,
        expected: Optional[str] = None
    ) -> ScoreResult:
        """
        Grade one output.

        Raises:
            ValueError: If the judge never returns a valid choice
            Exception: If the judge API call fails
        """
        prompt = self.build_prompt(input, output)

        for attempt in range(1, self.max_retries + 2):
            response_text = self.llm_client.send_messages(
                [{"role": "system", "content": prompt}],
                model=self.model,
                temperature=0.0,
            )
            try:
                choice, reasoning = self.parse_choice(response_text)
            except ValueError as e:
                logger.warning(f"{self.name} judge gave no valid choice (attempt {attempt}): {e}")
                if attempt > self.max_retries:
                    raise
                continue

            return ScoreResult(
                name=self.name,
                score=self.choice_scores[choice],
                choice=choice,
                reasoning=reasoning,
            )


def accuracy_scorer(llm_client: LLMClient, model: str = "gpt-4.1") -> LLMJudgeScorer:
    """Judge how faithfully the changelog describes the commits."""
    return LLMJudgeScorer("accuracy", ACCURACY_RUBRIC, llm_client, model=model)


def completeness_scorer(llm_client: LLMClient, model: str = "gpt-4.1") -> LLMJudgeScorer:
    """Judge coverage of significant changes and filtering of trivial ones."""
    return LLMJudgeScorer("completeness", COMPLETENESS_RUBRIC, llm_client, model=model)


def score_formatting(output: str) -> float:
    """
    Check that changelog sections appear in canonical order.

    Only markdown heading lines count (an optional emoji may precede the
    section name), so prose that mentions a section name is ignored.

    Returns:
        0 if no section header is present, 1 if exactly one is, otherwise
        1 only when every header's canonical rank is strictly greater than
        the one before it (by position in the text)
    """
    found = []
    for rank, pattern in enumerate(SECTION_PATTERNS):
        match = pattern.search(output)
        if match:
            found.append((match.start(), rank))

    if not found:
        return 0.0
    if len(found) == 1:
        return 1.0

    found.sort()
    for (_, previous_rank), (_, rank) in zip(found, found[1:]):
        if rank <= previous_rank:
            return 0.0

    return 1.0


def formatting_scorer(
    input: Dict[str, Any],
    output: str,
    expected: Optional[str] = None
) -> ScoreResult:
    return ScoreResult(name="formatting", score=score_formatting(output or ""))


def similarity_scorer(
    input: Dict[str, Any],
    output: str,
    expected: Optional[str] = None
) -> ScoreResult:
    """Normalized Levenshtein similarity (0-1) to the expected changelog."""
    if not expected:
        return ScoreResult(name="similarity", score=None, error="No expected output")

    result = Levenshtein()(output=output or "", expected=expected)
    return ScoreResult(name="similarity", score=round(result.score, 4))

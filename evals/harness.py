"""
Scoring harness - runs a task over a dataset and grades every output.

This is a batch job, not part of the request path. One failing task or
scorer is recorded on its example and the run continues.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from models.data_models import DatasetExample, ScoreResult
from storage.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

Scorer = Callable[..., ScoreResult]
Task = Callable[[Dict[str, Any]], str]


def scorer_name(scorer: Scorer) -> str:
    """Report name for a scorer object or function."""
    name = getattr(scorer, "name", None)
    if name:
        return name
    return getattr(scorer, "__name__", type(scorer).__name__).replace("_scorer", "")


class ExampleResult(BaseModel):
    """Task output and scores for one dataset example."""

    example_id: str
    output: Optional[str] = None
    error: Optional[str] = None
    scores: List[ScoreResult] = Field(default_factory=list)


class EvalReport(BaseModel):
    """Results of one evaluation run."""

    experiment: str
    results: List[ExampleResult] = Field(default_factory=list)

    def summary(self) -> Dict[str, Optional[float]]:
        """
        Mean score per scorer, skipping failed scores.

        Returns:
            Dict of scorer name -> mean (None if every score failed)
        """
        values: Dict[str, List[float]] = {}
        for result in self.results:
            for score in result.scores:
                bucket = values.setdefault(score.name, [])
                if score.score is not None:
                    bucket.append(score.score)

        return {
            name: (sum(scores) / len(scores) if scores else None)
            for name, scores in values.items()
        }

    @property
    def failed(self) -> int:
        return sum(1 for result in self.results if result.error)


def run_eval(
    examples: List[DatasetExample],
    task: Task,
    scorers: List[Scorer],
    experiment: Optional[str] = None
) -> EvalReport:
    """
    Run task on every example and apply every scorer to each output.

    Args:
        examples: Dataset examples
        task: Function from example input to generated changelog
        scorers: Scorers called as scorer(input, output, expected=...)
        experiment: Run name (default: timestamped)

    Returns:
        EvalReport with per-example, per-scorer results
    """
    experiment = experiment or f"changelog-eval-{datetime.now(timezone.utc):%Y%m%d-%H%M%S}"
    report = EvalReport(experiment=experiment)

    logger.info(f"Running {experiment}: {len(examples)} examples, {len(scorers)} scorers")

    for i, example in enumerate(examples, 1):
        logger.info(f"[{i}/{len(examples)}] {example.id}")

        try:
            output = task(example.input)
        except Exception as e:
            logger.error(f"  ✗ Task failed for {example.id}: {e}")
            report.results.append(ExampleResult(example_id=example.id, error=str(e)))
            continue

        result = ExampleResult(example_id=example.id, output=output)

        for scorer in scorers:
            name = scorer_name(scorer)
            try:
                score = scorer(example.input, output, expected=example.expected)
            except Exception as e:
                logger.warning(f"  Scorer '{name}' failed for {example.id}: {e}")
                score = ScoreResult(name=name, error=str(e))
            result.scores.append(score)

        scores_str = ", ".join(
            f"{s.name}={s.score if s.score is not None else 'error'}" for s in result.scores
        )
        logger.info(f"  ✓ {scores_str}")
        report.results.append(result)

    return report


def save_report(supabase: SupabaseClient, project: str, report: EvalReport) -> int:
    """
    Store one row per example in eval_results.

    Returns:
        Number of rows written
    """
    rows = [
        {
            "project": project,
            "experiment": report.experiment,
            "example_id": result.example_id,
            "output": result.output,
            "error": result.error,
            "scores": {
                score.name: {
                    "score": score.score,
                    "choice": score.choice,
                    "error": score.error,
                }
                for score in result.scores
            },
        }
        for result in report.results
    ]
    supabase.insert_eval_results(rows)
    return len(rows)

"""
Evaluation dataset helpers.

A dataset file is a JSON list of {"input": {...}, "expected": "..."} where
input has repository_url, since and commits. Examples get stable ids
("changelog-record-{i}") so pushing the same file twice is idempotent.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from models.data_models import CommitRecord, DatasetExample
from storage.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

DATASET_NAME = "Changelog Dataset"


def load_dataset_file(path: Union[str, Path]) -> List[DatasetExample]:
    """
    Load dataset examples from a JSON file.

    Newlines are stripped from expected outputs so they compare as a single
    line of text.

    Args:
        path: Path to the JSON dataset file

    Returns:
        List of DatasetExample with stable ids

    Raises:
        ValueError: If the file is not a JSON list of objects with an input
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"Dataset file {path} must contain a JSON list")

    examples = []
    for i, record in enumerate(data):
        if not isinstance(record, dict) or not isinstance(record.get("input"), dict):
            raise ValueError(f"Dataset record {i} in {path} has no input object")

        examples.append(DatasetExample(
            id=f"changelog-record-{i}",
            input=record["input"],
            expected=(record.get("expected") or "").replace("\n", ""),
        ))

    logger.info(f"Loaded {len(examples)} examples from {path}")
    return examples


def push_dataset(
    supabase: SupabaseClient,
    project: str,
    examples: List[DatasetExample],
    dataset: str = DATASET_NAME
) -> int:
    """
    Upsert examples into the dataset store.

    Returns:
        Number of records written
    """
    records = [
        {
            "id": example.id,
            "project": project,
            "dataset": dataset,
            "input": example.input,
            "expected": example.expected,
        }
        for example in examples
    ]
    supabase.upsert_dataset_records(records)
    return len(records)


def fetch_dataset(
    supabase: SupabaseClient,
    project: str,
    dataset: str = DATASET_NAME,
    limit: Optional[int] = None
) -> List[DatasetExample]:
    """Load examples from the dataset store."""
    rows = supabase.get_dataset_records(project, dataset, limit=limit)
    return [
        DatasetExample(id=row["id"], input=row["input"], expected=row.get("expected") or "")
        for row in rows
    ]


def commits_from_input(input: Dict[str, Any]) -> List[CommitRecord]:
    """
    Convert a dataset input's commit list into CommitRecords.

    Accepts plain message strings, flat dicts (message/author/date) and raw
    GitHub commit objects ({"sha", "commit": {"message", "author"}}).
    """
    records = []
    for commit in input.get("commits") or []:
        if isinstance(commit, str):
            records.append(CommitRecord(sha="", message=commit))
        elif isinstance(commit, dict) and isinstance(commit.get("commit"), dict):
            inner = commit["commit"]
            author = inner.get("author") or {}
            records.append(CommitRecord(
                sha=(commit.get("sha") or "")[:7],
                message=inner.get("message") or "",
                author=author.get("name"),
                date=author.get("date"),
            ))
        elif isinstance(commit, dict):
            author = commit.get("author")
            records.append(CommitRecord(
                sha=(commit.get("sha") or "")[:7],
                message=commit.get("message") or "",
                author=author if isinstance(author, str) else None,
                date=commit.get("date"),
            ))
    return records

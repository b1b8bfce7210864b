"""
Supabase storage client for prompts, event logs and evaluation data.

Tables:
- prompts: versioned prompt templates keyed by (project, slug)
- generation_logs: one row per changelog generation, keyed by correlation id
- feedback_logs: user feedback rows referencing a generation's correlation id
- dataset_records: evaluation examples, upserted by stable id
- eval_results: per-example scores from evaluation runs

Writes to dataset_records and prompts are upserts, so they can be safely
re-run.
"""

import logging
from typing import Dict, List, Optional, Any
from supabase import Client, create_client

logger = logging.getLogger(__name__)


class SupabaseClient:
    """Client for interacting with Supabase storage."""

    PROMPTS_TABLE = "prompts"
    GENERATIONS_TABLE = "generation_logs"
    FEEDBACK_TABLE = "feedback_logs"
    DATASET_TABLE = "dataset_records"
    EVAL_RESULTS_TABLE = "eval_results"

    def __init__(self, supabase_url: str, supabase_key: str):
        """
        Initialize Supabase client.

        Args:
            supabase_url: Supabase project URL
            supabase_key: Supabase API key (anon/public key)
        """
        self.client: Client = create_client(supabase_url, supabase_key)
        logger.info(f"Initialized SupabaseClient for {supabase_url}")

    # ------------------------------------------------------------------
    # Prompt store
    # ------------------------------------------------------------------

    def get_prompt(self, project: str, slug: str) -> Optional[Dict[str, Any]]:
        """
        Load a prompt template by project and slug.

        Args:
            project: Project name (e.g., "changelog-generator")
            slug: Prompt slug (e.g., "generate-changelog-1")

        Returns:
            Prompt record dict or None if not found

        Raises:
            Exception if the query fails
        """
        try:
            result = self.client.table(self.PROMPTS_TABLE).select("*").eq(
                "project", project
            ).eq("slug", slug).limit(1).execute()

            if result.data:
                return result.data[0]
            return None

        except Exception as e:
            logger.error(f"Failed to load prompt {project}/{slug}: {e}")
            raise

    def upsert_prompt(self, prompt: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert or update a prompt template.

        Args:
            prompt: Dict with keys project, slug, name, description, version,
                    model, temperature, max_tokens, messages

        Returns:
            Dict with the inserted/updated record
        """
        try:
            result = self.client.table(self.PROMPTS_TABLE).upsert(
                prompt,
                on_conflict="project,slug"
            ).execute()

            logger.debug(f"Upserted prompt {prompt['project']}/{prompt['slug']}")
            return result.data[0] if result.data else prompt

        except Exception as e:
            logger.error(f"Failed to upsert prompt {prompt.get('slug')}: {e}")
            raise

    # ------------------------------------------------------------------
    # Event log
    # ------------------------------------------------------------------

    def insert_generation_log(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Write a generation record.

        Upserts on correlation_id so a record finalized twice (e.g. on
        stream close after an error) keeps a single row.

        Args:
            record: Dict with correlation_id, project, input, output, error,
                    metadata, started_at, finished_at

        Returns:
            Dict with the inserted record
        """
        try:
            result = self.client.table(self.GENERATIONS_TABLE).upsert(
                record,
                on_conflict="correlation_id"
            ).execute()

            logger.debug(f"Logged generation {record['correlation_id']}")
            return result.data[0] if result.data else record

        except Exception as e:
            logger.error(f"Failed to log generation {record.get('correlation_id')}: {e}")
            raise

    def insert_feedback_log(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Write a feedback record.

        Plain insert: several feedback rows may reference the same
        correlation id.

        Args:
            record: Dict with id, correlation_id, project, scores, metadata,
                    input, output

        Returns:
            Dict with the inserted record
        """
        try:
            result = self.client.table(self.FEEDBACK_TABLE).insert(record).execute()

            logger.debug(
                f"Logged feedback {record['id']} for generation {record['correlation_id']}"
            )
            return result.data[0] if result.data else record

        except Exception as e:
            logger.error(f"Failed to log feedback for {record.get('correlation_id')}: {e}")
            raise

    # ------------------------------------------------------------------
    # Evaluation data
    # ------------------------------------------------------------------

    def upsert_dataset_records(self, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Insert or update evaluation examples in a single batch.

        Records are keyed by their stable id, so pushing the same dataset
        twice leaves one row per example.

        Args:
            records: List of dicts with id, project, dataset, input, expected

        Returns:
            List of inserted/updated records
        """
        if not records:
            return []

        try:
            result = self.client.table(self.DATASET_TABLE).upsert(
                records,
                on_conflict="id"
            ).execute()

            logger.info(f"Upserted {len(records)} dataset records")
            return result.data if result.data else records

        except Exception as e:
            logger.error(f"Failed to upsert dataset records: {e}")
            raise

    def get_dataset_records(
        self,
        project: str,
        dataset: str,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Load evaluation examples for a dataset, ordered by id.

        Args:
            project: Project name
            dataset: Dataset name (e.g., "Changelog Dataset")
            limit: Optional maximum number of records

        Returns:
            List of dataset records (empty if none)
        """
        try:
            query = self.client.table(self.DATASET_TABLE).select("*").eq(
                "project", project
            ).eq("dataset", dataset).order("id")

            if limit:
                query = query.limit(limit)

            result = query.execute()
            logger.info(f"Loaded {len(result.data)} records from dataset '{dataset}'")
            return result.data

        except Exception as e:
            logger.error(f"Failed to load dataset '{dataset}': {e}")
            raise

    def insert_eval_results(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Write per-example evaluation results in a single batch.

        Args:
            rows: List of dicts with project, experiment, example_id, output, scores

        Returns:
            List of inserted records
        """
        if not rows:
            return []

        try:
            result = self.client.table(self.EVAL_RESULTS_TABLE).insert(rows).execute()
            logger.info(f"Saved {len(rows)} evaluation results")
            return result.data if result.data else rows

        except Exception as e:
            logger.error(f"Failed to save evaluation results: {e}")
            raise

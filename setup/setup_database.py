#!/usr/bin/env python3
"""
Database setup script for changelog-generator.

Creates the Supabase tables backing the prompt store, the generation and
feedback logs, the evaluation dataset and evaluation results, using a
direct PostgreSQL connection.

Usage:
    python setup/setup_database.py           # Create schema
    python setup/setup_database.py --verify  # Verify existing schema
    python setup/setup_database.py --drop    # Drop and recreate (DANGEROUS)
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from utils.config_loader import load_config
from utils.logger import setup_logger

try:
    import psycopg2
except ImportError:
    print("Error: psycopg2 not installed. Run: pip install -e .")
    sys.exit(1)

logger = setup_logger()


# Table name -> CREATE statement, in creation order
CREATE_TABLES_SQL = {
    "prompts": """
CREATE TABLE IF NOT EXISTS prompts (
    id BIGSERIAL PRIMARY KEY,
    project TEXT NOT NULL,
    slug TEXT NOT NULL,
    name TEXT,
    description TEXT,
    version TEXT,

    -- Chat template: [{"role": ..., "content": ...}] with {{placeholders}}
    messages JSONB NOT NULL,
    model TEXT,
    temperature DOUBLE PRECISION,
    max_tokens INTEGER,

    updated_at TIMESTAMP NOT NULL DEFAULT NOW(),

    UNIQUE(project, slug)
);
""",
    "generation_logs": """
CREATE TABLE IF NOT EXISTS generation_logs (
    correlation_id TEXT PRIMARY KEY,
    project TEXT NOT NULL,
    input JSONB NOT NULL,
    output TEXT,
    error TEXT,
    metadata JSONB,
    started_at TIMESTAMPTZ NOT NULL,
    finished_at TIMESTAMPTZ
);
""",
    "feedback_logs": """
CREATE TABLE IF NOT EXISTS feedback_logs (
    id TEXT PRIMARY KEY,

    -- Not a foreign key: feedback may arrive for a generation whose log
    -- write failed
    correlation_id TEXT NOT NULL,
    project TEXT NOT NULL,
    scores JSONB NOT NULL,
    metadata JSONB,
    input TEXT NOT NULL,
    output TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
""",
    "dataset_records": """
CREATE TABLE IF NOT EXISTS dataset_records (
    id TEXT PRIMARY KEY,
    project TEXT NOT NULL,
    dataset TEXT NOT NULL,
    input JSONB NOT NULL,
    expected TEXT
);
""",
    "eval_results": """
CREATE TABLE IF NOT EXISTS eval_results (
    id BIGSERIAL PRIMARY KEY,
    project TEXT NOT NULL,
    experiment TEXT NOT NULL,
    example_id TEXT NOT NULL,
    output TEXT,
    error TEXT,
    scores JSONB,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
""",
}

CREATE_INDEXES_SQL = {
    "generation_logs": [
        "CREATE INDEX IF NOT EXISTS idx_generation_logs_project ON generation_logs(project);",
        "CREATE INDEX IF NOT EXISTS idx_generation_logs_started_at ON generation_logs(started_at DESC);",
    ],
    "feedback_logs": [
        "CREATE INDEX IF NOT EXISTS idx_feedback_logs_correlation_id ON feedback_logs(correlation_id);",
    ],
    "dataset_records": [
        "CREATE INDEX IF NOT EXISTS idx_dataset_records_dataset ON dataset_records(project, dataset);",
    ],
    "eval_results": [
        "CREATE INDEX IF NOT EXISTS idx_eval_results_experiment ON eval_results(project, experiment);",
    ],
}

DROP_TABLE_SQL = "; ".join(
    f"DROP TABLE IF EXISTS {table} CASCADE" for table in reversed(list(CREATE_TABLES_SQL))
) + ";"


def index_name(index_sql: str) -> str:
    """Extract the index name from a CREATE INDEX statement."""
    return index_sql.split("INDEX IF NOT EXISTS ")[1].split(" ON")[0]


def get_database_url(config) -> str:
    """
    Get PostgreSQL database URL.

    Uses DATABASE_URL from .env; exits with instructions if it is missing.
    """
    if config.credentials.database_url:
        return config.credentials.database_url

    logger.error("DATABASE_URL not found in .env file")
    logger.error("\nTo get your DATABASE_URL:")
    logger.error("1. Go to Supabase Dashboard → Project Settings → Database")
    logger.error("2. Find 'Connection string' under 'Connection pooling'")
    logger.error("3. Copy the 'URI' connection string")
    logger.error("4. Add to .env file: DATABASE_URL=postgresql://...")
    sys.exit(1)


def create_connection(database_url: str):
    """Create a PostgreSQL database connection."""
    try:
        conn = psycopg2.connect(database_url)
        logger.info("✓ Connected to PostgreSQL database")
        return conn
    except Exception as e:
        logger.error(f"✗ Failed to connect to database: {e}")
        logger.error("\nMake sure DATABASE_URL is correct and your IP is allowed in Supabase")
        sys.exit(1)


def execute_sql(conn, sql_statement: str, description: str) -> bool:
    """Execute a SQL statement."""
    try:
        cursor = conn.cursor()
        cursor.execute(sql_statement)
        conn.commit()
        cursor.close()
        logger.info(f"✓ {description}")
        return True
    except Exception as e:
        logger.error(f"✗ {description} failed: {e}")
        conn.rollback()
        return False


def verify_schema(conn) -> bool:
    """Verify that every table exists; report missing indexes as warnings."""
    try:
        cursor = conn.cursor()
        ok = True

        for table in CREATE_TABLES_SQL:
            cursor.execute(
                """
                SELECT EXISTS (
                    SELECT FROM information_schema.tables
                    WHERE table_name = %s
                );
                """,
                (table,),
            )
            if cursor.fetchone()[0]:
                logger.info(f"✓ Table '{table}' exists")
            else:
                logger.error(f"✗ Table '{table}' does not exist")
                ok = False
                continue

            expected_indexes = [index_name(s) for s in CREATE_INDEXES_SQL.get(table, [])]
            if not expected_indexes:
                continue

            cursor.execute("SELECT indexname FROM pg_indexes WHERE tablename = %s;", (table,))
            indexes = [row[0] for row in cursor.fetchall()]
            for idx in expected_indexes:
                if idx in indexes:
                    logger.info(f"✓ Index '{idx}' exists")
                else:
                    logger.warning(f"⚠ Index '{idx}' missing")

        cursor.close()
        return ok

    except Exception as e:
        logger.error(f"✗ Schema verification failed: {e}")
        return False


def create_schema(conn) -> bool:
    """Create the database schema."""
    logger.info("\n" + "="*80)
    logger.info("CREATING SCHEMA")
    logger.info("="*80 + "\n")

    for table, create_sql in CREATE_TABLES_SQL.items():
        if not execute_sql(conn, create_sql, f"Created table '{table}'"):
            return False

        for idx_sql in CREATE_INDEXES_SQL.get(table, []):
            if not execute_sql(conn, idx_sql, f"Created index '{index_name(idx_sql)}'"):
                return False

    logger.info("\n✓ Database schema created successfully!")
    return True


def drop_schema(conn) -> bool:
    """Drop the existing schema (DANGEROUS)."""
    tables = ", ".join(CREATE_TABLES_SQL)

    logger.warning("\n" + "="*80)
    logger.warning("⚠️  WARNING: DROPPING EXISTING SCHEMA")
    logger.warning("="*80)
    logger.warning(f"This will DELETE ALL DATA in: {tables}")

    response = input("\nType 'yes' to confirm: ")
    if response.lower() != 'yes':
        logger.info("Aborted.")
        return False

    if not execute_sql(conn, DROP_TABLE_SQL, f"Dropped tables {tables}"):
        return False

    logger.info("✓ Schema dropped")
    return True


def main():
    parser = argparse.ArgumentParser(
        description="Set up database schema for changelog-generator"
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Verify existing schema without creating"
    )
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop and recreate tables (DANGEROUS - deletes all data)"
    )

    args = parser.parse_args()

    # Load configuration
    config = load_config()
    setup_logger(config.log_level)
    logger.info("✓ Configuration loaded")

    database_url = get_database_url(config)
    conn = create_connection(database_url)

    try:
        if args.verify:
            logger.info("\n" + "="*80)
            logger.info("VERIFYING SCHEMA")
            logger.info("="*80 + "\n")

            if verify_schema(conn):
                logger.info("\n✓ Schema verification successful")
                sys.exit(0)
            else:
                logger.error("\n✗ Schema verification failed")
                sys.exit(1)

        if args.drop:
            if not drop_schema(conn):
                sys.exit(1)

        if create_schema(conn):
            logger.info("\n" + "="*80)
            logger.info("NEXT STEPS")
            logger.info("="*80)
            logger.info("\n1. Verify the schema:")
            logger.info("   python setup/setup_database.py --verify")
            logger.info("\n2. Push the stock prompts:")
            logger.info("   python main.py push-prompts")
            sys.exit(0)
        else:
            logger.error("\n✗ Schema creation failed")
            sys.exit(1)

    finally:
        conn.close()
        logger.info("\n✓ Database connection closed")


if __name__ == "__main__":
    main()

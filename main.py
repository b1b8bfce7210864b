#!/usr/bin/env python3
"""
Changelog Generator - Main CLI entrypoint

Generates changelogs for GitHub repositories from their recent commits,
manages the prompt store and evaluation dataset, and runs offline
evaluations of changelog quality.

Usage:
    python main.py generate https://github.com/octocat/Hello-World
    python main.py push-prompts
    python main.py push-dataset eval/changelog_dataset.json
    python main.py eval --dataset-file eval/changelog_dataset.json --limit 5
    python main.py eval --task parameterized --detail-level short --no-judges
    python main.py serve --port 8000
"""

import argparse
import sys
from typing import Optional

from backend.context import AppContext
from changelog.prompt_template import STOCK_PROMPTS
from evals.dataset import DATASET_NAME, fetch_dataset, load_dataset_file, push_dataset
from evals.harness import run_eval, save_report
from evals.scorers import accuracy_scorer, completeness_scorer, formatting_scorer, similarity_scorer
from evals.tasks import DETAIL_LEVELS, TARGET_AUDIENCES, make_parameterized_task, make_prompt_task
from utils.config_loader import load_config
from utils.errors import ChangelogError
from utils.logger import setup_logger

logger = setup_logger()


def generate_changelog(context: AppContext, repo_url: str) -> bool:
    """
    Stream a changelog for a repository to stdout.

    Returns:
        bool: True if successful, False otherwise
    """
    try:
        handle = context.pipeline.run(repo_url)
    except ChangelogError as e:
        logger.error(f"Failed to generate changelog: {e.message}")
        return False

    logger.info(f"Correlation id: {handle.correlation_id}")

    try:
        for chunk in handle.chunks():
            sys.stdout.write(chunk)
            sys.stdout.flush()
    except ChangelogError as e:
        sys.stdout.write("\n")
        logger.error(f"Stream ended early: {e.message}")
        return False

    sys.stdout.write("\n")
    return True


def push_prompts(context: AppContext) -> bool:
    """
    Upsert the stock changelog prompts into the prompt store.

    Returns:
        bool: True if successful, False otherwise
    """
    project = context.config.generation.project_name

    if context.supabase is None:
        logger.error("Supabase is not available - cannot push prompts")
        return False

    for prompt in STOCK_PROMPTS:
        try:
            context.supabase.upsert_prompt({"project": project, **prompt})
            logger.info(f"  ✓ {project}/{prompt['slug']}")
        except Exception as e:
            logger.error(f"  ✗ Failed to push {prompt['slug']}: {e}")
            return False

    logger.info(f"Pushed {len(STOCK_PROMPTS)} prompts to project '{project}'")
    return True


def push_dataset_file(context: AppContext, path: str, dataset: str = DATASET_NAME) -> bool:
    """
    Load a dataset file and upsert it into the dataset store (idempotent).

    Returns:
        bool: True if successful, False otherwise
    """
    if context.supabase is None:
        logger.error("Supabase is not available - cannot push dataset")
        return False

    try:
        examples = load_dataset_file(path)
        count = push_dataset(
            context.supabase,
            context.config.generation.project_name,
            examples,
            dataset=dataset,
        )
    except Exception as e:
        logger.error(f"Failed to push dataset: {e}")
        return False

    logger.info(f"Pushed {count} examples to dataset '{dataset}'")
    return True


def run_evaluation(
    context: AppContext,
    dataset_file: Optional[str] = None,
    dataset: str = DATASET_NAME,
    task_name: str = "prompt",
    slug: Optional[str] = None,
    model: Optional[str] = None,
    detail_level: str = "standard",
    include_authors: bool = True,
    target_audience: str = "developers",
    limit: Optional[int] = None,
    use_judges: bool = True,
    save: bool = True
) -> bool:
    """
    Run an offline evaluation and log a per-scorer summary.

    Examples come from dataset_file if given, else from the dataset store.

    Returns:
        bool: True if the run completed, False otherwise
    """
    generation = context.config.generation
    project = generation.project_name

    logger.info("=" * 80)
    logger.info(f"EVALUATING CHANGELOGS: task={task_name}")
    logger.info("=" * 80)

    # Load examples
    try:
        if dataset_file:
            examples = load_dataset_file(dataset_file)
            if limit:
                examples = examples[:limit]
        else:
            if context.supabase is None:
                logger.error("Supabase is not available - pass --dataset-file instead")
                return False
            examples = fetch_dataset(context.supabase, project, dataset, limit=limit)
    except Exception as e:
        logger.error(f"Failed to load evaluation dataset: {e}")
        return False

    if not examples:
        logger.info("No examples found - nothing to evaluate")
        return True

    # Build task
    try:
        if task_name == "parameterized":
            task = make_parameterized_task(
                context.llm_client,
                model=model or generation.default_model,
                detail_level=detail_level,
                include_authors=include_authors,
                target_audience=target_audience,
            )
        else:
            task = make_prompt_task(context.pipeline.prompt_builder, context.llm_client, slug=slug)
    except Exception as e:
        logger.error(f"Failed to build evaluation task: {e}")
        return False

    scorers = [formatting_scorer, similarity_scorer]
    if use_judges:
        scorers = [
            accuracy_scorer(context.llm_client, model=generation.judge_model),
            completeness_scorer(context.llm_client, model=generation.judge_model),
        ] + scorers

    report = run_eval(examples, task, scorers)

    # Summary
    logger.info("\n" + "=" * 80)
    logger.info("SUMMARY")
    logger.info("=" * 80)
    logger.info(f"Experiment: {report.experiment}")
    logger.info(f"Examples: {len(report.results)} ({report.failed} failed)")
    for name, mean in report.summary().items():
        mean_str = f"{mean:.3f}" if mean is not None else "n/a"
        logger.info(f"  {name}: {mean_str}")

    if save and context.supabase is not None:
        try:
            save_report(context.supabase, project, report)
        except Exception as e:
            logger.warning(f"Could not save evaluation results: {e}")

    return True


def main():
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        description="Changelog Generator - summarize recent GitHub commits with an LLM",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py generate https://github.com/octocat/Hello-World
  python main.py push-prompts
  python main.py push-dataset eval/changelog_dataset.json
  python main.py eval --limit 5
  python main.py serve --port 8000
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Generate command
    generate_parser = subparsers.add_parser(
        "generate",
        help="Stream a changelog for a repository to stdout"
    )
    generate_parser.add_argument(
        "repository",
        help="Repository URL (e.g., 'https://github.com/octocat/Hello-World')"
    )

    # Prompt store command
    subparsers.add_parser(
        "push-prompts",
        help="Upsert the stock changelog prompts into the prompt store"
    )

    # Dataset command
    dataset_parser = subparsers.add_parser(
        "push-dataset",
        help="Upsert an evaluation dataset file into the dataset store"
    )
    dataset_parser.add_argument("path", help="Path to the JSON dataset file")
    dataset_parser.add_argument(
        "--dataset",
        default=DATASET_NAME,
        help=f"Dataset name (default: '{DATASET_NAME}')"
    )

    # Eval command
    eval_parser = subparsers.add_parser(
        "eval",
        help="Run an offline evaluation of changelog quality"
    )
    eval_parser.add_argument(
        "--dataset-file",
        default=None,
        help="Read examples from a JSON file instead of the dataset store"
    )
    eval_parser.add_argument(
        "--dataset",
        default=DATASET_NAME,
        help=f"Dataset name in the store (default: '{DATASET_NAME}')"
    )
    eval_parser.add_argument(
        "--task",
        choices=["prompt", "parameterized"],
        default="prompt",
        help="'prompt' uses the stored prompt; 'parameterized' an inline prompt (default: prompt)"
    )
    eval_parser.add_argument("--slug", default=None, help="Prompt slug for the prompt task")
    eval_parser.add_argument("--model", default=None, help="Model for the parameterized task")
    eval_parser.add_argument(
        "--detail-level",
        choices=DETAIL_LEVELS,
        default="standard",
        help="Detail level for the parameterized task (default: standard)"
    )
    eval_parser.add_argument(
        "--include-authors",
        action="store_true",
        default=True,
        help="Ask the parameterized task to credit commit authors (default)"
    )
    eval_parser.add_argument(
        "--no-include-authors",
        dest="include_authors",
        action="store_false",
        help="Leave commit authors out of the parameterized task"
    )
    eval_parser.add_argument(
        "--target-audience",
        choices=TARGET_AUDIENCES,
        default="developers",
        help="Audience for the parameterized task (default: developers)"
    )
    eval_parser.add_argument("--limit", type=int, default=None, help="Maximum examples to evaluate")
    eval_parser.add_argument(
        "--no-judges",
        action="store_true",
        help="Skip the LLM-judge scorers (accuracy, completeness)"
    )
    eval_parser.add_argument(
        "--no-save",
        action="store_true",
        help="Do not store results in eval_results"
    )

    # Serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Start the API server"
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to run the API server on (default: 8000)"
    )
    serve_parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind the server to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--no-reload",
        action="store_true",
        help="Disable auto-reload (use for production)"
    )

    args = parser.parse_args()

    # Show help if no command provided
    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "serve":
        logger.info(f"Starting Changelog Generator API at http://{args.host}:{args.port}")
        import uvicorn
        uvicorn.run(
            "backend.app:app",
            host=args.host,
            port=args.port,
            reload=not args.no_reload,
            log_level="info"
        )
        sys.exit(0)

    # Every other command needs config and clients
    config = load_config()
    setup_logger(config.log_level)

    try:
        context = AppContext.from_config(
            config,
            wait_on_rate_limit=args.command != "generate",
        )
    except Exception as e:
        logger.error(f"Failed to initialize clients: {e}")
        sys.exit(1)

    try:
        if args.command == "generate":
            success = generate_changelog(context, args.repository)
        elif args.command == "push-prompts":
            success = push_prompts(context)
        elif args.command == "push-dataset":
            success = push_dataset_file(context, args.path, dataset=args.dataset)
        elif args.command == "eval":
            success = run_evaluation(
                context,
                dataset_file=args.dataset_file,
                dataset=args.dataset,
                task_name=args.task,
                slug=args.slug,
                model=args.model,
                detail_level=args.detail_level,
                include_authors=args.include_authors,
                target_audience=args.target_audience,
                limit=args.limit,
                use_judges=not args.no_judges,
                save=not args.no_save,
            )
        else:
            logger.error(f"Command '{args.command}' is not implemented")
            success = False
    finally:
        context.close()

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()

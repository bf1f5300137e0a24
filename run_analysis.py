"""
run_analysis.py: end-to-end analysis run from the command line.

Runs the full pipeline in-process (no API, no Celery):
  1. Load questions from a JSON file ([{"id", "question", "category"}, ...])
  2. Build the run configuration from .env settings plus CLI overrides
  3. Run the analysis against the configured provider
  4. Write the report (markdown, json or csv) to stdout or a file

Usage:
    python run_analysis.py questions.json --target "Occident" --competitor Mapfre --competitor AXA
    python run_analysis.py questions.json --format csv --output report.csv --no-cache
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from brandpulse.analysis.orchestrator import run_analysis
from brandpulse.analysis.types import Question, RunConfiguration
from brandpulse.core.config import settings
from brandpulse.core.dependencies import build_cache_gateway
from brandpulse.core.logging import setup_logging
from brandpulse.core.sentry import init_sentry
from brandpulse.gateway.provider import ChatCompletionClient
from brandpulse.services import report_service

logger = logging.getLogger("run_analysis")

_RENDERERS = {
    "markdown": report_service.generate_markdown_report,
    "json": report_service.generate_json_report,
    "csv": report_service.generate_csv_report,
}


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a brand visibility analysis")
    parser.add_argument("questions", type=Path, help="JSON file with the questions")
    parser.add_argument("--target", action="append", dest="targets", help="Target brand (repeatable)")
    parser.add_argument("--competitor", action="append", dest="competitors", help="Competitor brand (repeatable)")
    parser.add_argument("--persona", action="append", dest="personas", help="Persona: chatgpt|claude|gemini|perplexity")
    parser.add_argument("--industry")
    parser.add_argument("--concurrency", type=int)
    parser.add_argument("--batch-mode", choices=["window", "pool"])
    parser.add_argument("--no-cache", action="store_true")
    parser.add_argument("--format", choices=sorted(_RENDERERS), default="markdown")
    parser.add_argument("--output", type=Path, help="Write the report here instead of stdout")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


async def _main(args: argparse.Namespace) -> int:
    questions = [Question.from_dict(q) for q in json.loads(args.questions.read_text(encoding="utf-8"))]
    config = RunConfiguration.from_settings(
        settings,
        target_brands=tuple(args.targets or ()),
        competitor_brands=tuple(args.competitors or ()),
        personas=tuple(args.personas or ()),
        industry=args.industry,
        concurrency_limit=args.concurrency,
        batch_mode=args.batch_mode,
        cache_enabled=False if args.no_cache else None,
    )
    cache = build_cache_gateway() if config.cache_enabled else None
    provider = ChatCompletionClient(settings.openai_api_key, settings.openai_api_url)

    def _progress(done: int, total: int) -> None:
        logger.info("Progress: %d/%d", done, total)

    try:
        result = await run_analysis(questions, config, provider, cache=cache, on_progress=_progress)
    finally:
        if cache is not None:
            await cache.aclose()
    report = _RENDERERS[args.format](result)

    if args.output:
        args.output.write_text(report, encoding="utf-8")
        logger.info("Report written to %s", args.output)
    else:
        sys.stdout.write(report)
    return 0 if not result.metrics.questions_failed else 2


if __name__ == "__main__":
    cli_args = _parse_args(sys.argv[1:])
    setup_logging(level="DEBUG" if cli_args.verbose else None)
    init_sentry("cli")
    sys.exit(asyncio.run(_main(cli_args)))

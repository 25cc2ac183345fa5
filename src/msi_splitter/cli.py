"""Splitter CLI.

Usage:
    msi-splitter split bundle.pdf --output /data/station
    msi-splitter preview bundle.pdf --output /data/station --classification pages.json
    msi-splitter queue /data/scans --output /data/station --summary
    msi-splitter sync bundle.pdf --staging /data/staging --output /data/station

The Gemini API key is read from GEMINI_API_KEY (or API_KEY). With
--classification a stored classification (or a previous run's manifest) is
replayed instead of calling the model.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from loguru import logger

from msi_splitter.classifiers import GeminiPageClassifier, PageClassifier, ReplayClassifier, UsageTracker
from msi_splitter.config import SplitterConfig
from msi_splitter.exceptions import ConfigValidationError, SplitterError
from msi_splitter.pipeline import SplitPipeline
from msi_splitter.scheduler import Job, JobScheduler, JobStatus
from msi_splitter.storage import LocalDirectoryStore, MemoryStore
from msi_splitter.sync import sync_to_destination


def setup_logger(log_level: str = "INFO") -> None:
    """Configure loguru logger."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def load_config(args: argparse.Namespace) -> SplitterConfig:
    config = SplitterConfig.from_yaml(Path(args.config)) if args.config else SplitterConfig.from_env()
    if getattr(args, "max_pages", None):
        config.max_pages = args.max_pages
    if args.log_level:
        config.log_level = args.log_level
    return config


def build_classifier(config: SplitterConfig, classification: Optional[str]) -> PageClassifier:
    if classification:
        logger.info(f"Replaying classification from {classification}")
        return ReplayClassifier.from_file(Path(classification))
    return GeminiPageClassifier(config.api_key, config.model, usage_tracker=UsageTracker())


def collect_pdfs(inputs: List[str]) -> List[Path]:
    """PDF files given directly or found under given directories."""
    files: List[Path] = []
    for item in inputs:
        path = Path(item)
        if path.is_dir():
            files.extend(sorted(p for p in path.rglob("*") if p.suffix.lower() == ".pdf"))
        else:
            files.append(path)
    return files


def _log_usage(classifier: PageClassifier) -> None:
    tracker = getattr(classifier, "usage_tracker", None)
    if tracker is not None and tracker.calls:
        logger.info(f"Classifier usage: {tracker.stats()}")


async def cmd_split(args: argparse.Namespace, config: SplitterConfig) -> int:
    classifier = build_classifier(config, args.classification)
    pipeline = SplitPipeline(config, classifier)
    store = LocalDirectoryStore(args.output)

    result = await pipeline.process_file(Path(args.input), store)
    for line in result.details:
        print(line)
    _log_usage(classifier)
    return 0 if result.ok else 2


async def cmd_preview(args: argparse.Namespace, config: SplitterConfig) -> int:
    classifier = build_classifier(config, args.classification)
    pipeline = SplitPipeline(config, classifier)
    output = Path(args.output)
    store = LocalDirectoryStore(output, create=False) if output.is_dir() else MemoryStore()

    preview = await pipeline.preview(Path(args.input), store)
    preview.tree.name = str(args.output)
    if args.json:
        print(json.dumps(preview.tree.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(preview.tree.render_text())
    _log_usage(classifier)
    return 0


def _print_jobs(jobs: List[Job]) -> None:
    for job in jobs:
        if job.status == JobStatus.PROCESSING:
            logger.debug(f"{job.name}: {job.progress}% {job.message}")


def _write_summary(path: Path, jobs: List[Job], elapsed: float) -> None:
    summary: Dict[str, Any] = {
        "total": len(jobs),
        "completed": sum(1 for j in jobs if j.status == JobStatus.COMPLETED),
        "errors": sum(1 for j in jobs if j.status == JobStatus.ERROR),
        "elapsed_s": round(elapsed, 1),
        "jobs": [
            {
                "file": str(job.path),
                "status": job.status.value,
                "attempts": job.attempts,
                "saved": job.result.success if job.result else 0,
                "failed": job.result.failed if job.result else 0,
                "error": job.error,
            }
            for job in jobs
        ],
    }
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(summary, f, allow_unicode=True, sort_keys=False, default_flow_style=False)
    logger.info(f"Summary written to {path}")


async def cmd_queue(args: argparse.Namespace, config: SplitterConfig) -> int:
    files = collect_pdfs(args.inputs)
    if not files:
        logger.warning("No PDF files found")
        return 0

    classifier = build_classifier(config, args.classification)
    pipeline = SplitPipeline(config, classifier)
    store = LocalDirectoryStore(args.output)
    scheduler = JobScheduler(config.scheduler, pipeline, store)

    for path in files:
        scheduler.add_job(path)
    unsubscribe = scheduler.subscribe(_print_jobs)

    t0 = time.time()
    try:
        jobs = await scheduler.run()
    finally:
        unsubscribe()
    elapsed = time.time() - t0

    errors = [j for j in jobs if j.status == JobStatus.ERROR]
    for job in jobs:
        if job.status == JobStatus.ERROR:
            print(f"[Error] {job.name}: {job.error}")
        elif job.result is not None:
            print(f"[OK] {job.name}: {job.result.success} saved, {job.result.failed} failed")
    logger.info(f"Processed {len(jobs)} file(s) in {elapsed:.1f}s, {len(errors)} error(s)")

    if args.summary:
        _write_summary(Path(args.output) / "summary.yaml", jobs, elapsed)
    _log_usage(classifier)
    return 1 if errors else 0


async def cmd_sync(args: argparse.Namespace, config: SplitterConfig) -> int:
    staging = LocalDirectoryStore(args.staging, create=False)
    destination = LocalDirectoryStore(args.output)
    result = await sync_to_destination(
        staging,
        Path(args.input).name,
        destination,
        config.staging_folder,
        config.manifest_name,
    )
    for error in result.errors:
        print(f"[Error] {error}")
    print(f"Synced {result.success} file(s), {result.failed} failed")
    return 0 if result.failed == 0 else 2


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="msi-splitter",
        description="Split scanned MSI station PDF bundles into filed sub-documents",
    )
    ap.add_argument("--config", "-c", help="YAML configuration file")
    ap.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: from config, INFO)",
    )
    sub = ap.add_subparsers(dest="command", required=True)

    def add_classifier_options(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--classification",
            help="Replay a stored classification JSON (or manifest) instead of calling Gemini",
        )
        p.add_argument("--max-pages", type=int, default=None, help="Classify only the first N pages")

    p = sub.add_parser("split", help="Split one PDF into the destination folder")
    p.add_argument("input", help="Source PDF")
    p.add_argument("--output", "-o", required=True, help="Destination root directory")
    add_classifier_options(p)

    p = sub.add_parser("preview", help="Show the planned folder tree without writing")
    p.add_argument("input", help="Source PDF")
    p.add_argument("--output", "-o", required=True, help="Destination root (checked for existing names)")
    p.add_argument("--json", action="store_true", help="Print the tree as JSON")
    add_classifier_options(p)

    p = sub.add_parser("queue", help="Process many PDFs through the job queue")
    p.add_argument("inputs", nargs="+", help="PDF files or directories")
    p.add_argument("--output", "-o", required=True, help="Destination root directory")
    p.add_argument("--summary", action="store_true", help="Write summary.yaml into the output root")
    add_classifier_options(p)

    p = sub.add_parser("sync", help="Copy a staged run into another destination")
    p.add_argument("input", help="Source PDF name of the staged run")
    p.add_argument("--staging", "-s", required=True, help="Root directory holding the staged run")
    p.add_argument("--output", "-o", required=True, help="Destination root directory")

    return ap


COMMANDS = {
    "split": cmd_split,
    "preview": cmd_preview,
    "queue": cmd_queue,
    "sync": cmd_sync,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
    except ConfigValidationError as e:
        setup_logger("INFO")
        logger.error(f"Invalid configuration: {e}")
        return 1
    setup_logger(config.log_level.upper())
    logger.debug(f"Configuration: {config.to_dict()}")

    try:
        return asyncio.run(COMMANDS[args.command](args, config))
    except SplitterError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

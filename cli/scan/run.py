"""
shelf scan command - Queue shelf photos and scan them one at a time.
"""

import glob
import json
import os
import sys
from pathlib import Path

from rich.console import Console
from rich.progress import Progress, BarColumn, TextColumn, TaskProgressColumn
from rich.table import Table

from infra.config import Config, LibraryConfigManager
from infra.pipeline.logger import PipelineLogger
from infra.storage import ScanLibrary
from pipeline.scan import ScanPipeline, ScanQueue, JobStatus, parse_grid

IMAGE_SUFFIXES = {'.jpg', '.jpeg', '.png', '.webp', '.heic', '.bmp', '.tif', '.tiff'}


def _expand_images(patterns):
    paths = []
    for pattern in patterns:
        matches = glob.glob(os.path.expanduser(pattern))
        if not matches:
            print(f"⚠️  No files match pattern: {pattern}")
        paths.extend(Path(p) for p in sorted(matches))

    for path in paths:
        if not path.is_file():
            print(f"✗ Not a file: {path}")
            sys.exit(1)
        if path.suffix.lower() not in IMAGE_SUFFIXES:
            print(f"✗ Not an image file: {path}")
            sys.exit(1)

    return paths


def _apply_overrides(config, args):
    updates = {}
    if args.grid:
        try:
            updates['sections_x'], updates['sections_y'] = parse_grid(args.grid)
        except ValueError as e:
            print(f"✗ {e}")
            sys.exit(1)
    if args.crop_sections:
        updates['crop_sections'] = True
    if args.cooldown is not None:
        if args.cooldown < 0:
            print("✗ --cooldown must be >= 0")
            sys.exit(1)
        updates['cooldown_seconds'] = args.cooldown

    if not updates:
        return config
    scan = config.scan.model_copy(update=updates)
    return config.model_copy(update={'scan': scan})


def _print_results(console, image_ref, result):
    table = Table(title=f"{Path(image_ref).name} ({len(result.books)} books)")
    table.add_column("#", justify="right")
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Confidence", style="cyan")

    for i, book in enumerate(result.books, 1):
        table.add_row(str(i), book.title, book.author, book.confidence.value)

    console.print(table)
    stats = result.stats
    console.print(
        f"   raw {stats.get('raw', 0)} → normalized {stats.get('normalized', 0)} → "
        f"unique {stats.get('unique', 0)} → final {stats.get('final', 0)}"
    )


def cmd_scan(args):
    storage_root = Config.book_storage_root
    config = _apply_overrides(LibraryConfigManager(storage_root).load(), args)
    image_paths = _expand_images(args.image_patterns)

    if not image_paths:
        print("✗ No images found")
        sys.exit(1)

    for provider_name in (config.defaults.detection_provider, config.defaults.validation_provider):
        if not config.provider_api_key(provider_name):
            print(f"✗ No API key for provider '{provider_name}'")
            print("  Set OPENROUTER_API_KEY or run 'shelf config init'")
            sys.exit(1)

    logger = PipelineLogger("shelf", "scan", log_dir=storage_root / "logs")

    try:
        pipeline = ScanPipeline.from_config(config, logger=logger)
    except ValueError as e:
        print(f"✗ {e}")
        sys.exit(1)

    console = Console()
    results = {}
    failures = {}

    progress = Progress(
        TextColumn("   {task.description}"),
        BarColumn(bar_width=30),
        TaskProgressColumn(),
        TextColumn("• {task.fields[status]}"),
        console=console,
        transient=True,
        disable=args.json,
    )
    tasks = {}

    def on_update(snapshot):
        for job in snapshot.jobs:
            task_id = tasks.get(job.id)
            if task_id is None:
                continue
            progress.update(
                task_id,
                completed=job.current,
                total=job.total or None,
                status=f"{job.status.value} {job.current}/{job.total}" if job.total else job.status.value,
            )

    def on_complete(job, result):
        results[job.id] = (job, result)
        task_id = tasks.get(job.id)
        if task_id is not None:
            progress.update(task_id, status=f"✓ {job.books_found} books")

    def on_error(job, message):
        failures[job.id] = job
        task_id = tasks.get(job.id)
        if task_id is not None:
            progress.update(task_id, status=f"✗ {message}")

    library = ScanLibrary(storage_root=storage_root)
    queue = ScanQueue(
        pipeline,
        library,
        logger=logger.child("queue"),
        cooldown_seconds=config.scan.cooldown_seconds,
        sections_x=config.scan.sections_x,
        sections_y=config.scan.sections_y,
        max_image_edge=config.scan.max_image_edge,
        on_update=on_update,
        on_error=on_error,
        on_complete=on_complete,
    )

    with progress:
        for path in image_paths:
            job = queue.submit(path)
            tasks[job.id] = progress.add_task(path.name, total=None, status=JobStatus.PENDING.value)
        queue.wait()

    logger.close()

    ordered = [results[j.id] for j in queue.history if j.id in results]

    if args.json:
        print(json.dumps([
            {'scan_id': job.id, 'image_ref': job.image_ref, **result.to_dict()}
            for job, result in ordered
        ], indent=2))
    else:
        for job, result in ordered:
            _print_results(console, job.image_ref, result)
            console.print(f"   ✓ Saved as {job.id}\n")

    for job in failures.values():
        print(f"✗ Failed: {job.image_ref} ({job.error})")

    if failures:
        sys.exit(1)

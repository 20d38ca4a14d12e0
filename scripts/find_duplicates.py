# Path: scripts/find_duplicates.py
# Purpose: CLI tool to scan a folder and report near-duplicate images.
# Layer: scripts.
# Details: Drives a DedupSession with a tick loop, showing tqdm progress and printing similar pairs.

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional

from tqdm import tqdm

from config import AppSettings
from core.pipeline import DedupSession, ItemAccepted, ScanTotal


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find near-duplicate images by perceptual hash")
    parser.add_argument("folder", type=Path, nargs="?", default=None, help="Folder to scan recursively")
    parser.add_argument("--threshold", type=int, default=None, help="Similarity threshold in differing bits")
    parser.add_argument("--workers", type=int, default=None, help="Hash worker threads (default: cpu_count - 1)")
    parser.add_argument("--algorithm", default=None, help="imagehash algorithm (phash, dhash, ...)")
    parser.add_argument("--backend", choices=["linear", "packed"], default=None, help="Hash comparison back-end")
    parser.add_argument("--tick", type=float, default=0.05, help="Seconds between channel drains")
    parser.add_argument("--json", type=Path, default=None, help="Write pairs and failures to this JSON file")
    parser.add_argument("--log-level", default=None, help="Logging level (default from settings)")
    return parser


def settings_from_args(args: argparse.Namespace) -> AppSettings:
    """Overlay CLI arguments on top of environment-derived settings."""

    settings = AppSettings.from_env()
    update: Dict[str, object] = {}
    if args.folder is not None:
        update["image_folder"] = args.folder
    if args.threshold is not None:
        update["similarity_threshold"] = args.threshold
    if args.log_level is not None:
        update["log_level"] = args.log_level.upper()
    if args.algorithm is not None:
        update["hasher"] = settings.hasher.model_copy(update={"algorithm": args.algorithm})
    pipeline_update: Dict[str, object] = {}
    if args.workers is not None:
        pipeline_update["workers"] = args.workers
    if args.backend is not None:
        pipeline_update["index_backend"] = args.backend
    if pipeline_update:
        update["pipeline"] = settings.pipeline.model_copy(update=pipeline_update)
    # Round-trip through validation so CLI values get the same checks as the environment.
    return AppSettings.model_validate({**settings.model_dump(), **update})


def main(argv: Optional[List[str]] = None) -> int:
    """Run one scan to completion and print the similar pairs it found."""

    args = build_parser().parse_args(argv)
    settings = settings_from_args(args)
    logging.basicConfig(level=settings.log_level, format="%(asctime)s - %(levelname)s - %(message)s")

    if settings.image_folder is None:
        print("No folder given (pass one or set IMGDEDUP_IMAGE_FOLDER).", file=sys.stderr)
        return 2

    paths: Dict[int, Path] = {}
    with DedupSession(settings) as session:
        session.start_scan(settings.image_folder)
        with tqdm(desc="Hashing images", unit="img") as bar:
            while not session.progress.finished:
                for event in session.poll():
                    if isinstance(event, ScanTotal):
                        bar.total = event.total
                        bar.refresh()
                    elif isinstance(event, ItemAccepted):
                        paths[event.id] = event.path
                bar.n = session.progress.processed
                bar.set_postfix_str(f"similar={len(session.pairs)}")
                time.sleep(args.tick)

        progress = session.progress
        pairs = session.pairs

    print(progress.summary())
    print(f"Similar: {len(pairs)}/{progress.max_pairs}")
    for pair in pairs:
        print(f"{pair.distance:4d}  {paths[pair.a]}  {paths[pair.b]}")
    if progress.failures:
        print(f"Errors ({len(progress.failures)})")
        for path, description in progress.failures:
            print(f"  {path} {description}")

    if args.json is not None:
        payload = {
            "summary": {"total": progress.total, "processed": progress.processed, "bytes_read": progress.bytes_read},
            "pairs": [
                {"a": str(paths[pair.a]), "b": str(paths[pair.b]), "distance": pair.distance} for pair in pairs
            ],
            "failures": [{"path": str(path), "error": description} for path, description in progress.failures],
        }
        args.json.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return 0


if __name__ == "__main__":
    sys.exit(main())

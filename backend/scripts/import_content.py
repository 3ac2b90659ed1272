#!/usr/bin/env python3
"""
Content Import Script

Loads a content dataset (lessons, grammar points, vocab, vocab packs,
sentences) from a JSON or YAML file into the database. Records are
inserted or replaced by id, so re-running an import is safe.

Setup:
    1. Ensure the database is reachable (POSTGRES_* or DATABASE_URL)
    2. Optionally put connection settings in backend/.env

Usage:
    python scripts/import_content.py content/dataset.json
    python scripts/import_content.py content/dataset.yaml --create-tables
    python scripts/import_content.py content/dataset.json --dry-run

Dataset format:
    {
      "lessons": [...],
      "grammar_points": [...],
      "vocab": [...],
      "vocab_packs": [...],
      "sentences": [...]
    }
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add backend to path for imports (must be before galking.* imports)
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / ".env")

import yaml  # noqa: E402
from pydantic import ValidationError  # noqa: E402

from galking.db.base import async_session_maker, init_db  # noqa: E402
from galking.models.content import ContentDataset  # noqa: E402
from galking.repositories import SqlContentRepository  # noqa: E402

logger = logging.getLogger("import_content")


def load_dataset(path: Path) -> ContentDataset:
    """Parse a JSON or YAML dataset file."""
    with open(path, encoding="utf-8") as f:
        if path.suffix.lower() in (".yaml", ".yml"):
            raw = yaml.safe_load(f)
        else:
            raw = json.load(f)
    return ContentDataset.model_validate(raw or {})


async def run_import(dataset: ContentDataset, create_tables: bool) -> dict[str, int]:
    if create_tables:
        await init_db()
    async with async_session_maker() as session:
        repo = SqlContentRepository(session)
        return await repo.import_dataset(dataset)


def main():
    parser = argparse.ArgumentParser(description="Import a content dataset")
    parser.add_argument("path", type=Path, help="JSON or YAML dataset file")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before importing",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate the file without writing to the database",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.path.exists():
        print(f"Error: {args.path} not found")
        sys.exit(1)

    try:
        dataset = load_dataset(args.path)
    except (ValidationError, json.JSONDecodeError, yaml.YAMLError) as e:
        print(f"Error: invalid dataset: {e}")
        sys.exit(1)

    print(f"Loaded {args.path}:")
    print(f"  Lessons:        {len(dataset.lessons)}")
    print(f"  Grammar points: {len(dataset.grammar_points)}")
    print(f"  Vocab:          {len(dataset.vocab)}")
    print(f"  Vocab packs:    {len(dataset.vocab_packs)}")
    print(f"  Sentences:      {len(dataset.sentences)}")

    if args.dry_run:
        print("Dry run: nothing written")
        return

    counts = asyncio.run(run_import(dataset, args.create_tables))
    print("Imported: " + ", ".join(f"{k}={v}" for k, v in counts.items()))


if __name__ == "__main__":
    main()

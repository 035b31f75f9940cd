"""Import sentences from a CSV export into the Wordie database.

The CSV needs a ``sentence_expression`` column (the Core 6k deck layout);
every other column is ignored.

Usage:
    python scripts/import_sentences.py sentences.csv
    python scripts/import_sentences.py sentences.csv --max 500 --algorithm anki
"""

import argparse
import csv
import json
import logging
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from wordie.services.review_scheduler import create_scheduler

logger = logging.getLogger(__name__)

SENTENCE_COLUMN = "sentence_expression"


def load_sentences(csv_path: Path, max_sentences: Optional[int] = None) -> list[str]:
    """Read sentence texts in file order, skipping blank rows."""
    sentences = []
    with open(csv_path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None or SENTENCE_COLUMN not in reader.fieldnames:
            raise ValueError(f"{csv_path} has no {SENTENCE_COLUMN!r} column")
        for row in reader:
            text = (row.get(SENTENCE_COLUMN) or "").strip()
            if not text:
                continue
            sentences.append(text)
            if max_sentences is not None and len(sentences) >= max_sentences:
                break
    return sentences


def run_import(
    db: Session,
    csv_path: Path,
    max_sentences: Optional[int] = None,
    algorithm: Optional[str] = None,
) -> dict:
    sentences = load_sentences(csv_path, max_sentences)
    scheduler = create_scheduler(db, algorithm=algorithm)
    sentence_ids = scheduler.add_material(sentences)
    stats = scheduler.stats()
    logger.info("Imported %d sentences from %s", len(sentence_ids), csv_path)
    return {
        "imported": len(sentence_ids),
        "words": stats["cards"] if stats["algorithm"] == "wordie" else None,
        "sentences": stats["sentences"],
    }


def main():
    parser = argparse.ArgumentParser(description="Import sentences from CSV")
    parser.add_argument("csv_path", type=Path)
    parser.add_argument("--max", type=int, default=None, dest="max_sentences")
    parser.add_argument("--algorithm", choices=["wordie", "anki"], default=None)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    from wordie.database import SessionLocal, initialize_db

    initialize_db()
    session = SessionLocal()
    try:
        result = run_import(session, args.csv_path, args.max_sentences, args.algorithm)
        print(json.dumps(result, indent=2))
    finally:
        session.close()


if __name__ == "__main__":
    import sys
    sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
    main()

#!/usr/bin/env python3
"""
Benchmark a scheduling variant by simulating a learner day by day.

Every day the simulated learner clears the whole queue, answering with a
weighted random difficulty, then the daily counters are reset and the clock
moves on by one day. Output is a CSV of ``day,learnt,reviewed`` rows so the
word-level and sentence-card variants can be compared on the same material.

Usage:
    python scripts/simulate_usage.py --days 100 --output out.csv
    python scripts/simulate_usage.py --algorithm anki --sentences sentences.csv --max-sentences 1000
"""

import argparse
import csv
import logging
import random
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Sequence, TextIO

from sqlalchemy.orm import sessionmaker

from wordie.database import make_engine, reinitialize_db
from wordie.services.review_scheduler import SessionState, create_scheduler
from wordie.services.srs import Difficulty

logger = logging.getLogger(__name__)

DIFFICULTY_WEIGHTS = {
    Difficulty.AGAIN: 5,
    Difficulty.HARD: 10,
    Difficulty.GOOD: 80,
    Difficulty.EASY: 5,
}

SAMPLE_SENTENCES = [
    "The cat sleeps.",
    "The dog sleeps.",
    "The cat eats fish.",
    "A dog eats meat.",
    "My friend reads a book.",
    "The book is on the table.",
    "We eat fish on Friday.",
    "My cat reads nothing.",
    "The table is old.",
    "Friday is a good day.",
    "A good friend is rare.",
    "The old dog sleeps on the table.",
]


@dataclass
class DayResult:
    day: int
    learnt: int
    reviewed: int


def random_difficulty(rng: random.Random) -> Difficulty:
    return rng.choices(list(DIFFICULTY_WEIGHTS), weights=list(DIFFICULTY_WEIGHTS.values()))[0]


def run_simulation(
    sentences: Sequence[str],
    days: int,
    algorithm: str = "wordie",
    daily_new_limit: int = 50,
    max_learning_cards: int = 50,
    seed: Optional[int] = None,
    start: Optional[datetime] = None,
    database_url: str = "sqlite://",
) -> list[DayResult]:
    rng = random.Random(seed)
    engine = make_engine(database_url)
    reinitialize_db(engine)
    db = sessionmaker(bind=engine)()

    start = start or datetime.now()
    state = SessionState(now=start)
    scheduler = create_scheduler(
        db,
        state=state,
        algorithm=algorithm,
        daily_new_limit=daily_new_limit,
        max_learning_cards=max_learning_cards,
    )

    results: list[DayResult] = []
    try:
        scheduler.add_material(sentences)
        for day in range(days):
            logger.info("Starting day %d", day)
            scheduler.advance_clock(start + timedelta(days=day))

            reviewed = 0
            while True:
                review = scheduler.get_next_review()
                if review is None:
                    break
                logger.debug("%s card: %s", review.kind, review.text)
                scheduler.submit_review(random_difficulty(rng))
                reviewed += 1

            results.append(DayResult(day=day, learnt=scheduler.cards_learned_today(), reviewed=reviewed))
            scheduler.reset_daily_counters()
    finally:
        db.close()
        engine.dispose()

    logger.info("Done simulating")
    return results


def write_csv(results: Sequence[DayResult], out: TextIO) -> None:
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(["day", "learnt", "reviewed"])
    for r in results:
        writer.writerow([r.day, r.learnt, r.reviewed])


def main():
    parser = argparse.ArgumentParser(description="Simulate daily reviews and report learnt/reviewed counts")
    parser.add_argument("--algorithm", choices=["wordie", "anki"], default="wordie")
    parser.add_argument("--days", type=int, default=100)
    parser.add_argument("--new-per-day", type=int, default=50)
    parser.add_argument("--max-learning", type=int, default=50)
    parser.add_argument("--sentences", type=Path, default=None, help="CSV with a sentence_expression column")
    parser.add_argument("--max-sentences", type=int, default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--output", type=Path, default=None, help="CSV output path (default: stdout)")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(message)s",
        stream=sys.stderr,
    )

    if args.sentences:
        from scripts.import_sentences import load_sentences
        sentences = load_sentences(args.sentences, args.max_sentences)
    else:
        sentences = SAMPLE_SENTENCES[: args.max_sentences] if args.max_sentences else SAMPLE_SENTENCES

    results = run_simulation(
        sentences,
        days=args.days,
        algorithm=args.algorithm,
        daily_new_limit=args.new_per_day,
        max_learning_cards=args.max_learning,
        seed=args.seed,
    )

    if args.output:
        with open(args.output, "w", newline="", encoding="utf-8") as f:
            write_csv(results, f)
        print(f"Wrote {len(results)} days to {args.output}", file=sys.stderr)
    else:
        write_csv(results, sys.stdout)


if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
    main()

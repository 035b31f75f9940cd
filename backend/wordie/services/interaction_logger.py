import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from wordie.config import settings


def _get_log_path(log_dir: Optional[Path] = None) -> Path:
    log_dir = log_dir or settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    return log_dir / f"interactions_{today}.jsonl"


def log_interaction(
    event: str,
    sentence_id: int | None = None,
    difficulty: str | None = None,
    kind: str | None = None,
    log_dir: Path | None = None,
    **extra,
) -> None:
    """Append one learner interaction as a JSON line."""
    entry = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "sentence_id": sentence_id,
        "difficulty": difficulty,
        "kind": kind,
        **extra,
    }
    entry = {k: v for k, v in entry.items() if v is not None}

    log_path = _get_log_path(log_dir)
    with open(log_path, "a", encoding="utf-8") as f:
        f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")

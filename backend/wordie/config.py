from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    database_url: str = f"sqlite:///{BASE_DIR / 'wordie.db'}"
    log_dir: Path = BASE_DIR / "data" / "logs"

    algorithm: Literal["wordie", "anki"] = "wordie"
    new_cards_per_day: int = 50
    max_learning_cards: int = 50
    # i+N above this is not shown as a card; suggestions are offered instead
    max_new_words_per_sentence: int = 1
    max_suggested_sentences: int = 5

    model_config = {"env_file": [BASE_DIR / ".env", BASE_DIR.parent / ".env"], "extra": "ignore"}


settings = Settings()

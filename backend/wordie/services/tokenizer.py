"""Default tokenizer and sentence splitter.

Japanese text goes through Janome's morphological analyser and each word is
keyed by its dictionary form, so 食べた and 食べます share one card. Text
without Japanese script falls back to regex word runs. Either way lemmas are
NFKC-normalized and casefolded. The scheduling engine takes the tokenizer as
a parameter, so another analyser can be plugged in.
"""

import re
import unicodedata
from dataclasses import dataclass
from typing import Callable, Sequence

from janome.tokenizer import Tokenizer as JanomeTokenizer

WORD_PATTERN = re.compile(r"\w+(?:['’\-]\w+)*")

# Hiragana, katakana (full and half width) and CJK ideographs
JAPANESE_PATTERN = re.compile(r"[\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uff66-\uff9f]")

# Janome part-of-speech for punctuation, symbols and whitespace
SYMBOL_POS = "記号"

_janome = None

SENTENCE_TERMINATORS = {"。", "\n"}
OPEN_QUOTES = {"「"}
CLOSE_QUOTES = {"」"}
AMBIGUOUS_QUOTES = {"'", '"'}


@dataclass(frozen=True)
class Token:
    lemma: str
    is_word: bool


Tokenizer = Callable[[str], Sequence[Token]]


def normalize_word(text: str) -> str:
    """NFKC-normalize and casefold so that 'Cat' and 'cat' share one card."""
    return unicodedata.normalize("NFKC", text).casefold()


def _get_janome() -> JanomeTokenizer:
    """Lazy-load the Janome tokenizer singleton (loading the dictionary is slow)."""
    global _janome
    if _janome is None:
        _janome = JanomeTokenizer()
    return _janome


def is_japanese(text: str) -> bool:
    return JAPANESE_PATTERN.search(text) is not None


def tokenize_japanese(text: str) -> list[Token]:
    """Morphological split; words carry their dictionary form as lemma."""
    tokens: list[Token] = []
    for morpheme in _get_janome().tokenize(text):
        surface = morpheme.surface
        if morpheme.part_of_speech.split(",")[0] == SYMBOL_POS or not surface.strip():
            tokens.append(Token(lemma=surface, is_word=False))
            continue
        base = morpheme.base_form
        # Unknown words have no dictionary form
        lemma = base if base and base != "*" else surface
        tokens.append(Token(lemma=normalize_word(lemma), is_word=True))
    return tokens


def tokenize(text: str) -> list[Token]:
    """Split text into word and non-word tokens, in order."""
    if is_japanese(text):
        return tokenize_japanese(text)
    return tokenize_words(text)


def tokenize_words(text: str) -> list[Token]:
    """Regex word runs for space-separated languages."""
    tokens: list[Token] = []
    pos = 0
    for match in WORD_PATTERN.finditer(text):
        if match.start() > pos:
            tokens.append(Token(lemma=text[pos:match.start()], is_word=False))
        tokens.append(Token(lemma=normalize_word(match.group()), is_word=True))
        pos = match.end()
    if pos < len(text):
        tokens.append(Token(lemma=text[pos:], is_word=False))
    return tokens


def word_lemmas(text: str, tokenizer: Tokenizer = tokenize) -> list[str]:
    """Distinct word lemmas of a sentence in first-occurrence order."""
    seen: dict[str, None] = {}
    for token in tokenizer(text):
        if token.is_word and token.lemma:
            seen.setdefault(token.lemma, None)
    return list(seen)


def split_sentences(text: str) -> list[str]:
    """Split free text into sentences.

    Breaks on 。 and newlines, but not inside 「」 or straight quotes.
    Straight quotes cannot nest: one seen inside a quote closes it.
    """
    result = []
    depth = 0
    current: list[str] = []
    for char in text:
        current.append(char)
        if char in OPEN_QUOTES:
            depth += 1
        elif char in CLOSE_QUOTES:
            depth -= 1
        elif char in AMBIGUOUS_QUOTES:
            depth = depth - 1 if depth > 0 else depth + 1
        elif depth == 0 and char in SENTENCE_TERMINATORS:
            sentence = "".join(current).strip()
            if sentence:
                result.append(sentence)
            current = []
    tail = "".join(current).strip()
    if tail:
        result.append(tail)
    return result

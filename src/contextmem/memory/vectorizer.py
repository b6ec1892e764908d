"""Hand-built text feature vectors and cosine similarity.

This is not a semantic embedding. Each text is reduced to eight small,
deterministic features:

    0  character length / 1000
    1  whitespace-delimited word count / 100
    2  share of words from COMMON_WORDS, over (word count + 1)
    3  1.0 if any decimal digit is present, else 0.0
    4  count of SPECIAL_CHARS over (character length + 1)
    5  line count / 10
    6  uppercase characters over (character length + 1)
    7  sha256(content) mod 1000 / 1000

Feature 7 is a cheap discriminator between texts whose other features
coincide. It carries no meaning and must not be read as a similarity signal.
"""

from __future__ import annotations

import hashlib
import math
import re
from collections.abc import Sequence

VECTOR_SIZE = 8

# Portuguese function words; the source text is expected to be pt-BR.
COMMON_WORDS = frozenset(
    [
        "o", "a", "de", "e", "do", "da", "em", "um", "uma", "para", "com", "não",
        "que", "é", "se", "mais", "mas", "como", "sobre", "por", "tem", "ser",
        "foi", "são", "pode", "pela", "pelos", "muito", "já", "ou", "quando",
        "onde", "porque", "então", "assim", "também", "ainda", "depois", "antes",
        "agora", "hoje", "ontem", "amanhã",
    ]
)  # fmt: skip

SPECIAL_CHARS = frozenset("!@#$%^&*()_+-=[]{}|;':\",./<>?")

_LINE_BREAK = re.compile(r"\r\n|[\n\r\v\f\x1c\x1d\x1e\x85\u2028\u2029]")


def content_hash(text: str) -> int:
    """Stable integer digest of the text (first 64 bits of sha256)."""
    return int(hashlib.sha256(text.encode("utf-8")).hexdigest()[:16], 16)


def vectorize(text: str) -> tuple[float, ...]:
    """Reduce text to its fixed-length feature vector. Pure and deterministic."""
    length = len(text)
    words = text.lower().split()
    word_count = len(words)

    common = sum(1 for w in words if w in COMMON_WORDS)
    has_digit = any(ch.isdecimal() for ch in text)
    specials = sum(1 for ch in text if ch in SPECIAL_CHARS)
    lines = len(_LINE_BREAK.split(text))
    upper = sum(1 for ch in text if ch.isupper())

    return (
        length / 1000.0,
        word_count / 100.0,
        common / (word_count + 1),
        1.0 if has_digit else 0.0,
        specials / (length + 1),
        lines / 10.0,
        upper / (length + 1),
        (content_hash(text) % 1000) / 1000.0,
    )


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between two vectors; 0.0 on size mismatch or zero norm."""
    if len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)

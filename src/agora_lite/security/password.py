"""Password strength estimation.

The estimate is information-theoretic: the characters used tell us which
classes an attacker's brute-force alphabet has to cover, giving an
alphabet size A, and a password of length L drawn from it carries

    H = L * log2(A)   bits.

Real passwords are not uniform draws, so each weak pattern that is
detected (runs of one character, "abc"/"321" style sequences, common
dictionary words, keyboard walks) subtracts a fixed number of bits.
The result is floored at 0 and bucketed into five levels. Passwords
shorter than MIN_LENGTH_FOR_RATING are Weak whatever their bits.

Nothing here raises for string input: the empty string is simply
Weak with 0 bits.
"""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from functools import total_ordering

LOWERCASE_POOL = 26
UPPERCASE_POOL = 26
DIGIT_POOL = 10
SYMBOL_POOL = 32
NON_ASCII_POOL = 100

MIN_RUN = 3           # "aaa", "abc", "321"
MIN_KEYBOARD_WALK = 4  # "qwer", "asdf"
MIN_LENGTH_FOR_RATING = 6  # shorter is Weak whatever its bits
RECOMMENDED_LENGTH = 8

REPEAT_PENALTY = 10.0
SEQUENCE_PENALTY = 10.0
DICTIONARY_PENALTY = 15.0
KEYBOARD_PENALTY = 15.0

COMMON_WORDS = (
    "password", "passwd", "admin", "letmein", "welcome", "monkey",
    "dragon", "iloveyou", "sunshine", "princess", "football", "master",
    "shadow", "login", "trustno1", "minecraft",
)

KEYBOARD_ROWS = (
    "qwertyuiop",
    "asdfghjkl",
    "zxcvbnm",
    "!@#$%^&*()",
    "1qaz2wsx3edc",
)


@total_ordering
class StrengthLevel(Enum):
    """Ordered strength buckets; each value is (label, rank)."""

    WEAK = ("Weak", 1)
    FAIR = ("Fair", 2)
    GOOD = ("Good", 3)
    STRONG = ("Strong", 4)
    EXCELLENT = ("Excellent", 5)

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def rank(self) -> int:
        return self.value[1]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, StrengthLevel):
            return NotImplemented
        return self.rank < other.rank


# (upper bound in bits, level); first bound the entropy is below wins
LEVEL_THRESHOLDS = (
    (20.0, StrengthLevel.WEAK),
    (40.0, StrengthLevel.FAIR),
    (60.0, StrengthLevel.GOOD),
    (80.0, StrengthLevel.STRONG),
)

_LEVEL_SUMMARY = {
    StrengthLevel.WEAK: "Password is weak; use a longer, more varied password.",
    StrengthLevel.FAIR: "Password is fair; more length would help.",
    StrengthLevel.GOOD: "Password strength is acceptable.",
    StrengthLevel.STRONG: "Password is strong.",
    StrengthLevel.EXCELLENT: "Password strength is excellent!",
}


@dataclass(frozen=True, slots=True)
class PasswordStrength:
    """Result of estimate_password_strength()."""
    entropy_bits: float             # L * log2(A) minus pattern penalties
    level: StrengthLevel
    feedback: tuple[str, ...]
    character_entropy: float = 0.0  # Shannon bits/char of the actual string

    @property
    def percentage(self) -> int:
        """Entropy mapped onto 0..100 for progress-bar style display."""
        return int(min(100.0, self.entropy_bits))


def shannon_entropy(text: str) -> float:
    """Bits per character of the empirical character distribution.

    H = -sum(p_i * log2(p_i)). "aaaa" is 0, four distinct chars is 2.
    """
    if not text:
        return 0.0
    n = len(text)
    return -sum((c / n) * math.log2(c / n) for c in Counter(text).values())


def total_entropy(text: str) -> float:
    """Shannon bits per character times length: information in the string."""
    return shannon_entropy(text) * len(text)


def normalized_entropy(text: str) -> float:
    """Shannon entropy divided by its maximum log2(len); in [0, 1]."""
    if len(text) < 2:
        return 0.0
    return shannon_entropy(text) / math.log2(len(text))


def _is_symbol(ch: str) -> bool:
    return ch.isascii() and not ch.isalnum()


def _char_classes(password: str) -> dict[str, bool]:
    return {
        "lower": any("a" <= ch <= "z" for ch in password),
        "upper": any("A" <= ch <= "Z" for ch in password),
        "digit": any("0" <= ch <= "9" for ch in password),
        "symbol": any(_is_symbol(ch) for ch in password),
        "non_ascii": any(not ch.isascii() for ch in password),
    }


def alphabet_size(password: str) -> int:
    """Size of the brute-force pool implied by the classes present."""
    classes = _char_classes(password)
    size = 0
    if classes["lower"]:
        size += LOWERCASE_POOL
    if classes["upper"]:
        size += UPPERCASE_POOL
    if classes["digit"]:
        size += DIGIT_POOL
    if classes["symbol"]:
        size += SYMBOL_POOL
    if classes["non_ascii"]:
        size += NON_ASCII_POOL
    return max(size, 1)


def _longest_repeat(password: str) -> int:
    longest = run = 1 if password else 0
    for prev, cur in zip(password, password[1:]):
        run = run + 1 if cur == prev else 1
        longest = max(longest, run)
    return longest


def _has_sequence(password: str, min_length: int = MIN_RUN) -> bool:
    """True for an ascending or descending code-point run ("abc", "321")."""
    lowered = password.lower()
    up = down = 1
    for prev, cur in zip(lowered, lowered[1:]):
        step = ord(cur) - ord(prev)
        up = up + 1 if step == 1 else 1
        down = down + 1 if step == -1 else 1
        if up >= min_length or down >= min_length:
            return True
    return False


def _find_common_word(password: str) -> str | None:
    lowered = password.lower()
    for word in COMMON_WORDS:
        if word in lowered:
            return word
    return None


def _has_keyboard_walk(password: str, min_length: int = MIN_KEYBOARD_WALK) -> bool:
    lowered = password.lower()
    for row in KEYBOARD_ROWS:
        for line in (row, row[::-1]):
            for start in range(len(line) - min_length + 1):
                if line[start:start + min_length] in lowered:
                    return True
    return False


def _level_for(bits: float, length: int) -> StrengthLevel:
    if length < MIN_LENGTH_FOR_RATING:
        return StrengthLevel.WEAK
    for bound, level in LEVEL_THRESHOLDS:
        if bits < bound:
            return level
    return StrengthLevel.EXCELLENT


def estimate_password_strength(password: str) -> PasswordStrength:
    """Score *password* and explain what would make it stronger.

    Deterministic: the same input always yields the same result.
    """
    if not password:
        return PasswordStrength(
            entropy_bits=0.0,
            level=StrengthLevel.WEAK,
            feedback=("Password is empty.",),
        )

    bits = len(password) * math.log2(alphabet_size(password))
    feedback: list[str] = []

    if len(password) < RECOMMENDED_LENGTH:
        feedback.append(f"Use at least {RECOMMENDED_LENGTH} characters.")
    classes = _char_classes(password)
    if not classes["lower"]:
        feedback.append("Add lowercase letters.")
    if not classes["upper"]:
        feedback.append("Add uppercase letters.")
    if not classes["digit"]:
        feedback.append("Add digits.")
    if not classes["symbol"]:
        feedback.append("Add symbols such as !, # or %.")

    if _longest_repeat(password) >= MIN_RUN:
        bits -= REPEAT_PENALTY
        feedback.append("Avoid repeating the same character.")
    if _has_sequence(password):
        bits -= SEQUENCE_PENALTY
        feedback.append("Avoid sequences like 'abc' or '321'.")
    word = _find_common_word(password)
    if word is not None:
        bits -= DICTIONARY_PENALTY
        feedback.append(f"Avoid common words like '{word}'.")
    if _has_keyboard_walk(password):
        bits -= KEYBOARD_PENALTY
        feedback.append("Avoid keyboard patterns like 'qwerty'.")

    bits = max(0.0, bits)
    level = _level_for(bits, len(password))
    if not feedback:
        feedback.append(_LEVEL_SUMMARY[level])

    return PasswordStrength(
        entropy_bits=bits,
        level=level,
        feedback=tuple(feedback),
        character_entropy=shannon_entropy(password),
    )

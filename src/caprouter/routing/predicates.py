"""Pluggable match predicates for routing rules.

A predicate answers one yes/no question about the request text. The same
Matcher serves every domain because rules only differ in which predicates
they hold:

- KeywordPredicate: substring set, case-insensitive, holds if any keyword occurs
- RegexPredicate: regular expression search, case-insensitive
- FileMentionPredicate: structural, counts distinct file names mentioned
- WordCountPredicate: structural, counts words

Every predicate can be negated.

Usage:
    predicate = build_predicate(KeywordsPredicateConfig(keywords=["flaky"]))
    predicate.evaluate("The login test is flaky")  # True
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Protocol

from caprouter.config.models import (
    FileMentionsPredicateConfig,
    KeywordsPredicateConfig,
    PredicateConfig,
    RegexPredicateConfig,
    WordCountPredicateConfig,
)

# Extensions recognised as file mentions. "console.log" or "e.g." are not files.
FILE_EXTENSIONS = frozenset(
    {
        "c", "cc", "cfg", "cpp", "cs", "css", "go", "h", "hpp", "html", "ini",
        "java", "js", "json", "jsx", "kt", "lock", "md", "php", "py", "rb", "rs",
        "scss", "sh", "sql", "swift", "toml", "ts", "tsx", "txt", "vue", "xml",
        "yaml", "yml",
    }
)

_FILE_TOKEN = re.compile(r"(?<![\w/.-])([\w./-]*[\w-]\.([A-Za-z0-9]{1,5}))\b")
_WORD = re.compile(r"\w+")


class Predicate(Protocol):
    """A single yes/no check over request text."""

    def evaluate(self, text: str) -> bool:
        """Return True when the predicate holds for ``text``."""
        ...

    def describe(self) -> str:
        """Short human-readable description, used as match evidence."""
        ...


def count_file_mentions(text: str) -> int:
    """Count distinct file-like tokens with a known extension."""
    files = {
        match.group(1).lower()
        for match in _FILE_TOKEN.finditer(text)
        if match.group(2).lower() in FILE_EXTENSIONS
    }
    return len(files)


def count_words(text: str) -> int:
    """Count word tokens in ``text``."""
    return len(_WORD.findall(text))


def _in_range(value: int, min_count: int, max_count: int | None) -> bool:
    if value < min_count:
        return False
    return max_count is None or value <= max_count


@dataclass(frozen=True, slots=True)
class KeywordPredicate:
    """Holds when any keyword is a substring of the lower-cased text."""

    keywords: tuple[str, ...]
    negate: bool = False

    def evaluate(self, text: str) -> bool:
        lowered = text.lower()
        found = any(keyword in lowered for keyword in self.keywords)
        return found != self.negate

    def describe(self) -> str:
        prefix = "none of" if self.negate else "any of"
        return f"{prefix} keywords {list(self.keywords)}"


@dataclass(frozen=True, slots=True)
class RegexPredicate:
    """Holds when the compiled pattern is found anywhere in the text."""

    pattern: re.Pattern[str]
    negate: bool = False

    def evaluate(self, text: str) -> bool:
        return (self.pattern.search(text) is not None) != self.negate

    def describe(self) -> str:
        prefix = "not /" if self.negate else "/"
        return f"{prefix}{self.pattern.pattern}/"


@dataclass(frozen=True, slots=True)
class FileMentionPredicate:
    """Holds when the number of distinct files mentioned lies in range."""

    min_count: int = 0
    max_count: int | None = None
    negate: bool = False

    def evaluate(self, text: str) -> bool:
        return _in_range(count_file_mentions(text), self.min_count, self.max_count) != self.negate

    def describe(self) -> str:
        upper = "inf" if self.max_count is None else str(self.max_count)
        prefix = "not " if self.negate else ""
        return f"{prefix}mentions {self.min_count}..{upper} files"


@dataclass(frozen=True, slots=True)
class WordCountPredicate:
    """Holds when the word count lies in range."""

    min_count: int = 0
    max_count: int | None = None
    negate: bool = False

    def evaluate(self, text: str) -> bool:
        return _in_range(count_words(text), self.min_count, self.max_count) != self.negate

    def describe(self) -> str:
        upper = "inf" if self.max_count is None else str(self.max_count)
        prefix = "not " if self.negate else ""
        return f"{prefix}{self.min_count}..{upper} words"


def build_predicate(config: PredicateConfig) -> Predicate:
    """Build a predicate from its configuration.

    Args:
        config: One of the predicate configuration models.

    Returns:
        The matching Predicate implementation.

    Raises:
        re.error: If a regex pattern does not compile. The registry converts
            this into a ConfigError.
    """
    match config:
        case KeywordsPredicateConfig():
            keywords = tuple(keyword.lower() for keyword in config.keywords)
            return KeywordPredicate(keywords=keywords, negate=config.negate)
        case RegexPredicateConfig():
            return RegexPredicate(
                pattern=re.compile(config.pattern, re.IGNORECASE),
                negate=config.negate,
            )
        case FileMentionsPredicateConfig():
            return FileMentionPredicate(
                min_count=config.min_count,
                max_count=config.max_count,
                negate=config.negate,
            )
        case WordCountPredicateConfig():
            return WordCountPredicate(
                min_count=config.min_count,
                max_count=config.max_count,
                negate=config.negate,
            )
    msg = f"Unsupported predicate config: {type(config).__name__}"
    raise TypeError(msg)

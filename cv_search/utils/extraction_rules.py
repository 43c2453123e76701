"""Declarative first-match-wins regex rules used by the query extractors."""
import re
from typing import Callable, Iterable, NamedTuple, Optional

# Phrase captured up to "?", ".", "," or end of the query
TRAILING_PHRASE = r"([a-z\s]+?)(?:\?|\.|,|$)"


class ExtractionRule(NamedTuple):
    """One ordered extraction rule: where to look, what to keep, how long it may be."""

    name: str
    pattern: "re.Pattern[str]"
    group: int = 1
    min_length: int = 3
    max_length: int = 40


def rule(name: str, pattern: str, min_length: int = 3, max_length: int = 40, group: int = 1) -> ExtractionRule:
    return ExtractionRule(
        name=name,
        pattern=re.compile(pattern, re.IGNORECASE),
        group=group,
        min_length=min_length,
        max_length=max_length,
    )


def first_capture(
    text: str,
    rules: Iterable[ExtractionRule],
    reject: Optional[Callable[[str], bool]] = None,
) -> Optional[tuple]:
    """
    Apply rules in order and return (rule name, capture) for the first acceptable hit.

    Every occurrence of a rule is tried before moving on to the next rule. A
    capture is acceptable when its trimmed length is within the rule bounds
    and ``reject`` (if given) does not veto it.
    """
    for extraction_rule in rules:
        for match in extraction_rule.pattern.finditer(text):
            captured = (match.group(extraction_rule.group) or "").strip()
            if not extraction_rule.min_length <= len(captured) <= extraction_rule.max_length:
                continue
            if reject is not None and reject(captured):
                continue
            return extraction_rule.name, captured
    return None

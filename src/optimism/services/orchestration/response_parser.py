"""
Response Parsers

Providers do not reliably return clean JSON. Replies arrive as bare
JSON, JSON wrapped in prose, JSON inside code fences, or markdown-ish
"**Label:** value" text. Each strategy here is a small parser that
returns a tagged ParseOutcome; a ParserChain tries them in fixed order
and stops at the first success.

Order:
1. direct_json   - whole reply is a JSON object
2. brace_span    - first balanced top-level {...} span
3. fenced_json   - code fences stripped, then brace span
4. labeled_text  - "Label: value" lines, at least 3 known fields

The labeled-text parser may back-fill missing fields, but only from
values the caller supplies (local classifier output). Parsers never
invent content.
"""

import json
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Optional

from optimism.config.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ParseOutcome:
    """
    Tagged result of one parse strategy.

    Attributes:
        ok: Whether the strategy recovered a field mapping
        strategy: Name of the strategy that produced this outcome
        data: Recovered fields (empty on failure)
        error: Reason for failure
    """

    ok: bool
    strategy: str
    data: dict = field(default_factory=dict)
    error: str = ""

    @classmethod
    def success(cls, strategy: str, data: dict) -> "ParseOutcome":
        return cls(ok=True, strategy=strategy, data=data)

    @classmethod
    def failure(cls, strategy: str, error: str) -> "ParseOutcome":
        return cls(ok=False, strategy=strategy, error=error)


class ResponseParser(ABC):
    """One parse strategy."""

    name: str = ""

    @abstractmethod
    def parse(self, content: str) -> ParseOutcome:
        """Try to recover a field mapping from a provider reply."""


def find_brace_span(text: str) -> Optional[str]:
    """
    First balanced top-level {...} span in text.

    Braces inside JSON string literals are ignored.
    """
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False

    for index in range(start, len(text)):
        char = text[index]

        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]

    return None


def _load_object(text: str, strategy: str) -> ParseOutcome:
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        return ParseOutcome.failure(strategy, f"invalid JSON: {e.msg}")

    if not isinstance(value, dict):
        return ParseOutcome.failure(strategy, f"expected object, got {type(value).__name__}")

    return ParseOutcome.success(strategy, value)


class DirectJsonParser(ResponseParser):
    name = "direct_json"

    def parse(self, content: str) -> ParseOutcome:
        return _load_object(content.strip(), self.name)


class BraceSpanParser(ResponseParser):
    """JSON object embedded in surrounding prose."""

    name = "brace_span"

    def parse(self, content: str) -> ParseOutcome:
        span = find_brace_span(content)
        if span is None:
            return ParseOutcome.failure(self.name, "no balanced brace span")
        return _load_object(span, self.name)


class FencedJsonParser(ResponseParser):
    """JSON inside ```json fences, possibly with stray fence markers."""

    name = "fenced_json"

    FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)

    def parse(self, content: str) -> ParseOutcome:
        cleaned = self.FENCE_PATTERN.sub("", content).strip()
        span = find_brace_span(cleaned)
        if span is None:
            return ParseOutcome.failure(self.name, "no balanced brace span after removing fences")
        return _load_object(span, self.name)


class LabeledTextParser(ResponseParser):
    """
    Free-text replies formatted as labeled lines.

    Recognizes "**Label:** value", "Label: value" and bulleted
    variants. A value continues over following lines until the next
    known label. Unknown labels are treated as ordinary text.
    """

    name = "labeled_text"

    LABEL_LINE = re.compile(
        r"^\s*(?:[-*•]\s+|\d+[.)]\s+)?\**\s*([A-Za-z][A-Za-z_ ]{0,40}?)\s*\**\s*:\s*\**\s*(.*)$"
    )

    def __init__(
        self,
        aliases: Mapping[str, str],
        min_fields: int = 3,
        backfill: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Args:
            aliases: Normalized label (lowercase letters only) to field name
            min_fields: Fields that must be found for the parse to count
            backfill: Values for fields the reply left out, applied only
                after min_fields is met
        """
        self._aliases = dict(aliases)
        self._min_fields = min_fields
        self._backfill = dict(backfill or {})

    @staticmethod
    def normalize_label(label: str) -> str:
        return re.sub(r"[^a-z]", "", label.lower())

    def parse(self, content: str) -> ParseOutcome:
        found: dict[str, list[str]] = {}
        current: Optional[str] = None

        for line in content.splitlines():
            match = self.LABEL_LINE.match(line)
            if match:
                field_name = self._aliases.get(self.normalize_label(match.group(1)))
                if field_name is not None:
                    current = field_name if field_name not in found else None
                    if current is not None:
                        found[current] = [match.group(2)]
                    continue

            if current is not None and line.strip():
                found[current].append(line.strip())

        data = {}
        for field_name, parts in found.items():
            value = " ".join(part.strip() for part in parts).strip().strip("*").strip()
            if value:
                data[field_name] = value

        if len(data) < self._min_fields:
            return ParseOutcome.failure(
                self.name,
                f"found {len(data)} labeled fields, need {self._min_fields}",
            )

        for field_name, value in self._backfill.items():
            if not data.get(field_name) and value:
                data[field_name] = value

        return ParseOutcome.success(self.name, data)


class ParserChain:
    """
    Chain of responsibility over parse strategies.

    Usage:
        chain = ParserChain([DirectJsonParser(), BraceSpanParser()])
        outcome = chain.parse(content)
        if outcome.ok:
            ...
    """

    def __init__(self, parsers: Sequence[ResponseParser]) -> None:
        self._parsers = list(parsers)

    @property
    def strategies(self) -> list[str]:
        return [parser.name for parser in self._parsers]

    def parse(self, content: str) -> ParseOutcome:
        """First successful outcome, or a failure listing every reason."""
        errors = []
        for parser in self._parsers:
            outcome = parser.parse(content)
            if outcome.ok:
                return outcome
            errors.append(f"{parser.name}: {outcome.error}")

        return ParseOutcome.failure("none", "; ".join(errors))


# Phase-1 labels
ANALYSIS_LABELS: dict[str, str] = {
    "triggerevent": "trigger_event",
    "trigger": "trigger_event",
    "likelyinterpretation": "likely_interpretation",
    "interpretation": "likely_interpretation",
    "underlyingfear": "underlying_fear",
    "fear": "underlying_fear",
    "emotionalneed": "emotional_need",
    "need": "emotional_need",
}

# Phase-2 labels
REPLY_LABELS: dict[str, str] = {
    "acknowledgment": "acknowledgment",
    "acknowledgement": "acknowledgment",
    "thoughtpattern": "thoughtPattern",
    "distortiontype": "thoughtPattern",
    "patternnote": "patternNote",
    "distortionexplanation": "patternNote",
    "reframe": "reframe",
    "question": "question",
    "probingquestion": "question",
    "encouragement": "encouragement",
    "iceberglayer": "icebergLayer",
    "layerinsight": "layerInsight",
    "insight": "layerInsight",
}


def _json_parsers() -> list[ResponseParser]:
    return [DirectJsonParser(), BraceSpanParser(), FencedJsonParser()]


def analysis_parser_chain() -> ParserChain:
    return ParserChain([*_json_parsers(), LabeledTextParser(ANALYSIS_LABELS)])


def reply_parser_chain(backfill: Optional[Mapping[str, str]] = None) -> ParserChain:
    return ParserChain([*_json_parsers(), LabeledTextParser(REPLY_LABELS, backfill=backfill)])


def parse_analysis(content: str) -> ParseOutcome:
    """Parse a phase-1 reply."""
    outcome = analysis_parser_chain().parse(content)
    if not outcome.ok:
        logger.warning("Analysis parse failed", reason=outcome.error)
    return outcome


def parse_reply(content: str, backfill: Optional[Mapping[str, str]] = None) -> ParseOutcome:
    """Parse a phase-2 reply, back-filling labeled text from local signals."""
    outcome = reply_parser_chain(backfill).parse(content)
    if not outcome.ok:
        logger.warning("Reply parse failed", reason=outcome.error)
    return outcome


def text_field(data: Mapping, *names: str) -> Optional[str]:
    """
    First non-empty value among names, as stripped text.

    JSON replies sometimes carry numbers, lists or null where text is
    expected; lists are joined and null is treated as missing.
    """
    for name in names:
        value = data.get(name)
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            value = " ".join(str(item) for item in value if item is not None)
        text = str(value).strip()
        if text:
            return text
    return None

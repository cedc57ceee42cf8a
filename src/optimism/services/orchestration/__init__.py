"""Pipeline orchestration services."""

from optimism.services.orchestration.reframe_pipeline import (
    PipelineResult,
    ReframePipeline,
    assistant_text,
    local_acknowledgment,
)
from optimism.services.orchestration.response_parser import (
    BraceSpanParser,
    DirectJsonParser,
    FencedJsonParser,
    LabeledTextParser,
    ParseOutcome,
    ParserChain,
    ResponseParser,
    find_brace_span,
    parse_analysis,
    parse_reply,
    text_field,
)

__all__ = [
    "PipelineResult",
    "ReframePipeline",
    "assistant_text",
    "local_acknowledgment",
    "BraceSpanParser",
    "DirectJsonParser",
    "FencedJsonParser",
    "LabeledTextParser",
    "ParseOutcome",
    "ParserChain",
    "ResponseParser",
    "find_brace_span",
    "parse_analysis",
    "parse_reply",
    "text_field",
]

"""
Progress Analyzer

Estimates how far a conversation has moved toward a core insight from
the depth, vulnerability and insight language in the user's turns.
"""

from collections.abc import Sequence

from optimism.domain.enums import IcebergLayer
from optimism.domain.models import ChatTurn, ProgressSnapshot, normalize_text


class ProgressAnalyzer:
    """
    Keyword-driven progress estimate.

    score = 5 base
          + min(3 x user turns, 15)
          + min(3 x depth hits, 25)
          + min(5 x vulnerability hits, 25)
          + min(7 x insight hits, 30)
    capped at 95. Layer progress is spread from the score so the
    surface fills first and the core belief last.
    """

    DEPTH_KEYWORDS: tuple[str, ...] = (
        "feel", "feeling", "hurt", "pain", "scared", "afraid", "deep", "inside",
        "core", "belief", "always", "never", "childhood", "parents", "trauma", "wound",
    )
    VULNERABILITY_KEYWORDS: tuple[str, ...] = (
        "ashamed", "embarrassed", "secret", "never told", "vulnerable",
        "hard to admit", "weakness", "failure",
    )
    INSIGHT_KEYWORDS: tuple[str, ...] = (
        "realize", "understand", "see now", "makes sense", "pattern", "connection",
        "aha", "never thought of it that way",
    )

    BASE_SCORE = 5
    MAX_SCORE = 95

    # (offset, multiplier) per layer
    LAYER_CURVES: dict[IcebergLayer, tuple[int, float]] = {
        IcebergLayer.SURFACE: (0, 1.5),
        IcebergLayer.TRIGGER: (10, 1.3),
        IcebergLayer.EMOTION: (25, 1.2),
        IcebergLayer.CORE_BELIEF: (45, 1.5),
    }

    def analyze(self, history: Sequence[ChatTurn], message: str) -> ProgressSnapshot:
        """
        Estimate progress including the message being answered.

        Args:
            history: Prior turns
            message: Current user message

        Returns:
            ProgressSnapshot with overall and per-layer percentages
        """
        user_texts = [normalize_text(t.content) for t in history if t.role == "user"]
        user_texts.append(normalize_text(message))

        depth = vulnerability = insight = 0
        for text in user_texts:
            depth += 3 * sum(1 for kw in self.DEPTH_KEYWORDS if kw in text)
            vulnerability += 5 * sum(1 for kw in self.VULNERABILITY_KEYWORDS if kw in text)
            insight += 7 * sum(1 for kw in self.INSIGHT_KEYWORDS if kw in text)

        score = min(
            self.BASE_SCORE
            + min(len(user_texts) * 3, 15)
            + min(depth, 25)
            + min(vulnerability, 25)
            + min(insight, 30),
            self.MAX_SCORE,
        )

        layer_progress = {
            layer: int(round(min(max(0, score - offset) * multiplier, 100)))
            for layer, (offset, multiplier) in self.LAYER_CURVES.items()
        }

        return ProgressSnapshot(score=score, layer_progress=layer_progress)

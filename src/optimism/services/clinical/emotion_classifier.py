"""
Emotion Classifier

Scores a message against weighted per-category lexicons and returns
the primary emotion, a runner-up, and an intensity tier.

ARCHITECTURE: Deterministic lexical matching only. No model weights,
no state between calls.

CLINICAL_REVIEW_REQUIRED: Lexicons and score thresholds need
clinical validation.
"""

from dataclasses import dataclass

from optimism.domain.enums import EmotionCategory, EmotionIntensity
from optimism.domain.models import EmotionSignal, normalize_text


@dataclass(frozen=True)
class EmotionLexicon:
    """
    Terms for one emotion category.

    Attributes:
        keywords: Single words or short terms (2 points each)
        phrases: Longer expressions (4 points each)
        boosters: Intensifying terms (3 points each)
    """

    keywords: tuple[str, ...]
    phrases: tuple[str, ...]
    boosters: tuple[str, ...]


@dataclass(frozen=True)
class _CategoryScore:
    category: EmotionCategory
    score: int
    keyword_hits: tuple[str, ...]
    phrase_hits: tuple[str, ...]


class EmotionClassifier:
    """
    Lexicon-based emotion classifier.

    Scoring per category: 2 x keyword hits + 4 x phrase hits +
    3 x booster hits. Matching is substring containment on the
    lowercased text. The first declared category wins ties.

    The secondary emotion is the runner-up by keyword hits alone.
    Phrases and boosters are deliberately left out of that count.

    Usage:
        classifier = EmotionClassifier()
        signal = classifier.analyze("I'm so tired of everything")
    """

    KEYWORD_WEIGHT: int = 2
    PHRASE_WEIGHT: int = 4
    BOOSTER_WEIGHT: int = 3

    SEVERE_SCORE_THRESHOLD: int = 15
    INTENSE_SCORE_THRESHOLD: int = 10

    MAX_INDICATORS: int = 3

    # Declaration order is the tie-break order
    LEXICONS: dict[EmotionCategory, EmotionLexicon] = {
        EmotionCategory.EXHAUSTED: EmotionLexicon(
            keywords=(
                "tired", "exhausted", "drained", "worn out", "weary", "fatigue",
                "no energy", "spent", "burnt out", "burned out", "depleted", "done",
                "finished", "can't go on",
            ),
            phrases=(
                "so tired of", "had enough", "at my limit", "running on empty",
                "got nothing left", "barely functioning",
            ),
            boosters=(
                "completely", "totally", "absolutely", "utterly", "so", "extremely",
                "incredibly",
            ),
        ),
        EmotionCategory.ANXIOUS: EmotionLexicon(
            keywords=(
                "anxious", "worried", "nervous", "panic", "scared", "fear", "afraid",
                "overwhelmed", "dread", "restless", "uneasy", "on edge", "tense",
                "stressed",
            ),
            phrases=(
                "what if", "might happen", "going to go wrong", "can't stop thinking",
                "racing thoughts", "heart racing", "can't breathe",
                "what's going to happen",
            ),
            boosters=("terrified", "petrified", "paralyzed", "crippled", "consuming"),
        ),
        EmotionCategory.SAD: EmotionLexicon(
            keywords=(
                "sad", "depressed", "hopeless", "down", "empty", "lonely", "cry",
                "tears", "grief", "heartbreak", "sorrow", "melancholy", "numb", "hollow",
            ),
            phrases=(
                "feel like crying", "can't stop crying", "don't want to get up",
                "nothing matters", "feel so alone", "miss them", "lost everything",
            ),
            boosters=("devastated", "shattered", "broken", "destroyed", "crushed", "unbearable"),
        ),
        EmotionCategory.ANGRY: EmotionLexicon(
            keywords=(
                "angry", "frustrated", "annoyed", "mad", "irritated", "furious", "rage",
                "hate", "resentful", "bitter", "outraged", "livid", "pissed",
            ),
            phrases=(
                "can't believe they", "how dare", "had enough of", "so sick of",
                "tired of dealing with", "makes my blood boil", "had it up to here",
            ),
            boosters=(
                "absolutely furious", "beyond angry", "blind rage", "explosive",
                "uncontrollable",
            ),
        ),
        EmotionCategory.ASHAMED: EmotionLexicon(
            keywords=(
                "ashamed", "embarrassed", "humiliated", "guilty", "regret", "mortified",
                "disgraced", "worthless", "pathetic", "stupid", "idiot", "loser",
            ),
            phrases=(
                "shouldn't have", "can't believe i", "everyone will think", "made a fool",
                "showed my true colors", "let everyone down",
            ),
            boosters=("deeply", "profoundly", "completely", "utterly", "totally"),
        ),
        EmotionCategory.CONFUSED: EmotionLexicon(
            keywords=(
                "confused", "lost", "stuck", "trapped", "unsure", "uncertain",
                "conflicted", "torn", "paralyzed", "indecisive", "directionless",
            ),
            phrases=(
                "don't know what to do", "can't figure out", "no idea",
                "which way to turn", "at a crossroads", "going in circles",
                "can't see a way out",
            ),
            boosters=("completely lost", "totally confused", "utterly lost", "hopelessly"),
        ),
        EmotionCategory.DISAPPOINTED: EmotionLexicon(
            keywords=(
                "disappointed", "let down", "failed", "failure", "defeated", "crushed",
                "disheartened", "discouraged", "demoralized",
            ),
            phrases=(
                "thought it would be", "was supposed to", "had hoped", "expected better",
                "didn't work out", "fell through", "not what i expected",
            ),
            boosters=("deeply", "profoundly", "bitterly", "crushingly"),
        ),
        EmotionCategory.INADEQUATE: EmotionLexicon(
            keywords=(
                "not enough", "inadequate", "unworthy", "imposter", "fraud",
                "don't deserve", "not good enough", "don't belong", "out of my depth",
            ),
            phrases=(
                "everyone else is", "they're all so", "i'll never be", "why can't i just",
                "should be able to", "supposed to be better",
            ),
            boosters=("completely", "totally", "utterly", "hopelessly"),
        ),
    }

    INTENSITY_WORDS: dict[EmotionIntensity, tuple[str, ...]] = {
        EmotionIntensity.MILD: (
            "a bit", "kind of", "somewhat", "slightly", "a little", "sort of",
        ),
        EmotionIntensity.MODERATE: ("really", "quite", "pretty", "fairly", "rather"),
        EmotionIntensity.INTENSE: (
            "so", "very", "extremely", "incredibly", "absolutely", "completely",
        ),
        EmotionIntensity.SEVERE: (
            "overwhelmingly", "unbearably", "devastatingly", "crushingly",
            "paralyzingly", "impossible to",
        ),
    }

    def analyze(self, text: str) -> EmotionSignal:
        """
        Classify the emotion of a message.

        Total: any input, including empty text, yields a signal.

        Args:
            text: User message

        Returns:
            EmotionSignal with primary, secondary, intensity, indicators
        """
        normalized = normalize_text(text) if isinstance(text, str) else ""

        scores = [
            self._score_category(category, lexicon, normalized)
            for category, lexicon in self.LEXICONS.items()
        ]

        best = _CategoryScore(EmotionCategory.UNSETTLED, 0, (), ())
        for candidate in scores:
            if candidate.score > best.score:
                best = candidate

        return EmotionSignal(
            primary=best.category,
            secondary=self._secondary(scores, best.category),
            intensity=self._intensity(normalized, best.score),
            indicators=(best.keyword_hits + best.phrase_hits)[: self.MAX_INDICATORS],
        )

    def _score_category(
        self,
        category: EmotionCategory,
        lexicon: EmotionLexicon,
        normalized: str,
    ) -> _CategoryScore:
        keyword_hits = tuple(k for k in lexicon.keywords if k in normalized)
        phrase_hits = tuple(p for p in lexicon.phrases if p in normalized)
        booster_count = sum(1 for b in lexicon.boosters if b in normalized)

        score = (
            self.KEYWORD_WEIGHT * len(keyword_hits)
            + self.PHRASE_WEIGHT * len(phrase_hits)
            + self.BOOSTER_WEIGHT * booster_count
        )
        return _CategoryScore(category, score, keyword_hits, phrase_hits)

    def _secondary(
        self,
        scores: list[_CategoryScore],
        primary: EmotionCategory,
    ) -> EmotionCategory:
        """Runner-up by raw keyword hits, excluding the primary."""
        secondary = EmotionCategory.UNSETTLED
        best_hits = 0
        for candidate in scores:
            if candidate.category == primary:
                continue
            if len(candidate.keyword_hits) > best_hits:
                best_hits = len(candidate.keyword_hits)
                secondary = candidate.category
        return secondary

    def _intensity(self, normalized: str, score: int) -> EmotionIntensity:
        def present(tier: EmotionIntensity) -> bool:
            return any(word in normalized for word in self.INTENSITY_WORDS[tier])

        if present(EmotionIntensity.SEVERE) or score >= self.SEVERE_SCORE_THRESHOLD:
            return EmotionIntensity.SEVERE
        if present(EmotionIntensity.INTENSE) or score >= self.INTENSE_SCORE_THRESHOLD:
            return EmotionIntensity.INTENSE
        if present(EmotionIntensity.MILD):
            return EmotionIntensity.MILD
        return EmotionIntensity.MODERATE

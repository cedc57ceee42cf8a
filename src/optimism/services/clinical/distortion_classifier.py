"""
Distortion Classifier

Tags the most likely cognitive distortion in a message using an
ordered table of regex rules per category.

ARCHITECTURE: Category, confidence and evidence are deterministic.
Only the explanation text is random, drawn from an injected
random.Random so tests can pin it.

CLINICAL_REVIEW_REQUIRED: Patterns and explanation templates need
clinical validation.
"""

import random
import re
from dataclasses import dataclass
from typing import Optional

from optimism.domain.enums import DistortionCategory
from optimism.domain.models import DistortionSignal


@dataclass(frozen=True)
class DistortionRules:
    """Pattern rules and explanation pool for one distortion category."""

    patterns: tuple[re.Pattern, ...]
    explanations: tuple[str, ...]


def _rules(patterns: list[str], explanations: list[str]) -> DistortionRules:
    return DistortionRules(
        patterns=tuple(re.compile(p, re.IGNORECASE) for p in patterns),
        explanations=tuple(explanations),
    )


DEFAULT_EXPLANATION = (
    "Something in what you shared caught my attention. "
    "Let's explore what might be underneath it."
)


# Declaration order is the tie-break order. Gaps between anchor words
# are capped at 200 characters so matching stays linear in message length.
DISTORTION_TABLE: dict[DistortionCategory, DistortionRules] = {
    DistortionCategory.CATASTROPHIZING: _rules(
        [
            r"\b(disaster|catastrophe|nightmare|end of the world|ruined|destroyed|can't survive|won't survive|impossible to recover)\b",
            r"\b(worst thing|worst possible|terrible mistake|huge mistake|massive failure)\b",
            r"\b(everything is (ruined|destroyed|over|lost))\b",
            r"\b(can't (handle|take|bear|deal with) this)\b",
            r"\b(going to (lose|lose my|ruin my|destroy my|end my))\b",
        ],
        [
            "Your mind is jumping to the worst possible outcome, treating this situation as catastrophic when there may be other possibilities.",
            "You're amplifying the negative consequences while minimizing your ability to cope with them.",
            "The situation feels apocalyptic, but your mind may be exaggerating the true impact.",
        ],
    ),
    DistortionCategory.ALL_OR_NOTHING: _rules(
        [
            r"\b(always|never|every single|each and every|all or nothing|completely|totally|absolutely)\b.{0,200}\b(fail|wrong|bad|terrible|horrible)\b",
            r"\b(if i can't .{0,200} (perfectly|completely|fully) then).{0,200}\b(why bother|what's the point|useless)\b",
            r"\b(either .{0,200} or|black and white|no middle ground|complete (success|failure))\b",
            r"\b(total|complete|absolute|utter) (failure|disaster|mess|wreck)\b",
            r"\b(i'm (completely|totally|absolutely) (useless|worthless|hopeless))\b",
        ],
        [
            "You're viewing this situation in black-and-white terms, missing the gray areas and partial successes.",
            "Your thinking is polarized, either perfect or terrible, without recognizing the middle ground where most of life happens.",
            "You're discounting the nuance here. Reality rarely fits into absolute categories.",
        ],
    ),
    DistortionCategory.MIND_READING: _rules(
        [
            r"\b(they (think|believe|assume|probably think|must think|surely think))\b",
            r"\b(everyone (thinks|knows|believes|sees))\b",
            r"\b(people (think|are thinking|probably))\b",
            r"\b(he thinks|she thinks|they're thinking)\b",
            r"\b(can tell (they|he|she) (think|thinks|is thinking))\b",
            r"\b(know what they're thinking|can see it in their eyes)\b",
        ],
        [
            "You're assuming you know what others are thinking without having direct evidence of their thoughts.",
            "Your mind is filling in the gaps about others' perspectives, but these assumptions may not reflect reality.",
            "You're projecting your fears onto others' minds. Their actual thoughts might be quite different.",
        ],
    ),
    DistortionCategory.FORTUNE_TELLING: _rules(
        [
            r"\b(going to (fail|lose|mess up|screw up|ruin|be terrible|be awful|be a disaster))\b",
            r"\b(will (never|not|fail|lose|be able to))\b",
            r"\b(can already (see|tell|know) (it|this|that) (will|won't|is going to))\b",
            r"\b(destined to|doomed to|bound to fail|certain to fail)\b",
            r"\b(i just know (it|this|that))\b.{0,200}\b(will|won't|going to)\b",
            r"\b(never going to|won't ever|will never be able to)\b",
        ],
        [
            "You're predicting a negative future as if you can see it with certainty, but the future hasn't been written yet.",
            "Your mind is creating a self-fulfilling prophecy by assuming failure before you've even tried.",
            "You're treating your anxious predictions as facts rather than possibilities.",
        ],
    ),
    DistortionCategory.EMOTIONAL_REASONING: _rules(
        [
            r"\b(i feel (like|as if|that) .{0,200})\b",
            r"\b(it feels (like|as if|that) .{0,200})\b",
            r"\b(because i feel|since i feel)\b",
            r"\b(feel so (sure|certain|convinced))\b",
            r"\b(my (gut|heart|feelings) (tells|tell) me)\b",
        ],
        [
            "You're using your feelings as evidence for what's true, but emotions are reactions, not facts.",
            "Just because something feels true doesn't make it objectively true. Feelings can be powerful but misleading.",
            "Your emotional experience is valid, but treating it as proof of reality can lead you astray.",
        ],
    ),
    DistortionCategory.SHOULD_STATEMENTS: _rules(
        [
            r"\b(i should|you should|they should|he should|she should|we should)\b",
            r"\b(i must|you must|they must|have to|need to|ought to)\b",
            r"\b(i'm supposed to|shouldn't have|should have|must have)\b",
            r"\b(i deserve to be|don't deserve to)\b",
        ],
        [
            "You're using rigid rules about how things 'should' be, creating unnecessary pressure and guilt.",
            "These 'should' statements are like a harsh internal critic that never lets you off the hook.",
            "You're holding yourself to unrealistic standards that set you up for feeling inadequate.",
        ],
    ),
    DistortionCategory.LABELING: _rules(
        [
            r"\b(i am a|i'm a|i'm such a)\s*(loser|failure|idiot|stupid|worthless|pathetic|waste|mess)\b",
            r"\b(i'm (totally|completely|absolutely) (worthless|useless|hopeless))\b",
            r"\b(that's just (who|what) i am)\b",
            r"\b(i'm (the type of|that kind of) person who)\b.{0,200}\b(fails|messes up|can't)\b",
        ],
        [
            "You're applying a harsh label to yourself instead of describing a specific behavior or situation.",
            "This label reduces your complex humanity to a single negative judgment. You're more than this.",
            "Labels stick, but they're rarely accurate. You're describing what happened, not who you are.",
        ],
    ),
    DistortionCategory.PERSONALIZATION: _rules(
        [
            r"\b(my fault|because of me|i caused|i'm to blame|i ruined|i messed up everything)\b",
            r"\b(this (is|was|happened) because of me)\b",
            r"\b(everything is my fault|all my fault)\b",
            r"\b(if only i (had|hadn't|did|didn't))\b",
            r"\b(i (take|accept) (full|all|complete) responsibility)\b",
        ],
        [
            "You're taking more responsibility than is warranted, blaming yourself for things outside your control.",
            "While self-reflection is valuable, you may be over-owning outcomes that have multiple causes.",
            "Your mind is assuming more blame than the situation actually warrants.",
        ],
    ),
    DistortionCategory.MENTAL_FILTERING: _rules(
        [
            r"\b(but .{0,200} (bad|wrong|terrible|awful|failed))\b",
            r"\b(only .{0,200} (bad|negative|wrong))\b",
            r"\b(ignoring|dismissing|didn't notice) .{0,200} (good|positive|success)\b",
            r"\b(focus(ing)? on .{0,200} (bad|wrong|failed|negative))\b",
        ],
        [
            "You're filtering out the positive aspects of the situation and focusing exclusively on the negative.",
            "Your mind is like a spotlight that only illuminates what went wrong, leaving the rest in darkness.",
            "You're discounting evidence that doesn't fit your negative narrative.",
        ],
    ),
    DistortionCategory.OVERGENERALIZATION: _rules(
        [
            r"\b(this always|it always|things always|everything always)\b",
            r"\b(this never|it never|things never|nothing ever)\b",
            r"\b(another (failure|mistake|disappointment))\b",
            r"\b( (typical|just my luck|my whole life))\b",
            r"\b(again and again|over and over|time after time)\b",
        ],
        [
            "You're taking one situation and generalizing it to a universal pattern that may not exist.",
            "Your mind is drawing broad conclusions from limited evidence.",
            "You're treating this as part of an endless pattern when it might be an isolated incident.",
        ],
    ),
    DistortionCategory.RUMINATION: _rules(
        [
            r"\b(thinking about (the past|past events|what happened))\b",
            r"\b(keep thinking about|can't stop thinking about|replaying)\b",
            r"\b(going over and over|stuck in my head|circling back)\b",
            r"\b(resurfaced|coming back to|keeps coming up)\b",
            r"\b(over and over in my mind|on repeat|loop)\b",
            r"\b(what i (should|could) have (said|done))\b",
        ],
        [
            "Your mind is replaying past events on a loop, which can feel draining but often means there's something unresolved seeking attention.",
            "You're stuck in a thought cycle about the past. Your brain is trying to process something, even if it feels exhausting.",
            "Rumination often happens when we're trying to solve something that can't be solved by thinking alone.",
        ],
    ),
    DistortionCategory.DISQUALIFYING_POSITIVE: _rules(
        [
            r"\b(that doesn't count|doesn't matter|not a big deal)\b",
            r"\b(anyone could|anyone would|that was just luck)\b",
            r"\b(but that's|but it's only|just because)\b",
            r"\b(it wasn't really|doesn't really count)\b",
        ],
        [
            "You're dismissing positive experiences as if they don't count, which keeps the negative narrative intact.",
            "Your mind is explaining away anything good, refusing to let it balance the picture.",
            "When good things happen, you're finding reasons to discount them.",
        ],
    ),
    DistortionCategory.SELF_CRITICISM: _rules(
        [
            r"\b(i (was|am being|acted) (fake|phony|pretending))\b",
            r"\b(i messed up|i screwed up|i ruined)\b",
            r"\b(i'm so (stupid|dumb|idiotic|pathetic))\b",
            r"\b(being (too|so) (hard on myself|critical|judgmental))\b",
            r"\b(beating myself up|hard on myself)\b",
            r"\b(i (should|could) have (done|said|acted) (better|differently))\b",
        ],
        [
            "You're being much harsher with yourself than you would be with anyone else. The inner critic is loud right now.",
            "There's a lot of self-judgment here. Would you speak to a friend this way?",
            "Your inner critic is working overtime. It might think it's helping, but it's actually adding to your pain.",
        ],
    ),
}


class DistortionClassifier:
    """
    Regex-based cognitive distortion classifier.

    For each category, confidence is the number of its rules that match
    anywhere in the raw text. The strictly highest count wins; the
    first declared category wins ties. No match yields the
    EXPLORING_PATTERNS sentinel with confidence 0.

    Usage:
        classifier = DistortionClassifier(rng=random.Random(7))
        signal = classifier.analyze("Everything is ruined")
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        table: Optional[dict[DistortionCategory, DistortionRules]] = None,
    ) -> None:
        """
        Initialize classifier.

        Args:
            rng: Source for explanation choice (defaults to an unseeded Random)
            table: Category rule table (defaults to DISTORTION_TABLE)
        """
        self._rng = rng or random.Random()
        self._table = table or DISTORTION_TABLE

    def analyze(self, text: str) -> DistortionSignal:
        """
        Classify the most likely distortion in a message.

        Total: any input yields a signal.
        """
        raw = text if isinstance(text, str) else ""

        best_category: Optional[DistortionCategory] = None
        best_count = 0
        best_evidence: tuple[str, ...] = ()

        for category, rules in self._table.items():
            evidence = []
            for pattern in rules.patterns:
                match = pattern.search(raw)
                if match:
                    evidence.append(match.group(0))

            if len(evidence) > best_count:
                best_category = category
                best_count = len(evidence)
                best_evidence = tuple(evidence)

        if best_category is None:
            return DistortionSignal(
                type=DistortionCategory.EXPLORING_PATTERNS,
                confidence=0,
                evidence=(),
                explanation=DEFAULT_EXPLANATION,
            )

        explanation = self._rng.choice(self._table[best_category].explanations)
        return DistortionSignal(
            type=best_category,
            confidence=best_count,
            evidence=best_evidence,
            explanation=explanation,
        )

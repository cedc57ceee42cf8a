"""
Text Normalization

The lowercased view of a message that every lexicon matcher reads.
The raw message is never modified.
"""


# Curly quotes folded so lexicon entries written with ' still match
_APOSTROPHE_TABLE = str.maketrans({
    "‘": "'",
    "’": "'",
    "ʼ": "'",
})


def normalize_text(text: str) -> str:
    """Lowercase text and fold typographic apostrophes."""
    return text.translate(_APOSTROPHE_TABLE).lower()

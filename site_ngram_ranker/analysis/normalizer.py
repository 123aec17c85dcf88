"""
Text normalization for n-gram extraction.

Raw page text is reduced to letters and single spaces, camel-case joins left
over from markup are split, and every token is folded (lowercased, diacritics
removed). The folded tokens are what the n-gram windower matches on; the
OriginalFormMap remembers how each folded token first appeared on the page so
results can be shown with their real casing and accents.
"""

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Dict, List


_WHITESPACE = re.compile(r"\s+")


@dataclass
class NormalizedText:
    """Normalized page text plus the folded -> original token mapping."""
    text: str
    original_forms: Dict[str, str] = field(default_factory=dict)

    @property
    def tokens(self) -> List[str]:
        return self.text.split()

    def original_form(self, token: str) -> str:
        """Surface form for a folded token, or the token itself if unseen."""
        return self.original_forms.get(token, token)


def fold_token(token: str) -> str:
    """
    Lowercase a token and strip its diacritics down to base letters.

    Args:
        token: A single word

    Returns:
        Folded form used for matching, e.g. "País" -> "pais"
    """
    decomposed = unicodedata.normalize("NFD", token.lower())
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


def strip_non_letters(text: str) -> str:
    """Replace every character that is neither a letter nor whitespace with a space."""
    return "".join(ch if ch.isalpha() or ch.isspace() else " " for ch in text)


def split_camel_case(text: str) -> str:
    """Insert a space wherever a lowercase letter is directly followed by an uppercase one."""
    pieces = []
    previous = ""
    for ch in text:
        if previous.islower() and ch.isupper():
            pieces.append(" ")
        pieces.append(ch)
        previous = ch
    return "".join(pieces)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def clean_text(text: str) -> str:
    """
    Apply the character-level cleanup steps without folding.

    Args:
        text: Raw extracted page text

    Returns:
        Letters-only text with camel-case joins split and single spaces
    """
    # NFC first so precomposed accented letters are kept as letters
    text = unicodedata.normalize("NFC", text)
    text = strip_non_letters(text)
    text = split_camel_case(text)
    return collapse_whitespace(text)


def normalize_text(text: str) -> NormalizedText:
    """
    Normalize raw page text for windowing.

    Args:
        text: Raw extracted page text

    Returns:
        NormalizedText whose text is the folded tokens joined by single spaces
    """
    cleaned = clean_text(text or "")
    if not cleaned:
        return NormalizedText(text="")

    original_forms: Dict[str, str] = {}
    folded_tokens = []
    for token in cleaned.split(" "):
        folded = fold_token(token)
        if not folded:
            continue
        original_forms.setdefault(folded, token)
        folded_tokens.append(folded)

    return NormalizedText(text=" ".join(folded_tokens), original_forms=original_forms)

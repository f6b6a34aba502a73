"""Name canonicalisation shared by the scorer and the extractor."""
from __future__ import annotations
import re

from app.domain import id_card_schema as schema

# anything that is neither a letter nor whitespace (\w minus digits/underscore)
_NON_LETTER_RE = re.compile(r"[^\w\s]|[\d_]")
_HONORIFIC_RE = re.compile(r"\b(?:" + "|".join(schema.HONORIFICS) + r")\b")
_WS_RE = re.compile(r"\s+")


def normalize(raw: str) -> str:
    """Canonical lowercase form of a person's name for comparison.

    Lowercases, keeps letters and whitespace only, drops the standalone
    honorifics (mr, ms, mrs, dr), collapses whitespace runs and trims.
    Never fails; ``normalize(normalize(x)) == normalize(x)``.
    """
    if not raw:
        return ""
    text = raw.lower()
    text = _NON_LETTER_RE.sub("", text)
    text = _HONORIFIC_RE.sub("", text)
    return _WS_RE.sub(" ", text).strip()


def clean_candidate(raw: str) -> str:
    """Uppercase letters-and-spaces form of an OCR name candidate."""
    if not raw:
        return ""
    text = _NON_LETTER_RE.sub("", raw)
    return _WS_RE.sub(" ", text).strip().upper()

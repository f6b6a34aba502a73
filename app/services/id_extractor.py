"""Student ID extraction from redundant multi-pass OCR output.

Each raw text block is one OCR pass (one preprocessing variant x one page
segmentation mode), so the input is noisy and heavily duplicated.

- Registration number: prioritised patterns, first hit across blocks wins.
- Name: five candidate families over every block, validated, deduplicated,
  longest survivor wins.
"""
from __future__ import annotations
from typing import Dict, Iterable, List, Optional
import re

from app.domain import id_card_schema as schema
from app.models.ids import ExtractedIdentity
from app.services.text_normalizer import clean_candidate
from app.scripts.logging_config import get_logger

logger = get_logger("ocr")

# C123-45-678/2021, S1234 56 7890/2019, C123/45/678/2021 ...
_REG_CORE = r"[CS]\d{3,4}[-/\s]?\d{2}[-/\s]?\d{3,4}/\d{4}"
_REG_CORE_OCR = r"[CS][0-9O]{3,4}[-/\s]?[0-9O]{2}[-/\s]?[0-9O]{3,4}/[0-9O]{4}"

# most specific first
REG_PATTERNS: List[re.Pattern] = [
    re.compile(r"REG\.?\s*NO\.?\s*:?\s*(" + _REG_CORE + r")", re.IGNORECASE),
    re.compile(r"\b(" + _REG_CORE + r")\b"),
    re.compile(r"(" + _REG_CORE + r")"),
    re.compile(r"(" + _REG_CORE_OCR + r")", re.IGNORECASE),
]

NAME_LABEL_PAT = re.compile(r"NAME\s*:?\s*([A-Z][A-Z\s]{5,}?)(?=\n|REG|COURSE|DEPT|$)", re.IGNORECASE)
CHIP_NAME_PAT = re.compile(
    r"(\d{4}[\s\-.]*\d{4}[\s\-.]*\d{4}[\s\-.]*\d{4})\s*[\r\n]+\s*([A-Z][A-Z\s]{5,50}?)(?=[\r\n]|$)"
)
CHIP_TO_REG_PAT = re.compile(r"\d{4}\s+\d{4}\s+\d{4}\s+\d{4}\s*[\r\n]+([\s\S]*?)REG", re.IGNORECASE)
AGGRESSIVE_NAME_PAT = re.compile(r"\b([A-Z]{3,}\s+[A-Z]{3,}(?:\s+[A-Z]{3,})?(?:\s+[A-Z]{3,})?)\b")

_CAPS_TOKEN = re.compile(r"[A-Z]{3,}")
_LINE_SPLIT = re.compile(r"[\r\n]+")
_LETTERS_SPACES = re.compile(r"[A-Z\s]+", re.IGNORECASE)


def _clean_registration(raw: str) -> str:
    reg = re.sub(r"\s+", "-", raw.strip())
    return reg.upper().replace("O", "0")


def extract_registration_number(raw_texts: Iterable[str]) -> Optional[str]:
    for text in raw_texts:
        if not text:
            continue
        for idx, pat in enumerate(REG_PATTERNS):
            m = pat.search(text)
            if m:
                reg = _clean_registration(m.group(1))
                logger.debug("registration number found pattern=%d value=%s", idx + 1, reg)
                return reg
    return None


def is_valid_name(name: str) -> bool:
    if not name or len(name) < schema.NAME_MIN_LENGTH:
        return False
    for word in schema.EXCLUDED_NAME_WORDS:
        if word in name:
            return False
    words = name.split()
    if not (schema.NAME_MIN_WORDS <= len(words) <= schema.NAME_MAX_WORDS):
        return False
    for w in words:
        if not (schema.NAME_WORD_MIN_LETTERS <= len(w) <= schema.NAME_WORD_MAX_LETTERS):
            return False
    return bool(_LETTERS_SPACES.fullmatch(name))


def _is_caps_line(line: str) -> bool:
    words = line.split()
    if not (schema.NAME_MIN_WORDS <= len(words) <= schema.NAME_MAX_WORDS):
        return False
    return all(_CAPS_TOKEN.fullmatch(w) for w in words)


def _caps_lines(text: str) -> List[str]:
    return [ln.strip() for ln in _LINE_SPLIT.split(text) if _is_caps_line(ln.strip())]


def _raw_name_candidates(text: str) -> List[tuple]:
    """(family, raw string) pairs found in one block, before cleaning."""
    out = []
    for m in NAME_LABEL_PAT.finditer(text):
        out.append(("label", m.group(1)))
    for m in CHIP_NAME_PAT.finditer(text):
        out.append(("after_chip", m.group(2)))
    for line in _caps_lines(text):
        out.append(("caps_line", line))
    for m in CHIP_TO_REG_PAT.finditer(text):
        for line in _caps_lines(m.group(1).strip()):
            out.append(("chip_to_reg", line))
    for m in AGGRESSIVE_NAME_PAT.finditer(text):
        out.append(("aggressive", m.group(1)))
    return out


def collect_name_candidates(raw_texts: Iterable[str]) -> List[str]:
    """Validated, deduplicated candidates in first-seen order."""
    found: Dict[str, None] = {}
    for text in raw_texts:
        if not text:
            continue
        for family, raw in _raw_name_candidates(text):
            name = clean_candidate(raw)
            if is_valid_name(name) and name not in found:
                found[name] = None
                logger.debug("name candidate family=%s value=%s", family, name)
    return list(found)


def extract_name(raw_texts: Iterable[str]) -> Optional[str]:
    candidates = collect_name_candidates(raw_texts)
    if not candidates:
        return None
    # max() keeps the first of equal-length candidates
    return max(candidates, key=len)


def extract(raw_texts: Iterable[str]) -> ExtractedIdentity:
    texts = [t for t in raw_texts if isinstance(t, str)]
    identity = ExtractedIdentity(
        name=extract_name(texts),
        registration_number=extract_registration_number(texts),
    )
    logger.info("extract blocks=%d name=%s reg=%s", len(texts), identity.name, identity.registration_number)
    return identity

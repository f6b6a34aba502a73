"""Additive evidence score between a claimed and an extracted identity.

Rules (summed, then capped at 100):
    +80 registration numbers equal (case-insensitive)
    +50 otherwise one registration number contains the other
    +70 normalised names equal
    +40 otherwise one name contains the other
    +30 otherwise name similarity > 0.7
    +20 first '/' segment of the registration numbers equal
    +15 third '/' segment equal
"""
from __future__ import annotations
from typing import Optional

from app.domain import id_card_schema as schema
from app.models.ids import ClaimedIdentity, ExtractedIdentity
from app.services.similarity import similarity
from app.services.text_normalizer import normalize

MAX_SCORE = 100
NAME_SIMILARITY_THRESHOLD = 0.7


def _registration_score(claimed: str, found: str) -> int:
    a = claimed.lower()
    b = found.lower()
    if a == b:
        return 80
    if a in b or b in a:
        return 50
    return 0


def _segment_score(claimed: str, found: str) -> int:
    claimed_parts = claimed.split("/")
    found_parts = found.split("/")
    score = 0
    if claimed_parts[0] and found_parts[0] and claimed_parts[0] == found_parts[0]:
        score += 20
    if len(claimed_parts) > 2 and len(found_parts) > 2:
        if claimed_parts[2] and claimed_parts[2] == found_parts[2]:
            score += 15
    return score


def _name_score(claimed: str, found: str) -> int:
    a = normalize(claimed)
    b = normalize(found)
    # an empty side would otherwise count as containment (+40)
    if not a or not b:
        return 0
    if a == b:
        return 70
    if a in b or b in a:
        return 40
    if similarity(a, b) > NAME_SIMILARITY_THRESHOLD:
        return 30
    return 0


def score(claimed: ClaimedIdentity, found: ExtractedIdentity) -> int:
    total = 0
    claimed_reg: Optional[str] = claimed.registration_number
    found_reg: Optional[str] = found.registration_number
    if claimed_reg and found_reg:
        total += _registration_score(claimed_reg, found_reg)
        total += _segment_score(claimed_reg, found_reg)
    if claimed.full_name and found.name:
        total += _name_score(claimed.full_name, found.name)
    return max(0, min(total, MAX_SCORE))


def confidence_level(score: int) -> str:
    for threshold, label in schema.CONFIDENCE_TIERS:
        if score >= threshold:
            return label
    return schema.CONFIDENCE_FLOOR

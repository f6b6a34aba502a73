"""Candidate search between a claimed identity and the unmatched found items."""
from __future__ import annotations
from typing import Awaitable, Callable, List, Optional, Union
import asyncio

from app.domain import id_card_schema as schema
from app.models.ids import CandidateMatch, ClaimedIdentity, ExtractedIdentity, MatchStatistics
from app.services import match_scorer
from app.services.id_store import BaseIdStore, Record, get_store
from app.scripts.logging_config import get_logger, log_match_event

logger = get_logger("matching")

MatchCallback = Callable[[List[CandidateMatch]], Union[None, Awaitable[None]]]


def _found_identity(record: Record) -> ExtractedIdentity:
    return ExtractedIdentity(
        name=record.get("extractedName") or None,
        registration_number=record.get("extractedAdmission") or None,
    )


def rank_candidates(claimed: ClaimedIdentity, records: List[Record]) -> List[CandidateMatch]:
    """Score, drop zero scores, sort by score desc (stable on retrieval order)."""
    candidates: List[CandidateMatch] = []
    for rec in records:
        value = match_scorer.score(claimed, _found_identity(rec))
        if value <= 0:
            continue
        candidates.append(CandidateMatch(
            found_item_id=rec.get("id"),
            extracted_name=rec.get("extractedName"),
            extracted_admission=rec.get("extractedAdmission"),
            match_score=value,
            match_confidence=match_scorer.confidence_level(value),
            finder_name=rec.get("finderName"),
            finder_phone=rec.get("finderPhone"),
            location_found=rec.get("locationFound"),
            upload_date=rec.get("uploadDate"),
        ))
    candidates.sort(key=lambda c: c.match_score, reverse=True)
    return candidates


async def find_matches(claimed: ClaimedIdentity, store: Optional[BaseIdStore] = None) -> List[CandidateMatch]:
    store = store or get_store()
    try:
        records = await store.query_where(schema.FOUND_ITEMS, "matched", False)
    except Exception as e:
        logger.exception("find_matches read failed reg=%s: %s", claimed.registration_number, e)
        return []
    ranked = rank_candidates(claimed, records)
    log_match_event("search", {
        "registration_number": claimed.registration_number,
        "pool": len(records),
        "candidates": len(ranked),
        "top": ranked[0].match_score if ranked else None,
    }, logger=logger)
    return ranked


async def get_student_matches(student_id: str, store: Optional[BaseIdStore] = None) -> List[Record]:
    """Found items already confirmed for this student."""
    store = store or get_store()
    try:
        return await store.query_where(schema.FOUND_ITEMS, "matchedBy", student_id)
    except Exception as e:
        logger.exception("get_student_matches failed student=%s: %s", student_id, e)
        return []


async def get_matching_statistics(store: Optional[BaseIdStore] = None) -> MatchStatistics:
    store = store or get_store()
    try:
        lost, found, matched = await asyncio.gather(
            store.get_all(schema.LOST_ITEMS),
            store.get_all(schema.FOUND_ITEMS),
            store.query_where(schema.FOUND_ITEMS, "matched", True),
        )
    except Exception as e:
        logger.exception("get_matching_statistics failed: %s", e)
        return MatchStatistics()
    rate = round(len(matched) / len(found) * 100, 1) if found else 0.0
    return MatchStatistics(
        total_lost=len(lost),
        total_found=len(found),
        total_matched=len(matched),
        success_rate=rate,
    )


async def check_student_once(student_id: str, store: Optional[BaseIdStore] = None) -> List[CandidateMatch]:
    """One watcher round: candidates for a student with an outstanding lost ID."""
    store = store or get_store()
    student = await store.get_document(schema.STUDENTS, student_id)
    if not student or not student.get("hasLostID"):
        return []
    claimed = ClaimedIdentity(
        registration_number=student.get("regNumber") or "",
        full_name=student.get("fullName") or "",
    )
    return await find_matches(claimed, store=store)


async def watch_student_matches(
    student_id: str,
    callback: MatchCallback,
    interval_seconds: float,
    store: Optional[BaseIdStore] = None,
    stop_event: Optional[asyncio.Event] = None,
    max_rounds: Optional[int] = None,
) -> int:
    """Poll for new candidates every interval_seconds until stopped.

    callback gets the ranked list whenever it is non-empty (sync or async).
    Returns the number of completed rounds.
    """
    rounds = 0
    logger.info("watch start student=%s interval=%.1fs", student_id, interval_seconds)
    while not (stop_event and stop_event.is_set()):
        try:
            matches = await check_student_once(student_id, store=store)
            if matches:
                result = callback(matches)
                if asyncio.iscoroutine(result):
                    await result
        except Exception as e:
            logger.exception("watch round failed student=%s: %s", student_id, e)
        rounds += 1
        if max_rounds is not None and rounds >= max_rounds:
            break
        if stop_event:
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
            except asyncio.TimeoutError:
                pass
        else:
            await asyncio.sleep(interval_seconds)
    logger.info("watch stop student=%s rounds=%d", student_id, rounds)
    return rounds

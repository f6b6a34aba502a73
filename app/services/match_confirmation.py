"""Match confirmation: found item -> matched, lost item -> found, student -> ID recovered.

The store has no multi-document transaction in its interface, so the three
writes are applied in order and undone on failure:

1. Read all three records and capture the current value of every field that
   will be written (absent fields are restored as None).
2. Write found item, lost item, student.
3. On the first failed write, restore the captured values of the records
   already written, newest first.

A compensation that fails is logged at ERROR with all three ids; the damage
stays visible through check_match_consistency.
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from app.domain import id_card_schema as schema
from app.services.id_store import BaseIdStore, Record, get_store
from app.scripts.logging_config import get_logger, log_confirmation

logger = get_logger("matching")


def build_updates(found_item_id: str, lost_item_id: str, student_id: str,
                  now: Optional[str] = None) -> List[Tuple[str, str, Record]]:
    now = now or datetime.now(timezone.utc).isoformat()
    return [
        (schema.FOUND_ITEMS, found_item_id, {
            "matched": True,
            "matchedWith": lost_item_id,
            "matchedAt": now,
            "matchedBy": student_id,
        }),
        (schema.LOST_ITEMS, lost_item_id, {
            "found": True,
            "foundAt": now,
            "matchedWith": found_item_id,
        }),
        (schema.STUDENTS, student_id, {
            "hasLostID": False,
            "idFound": True,
            "idFoundAt": now,
        }),
    ]


async def _rollback(store: BaseIdStore, applied: List[Tuple[str, str, Record]]) -> bool:
    ok = True
    for collection, doc_id, previous in reversed(applied):
        try:
            restored = await store.update_fields(collection, doc_id, previous)
        except Exception as e:
            logger.error("rollback failed doc=%s/%s err=%s", collection, doc_id, e)
            restored = False
        if not restored:
            ok = False
        else:
            logger.info("rollback ok doc=%s/%s", collection, doc_id)
    return ok


async def confirm_match(found_item_id: str, lost_item_id: str, student_id: str,
                        store: Optional[BaseIdStore] = None) -> bool:
    """Apply the three linked updates; True only when all three are stored."""
    store = store or get_store()
    updates = build_updates(found_item_id, lost_item_id, student_id)

    previous: Dict[Tuple[str, str], Record] = {}
    try:
        for collection, doc_id, fields in updates:
            current = await store.get_document(collection, doc_id)
            if current is None:
                log_confirmation(found_item_id, lost_item_id, student_id, False,
                                 error=f"missing {collection}/{doc_id}", logger=logger)
                return False
            if collection == schema.FOUND_ITEMS and current.get("matched"):
                log_confirmation(found_item_id, lost_item_id, student_id, False,
                                 error="found item already matched", logger=logger)
                return False
            previous[(collection, doc_id)] = {k: current.get(k) for k in fields}
    except Exception as e:
        log_confirmation(found_item_id, lost_item_id, student_id, False, error=f"read: {e}", logger=logger)
        return False

    applied: List[Tuple[str, str, Record]] = []
    for collection, doc_id, fields in updates:
        error = None
        try:
            ok = await store.update_fields(collection, doc_id, fields)
        except Exception as e:
            ok = False
            error = str(e)
        if not ok:
            log_confirmation(found_item_id, lost_item_id, student_id, False,
                             error=f"write {collection}/{doc_id}: {error or 'not found'}", logger=logger)
            if applied and not await _rollback(store, applied):
                logger.error("INCONSISTENT match records found=%s lost=%s student=%s",
                             found_item_id, lost_item_id, student_id)
            return False
        applied.append((collection, doc_id, previous[(collection, doc_id)]))

    log_confirmation(found_item_id, lost_item_id, student_id, True, logger=logger)
    return True


async def check_match_consistency(found_item_id: str, store: Optional[BaseIdStore] = None) -> List[str]:
    """Cross-reference problems around one found item ([] when consistent)."""
    store = store or get_store()
    problems: List[str] = []
    found = await store.get_document(schema.FOUND_ITEMS, found_item_id)
    if found is None:
        return [f"found item {found_item_id} does not exist"]
    if not found.get("matched"):
        if found.get("matchedWith") or found.get("matchedAt"):
            problems.append("found item not matched but carries matchedWith/matchedAt")
        return problems

    lost_item_id = found.get("matchedWith")
    if not lost_item_id or not found.get("matchedAt"):
        problems.append("found item matched without matchedWith/matchedAt")
    if lost_item_id:
        lost = await store.get_document(schema.LOST_ITEMS, lost_item_id)
        if lost is None:
            problems.append(f"lost item {lost_item_id} does not exist")
        else:
            if not lost.get("found"):
                problems.append("lost item not marked found")
            if lost.get("matchedWith") != found_item_id:
                problems.append(f"lost item points to {lost.get('matchedWith')!r}")
    student_id = found.get("matchedBy")
    if student_id:
        student = await store.get_document(schema.STUDENTS, student_id)
        if student is None:
            problems.append(f"student {student_id} does not exist")
        elif not student.get("idFound"):
            problems.append("student record not marked idFound")
    else:
        problems.append("found item matched without matchedBy")
    return problems

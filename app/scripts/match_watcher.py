"""Match watcher.

1. Load every student with an outstanding lost ID (hasLostID == True).
2. Run the candidate search with the student's own registration number and name.
3. Log the top candidate per student (matching.log).

Runs once by default (cron-friendly); --interval keeps polling every N seconds.
"""
from __future__ import annotations
import argparse
import asyncio
from typing import Dict, List, Optional

from config import settings
from app.domain import id_card_schema as schema
from app.models.ids import CandidateMatch
from app.services import match_finder
from app.services.id_store import BaseIdStore, get_store
from app.scripts.logging_config import get_logger, setup_logging, log_match_event

logger = get_logger("matching")


async def scan_once(store: Optional[BaseIdStore] = None) -> Dict[str, List[CandidateMatch]]:
    store = store or get_store()
    try:
        students = await store.query_where(schema.STUDENTS, "hasLostID", True)
    except Exception as e:
        logger.exception("watcher student read failed: %s", e)
        return {}
    found: Dict[str, List[CandidateMatch]] = {}
    for student in students:
        student_id = student.get("id")
        try:
            matches = await match_finder.check_student_once(student_id, store=store)
        except Exception as e:
            logger.exception("watcher check failed student=%s: %s", student_id, e)
            continue
        if not matches:
            continue
        found[student_id] = matches
        top = matches[0]
        log_match_event("watch_candidate", {
            "student_id": student_id,
            "found_item_id": top.found_item_id,
            "score": top.match_score,
            "confidence": top.match_confidence,
            "candidates": len(matches),
        }, logger=logger)
    logger.info("watcher_done checked_students=%d with_candidates=%d", len(students), len(found))
    return found


async def run(interval: Optional[float], rounds: Optional[int] = None) -> None:
    done = 0
    while True:
        try:
            await scan_once()
        except Exception as e:
            logger.exception("watcher round %d failed: %s", done + 1, e)
        done += 1
        if not interval or (rounds is not None and done >= rounds):
            return
        await asyncio.sleep(interval)


def parse_args():
    p = argparse.ArgumentParser(description="Scan outstanding lost IDs for new candidate matches")
    p.add_argument("--interval", type=float, default=None,
                   help=f"poll every N seconds (suggested: {settings.MATCH_POLL_INTERVAL_SECONDS})")
    p.add_argument("--rounds", type=int, default=None, help="stop after N rounds")
    return p.parse_args()


def main():
    setup_logging(json_fmt=settings.LOG_JSON)
    if (settings.STORE_BACKEND or "firestore").lower() == "firestore":
        from app.services.firebase_init import init_firebase
        init_firebase()
    args = parse_args()
    asyncio.run(run(args.interval, args.rounds))


if __name__ == "__main__":
    main()

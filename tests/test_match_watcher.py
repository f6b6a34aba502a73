import asyncio

from app.domain import id_card_schema as schema
from app.scripts import match_watcher
from app.services import id_store


def test_scan_once_reports_students_with_candidates(store):
    async def seed():
        await store.set_document(schema.FOUND_ITEMS, "f1", {
            "extractedName": "JOHN SMITH", "extractedAdmission": "C123-45-678/2021", "matched": False,
        })
        await store.set_document(schema.STUDENTS, "s1", {
            "regNumber": "C123-45-678/2021", "fullName": "John Smith", "hasLostID": True,
        })
        await store.set_document(schema.STUDENTS, "s2", {
            "regNumber": "S999-99-999/2019", "fullName": "Mary Wambui", "hasLostID": True,
        })
        await store.set_document(schema.STUDENTS, "s3", {
            "regNumber": "C123-45-678/2021", "fullName": "John Smith", "hasLostID": False,
        })

    asyncio.run(seed())
    found = asyncio.run(match_watcher.scan_once())
    assert list(found) == ["s1"]
    assert found["s1"][0].found_item_id == "f1"


def test_run_stops_after_requested_rounds(store, monkeypatch):
    calls = []

    async def fake_scan(store=None):
        calls.append(1)
        return {}

    monkeypatch.setattr(match_watcher, "scan_once", fake_scan)
    asyncio.run(match_watcher.run(interval=0.01, rounds=3))
    assert len(calls) == 3
    calls.clear()
    asyncio.run(match_watcher.run(interval=None))
    assert len(calls) == 1


class _FlakyStudentStore(id_store.MemoryIdStore):
    def __init__(self, broken_student):
        super().__init__()
        self.broken_student = broken_student

    async def get_document(self, collection, doc_id):
        if collection == schema.STUDENTS and doc_id == self.broken_student:
            raise ConnectionError("firestore unreachable")
        return await super().get_document(collection, doc_id)


def test_scan_once_keeps_going_after_a_student_read_fails():
    store = _FlakyStudentStore("s1")

    async def seed():
        await store.set_document(schema.FOUND_ITEMS, "f1", {
            "extractedName": "MARY WAMBUI", "extractedAdmission": "S999-99-999/2019", "matched": False,
        })
        await store.set_document(schema.STUDENTS, "s1", {
            "regNumber": "C123-45-678/2021", "fullName": "John Smith", "hasLostID": True,
        })
        await store.set_document(schema.STUDENTS, "s2", {
            "regNumber": "S999-99-999/2019", "fullName": "Mary Wambui", "hasLostID": True,
        })

    asyncio.run(seed())
    found = asyncio.run(match_watcher.scan_once(store))
    assert list(found) == ["s2"]
    assert found["s2"][0].found_item_id == "f1"


def test_run_survives_a_failing_round(store, monkeypatch):
    calls = []

    async def flaky_scan(store=None):
        calls.append(1)
        if len(calls) == 1:
            raise ConnectionError("firestore unreachable")
        return {}

    monkeypatch.setattr(match_watcher, "scan_once", flaky_scan)
    asyncio.run(match_watcher.run(interval=0.01, rounds=2))
    assert len(calls) == 2

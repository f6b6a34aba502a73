import asyncio

from app.domain import id_card_schema as schema
from app.services import match_confirmation as mc
from app.services.id_store import MemoryIdStore


def _seeded(store_cls=MemoryIdStore, **kwargs):
    store = store_cls(**kwargs)
    asyncio.run(store.set_document(schema.FOUND_ITEMS, "f1", {
        "extractedName": "JOHN SMITH", "extractedAdmission": "C123-45-678/2021",
        "matched": False, "matchedWith": None, "matchedAt": None, "matchedBy": None,
    }))
    asyncio.run(store.set_document(schema.LOST_ITEMS, "l1", {
        "registrationNumber": "C123-45-678/2021", "studentId": "s1",
        "found": False, "foundAt": None, "matchedWith": None,
    }))
    asyncio.run(store.set_document(schema.STUDENTS, "s1", {
        "regNumber": "C123-45-678/2021", "fullName": "John Smith",
        "hasLostID": True, "idFound": False, "idFoundAt": None,
    }))
    return store


def _get(store, collection, doc_id):
    return asyncio.run(store.get_document(collection, doc_id))


def test_confirm_updates_all_three_records():
    store = _seeded()
    assert asyncio.run(mc.confirm_match("f1", "l1", "s1", store=store)) is True
    found = _get(store, schema.FOUND_ITEMS, "f1")
    lost = _get(store, schema.LOST_ITEMS, "l1")
    student = _get(store, schema.STUDENTS, "s1")
    assert found["matched"] is True and found["matchedWith"] == "l1" and found["matchedBy"] == "s1"
    assert found["matchedAt"]
    assert lost["found"] is True and lost["matchedWith"] == "f1" and lost["foundAt"]
    assert student["idFound"] is True and student["hasLostID"] is False and student["idFoundAt"]
    assert asyncio.run(mc.check_match_consistency("f1", store=store)) == []


def test_second_confirmation_is_rejected():
    store = _seeded()
    assert asyncio.run(mc.confirm_match("f1", "l1", "s1", store=store)) is True
    assert asyncio.run(mc.confirm_match("f1", "l1", "s1", store=store)) is False


def test_missing_record_fails_without_writing():
    store = _seeded()
    assert asyncio.run(mc.confirm_match("f1", "l1", "nobody", store=store)) is False
    assert _get(store, schema.FOUND_ITEMS, "f1")["matched"] is False
    assert _get(store, schema.LOST_ITEMS, "l1")["found"] is False


class _FailingStore(MemoryIdStore):
    """Raises on the first write to fail_collection."""

    def __init__(self, fail_collection, **kwargs):
        super().__init__(**kwargs)
        self.fail_collection = fail_collection
        self.failed = False

    async def update_fields(self, collection, doc_id, fields):
        if collection == self.fail_collection and not self.failed:
            self.failed = True
            raise ConnectionError("write rejected")
        return await super().update_fields(collection, doc_id, fields)


def test_student_write_failure_rolls_back_found_and_lost():
    store = _seeded(_FailingStore, fail_collection=schema.STUDENTS)
    assert asyncio.run(mc.confirm_match("f1", "l1", "s1", store=store)) is False
    found = _get(store, schema.FOUND_ITEMS, "f1")
    lost = _get(store, schema.LOST_ITEMS, "l1")
    assert found["matched"] is False and found["matchedWith"] is None and found["matchedBy"] is None
    assert lost["found"] is False and lost["matchedWith"] is None
    assert _get(store, schema.STUDENTS, "s1")["idFound"] is False
    assert asyncio.run(mc.check_match_consistency("f1", store=store)) == []


def test_first_write_failure_touches_nothing():
    store = _seeded(_FailingStore, fail_collection=schema.FOUND_ITEMS)
    assert asyncio.run(mc.confirm_match("f1", "l1", "s1", store=store)) is False
    assert _get(store, schema.LOST_ITEMS, "l1")["found"] is False


class _NoRollbackStore(MemoryIdStore):
    """Student write fails and every later write fails too."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.broken = False

    async def update_fields(self, collection, doc_id, fields):
        if collection == schema.STUDENTS:
            self.broken = True
        if self.broken:
            return False
        return await super().update_fields(collection, doc_id, fields)


def test_failed_compensation_is_detectable():
    store = _seeded(_NoRollbackStore)
    assert asyncio.run(mc.confirm_match("f1", "l1", "s1", store=store)) is False
    problems = asyncio.run(mc.check_match_consistency("f1", store=store))
    assert "student record not marked idFound" in problems


def test_consistency_reports_dangling_cross_reference():
    store = _seeded()
    asyncio.run(store.update_fields(schema.FOUND_ITEMS, "f1", {
        "matched": True, "matchedWith": "l1", "matchedAt": "2024-01-01T00:00:00+00:00", "matchedBy": "s1",
    }))
    problems = asyncio.run(mc.check_match_consistency("f1", store=store))
    assert "lost item not marked found" in problems
    assert "lost item points to None" in problems
    assert asyncio.run(mc.check_match_consistency("missing", store=store)) == ["found item missing does not exist"]

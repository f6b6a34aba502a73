import pytest

from app.services.similarity import edit_distance, similarity


@pytest.mark.parametrize("a,b,expected", [
    ("", "", 0),
    ("abc", "", 3),
    ("kitten", "sitting", 3),
    ("flaw", "lawn", 2),
    ("john", "john", 0),
])
def test_edit_distance(a, b, expected):
    assert edit_distance(a, b) == expected


def test_similarity_identity_and_empty():
    assert similarity("", "") == 1.0
    for s in ["a", "john smith", "wanjiru"]:
        assert similarity(s, s) == 1.0


def test_similarity_symmetric_and_bounded():
    pairs = [("john smith", "jon smith"), ("abc", ""), ("mwangi", "wangari"), ("x", "yz")]
    for a, b in pairs:
        assert similarity(a, b) == similarity(b, a)
        assert 0.0 <= similarity(a, b) <= 1.0


def test_similarity_value():
    # one substitution over ten characters
    assert similarity("john smith", "john smyth") == pytest.approx(0.9)
    assert similarity("abc", "") == 0.0

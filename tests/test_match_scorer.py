import pytest

from app.models.ids import ClaimedIdentity, ExtractedIdentity
from app.services.match_scorer import score, confidence_level


def _claim(reg="C123-45-678/2021", name="John Smith"):
    return ClaimedIdentity(registration_number=reg, full_name=name)


def _found(reg=None, name=None):
    return ExtractedIdentity(registration_number=reg, name=name)


def test_exact_registration_and_name_is_clamped_to_100():
    assert score(_claim(), _found("C123-45-678/2021", "JOHN SMITH")) == 100


def test_exact_registration_only():
    # 80 exact + 20 first segment
    assert score(_claim(), _found("C123-45-678/2021")) == 100
    # exact match ignores case, segment comparison does not
    assert score(_claim(reg="c123-45-678/2021"), _found("C123-45-678/2021")) == 80


def test_registration_containment():
    # containment (50); first segments differ in case so no +20
    assert score(_claim(reg="C123-45-678/2021"), _found("c123-45-678/2021x")) == 50


def test_segment_rules_stack():
    claimed = _claim(reg="C123/45/678/2021")
    # first (20) + third (15) segments equal, no containment
    assert score(claimed, _found("C123/99/678/2020")) == 35
    # first segment only
    assert score(claimed, _found("C123/99/111/2020")) == 20


def test_name_rules_are_exclusive():
    claimed = _claim(reg="", name="Mr. John Smith")
    assert score(claimed, _found(name="JOHN SMITH")) == 70
    assert score(claimed, _found(name="JOHN SMITH MWANGI")) == 40
    # one letter off: similarity 0.9
    assert score(claimed, _found(name="JOHN SMYTH")) == 30
    assert score(claimed, _found(name="MARY WAMBUI")) == 0


def test_missing_fields_score_zero():
    assert score(_claim(), _found()) == 0
    assert score(_claim(reg="", name=""), _found("C123-45-678/2021", "JOHN SMITH")) == 0
    # honorific-only name normalises to nothing
    assert score(_claim(reg="", name="Dr."), _found(name="DR")) == 0


def test_score_always_within_bounds():
    claims = [_claim(), _claim(reg="C1", name="J"), _claim(reg="", name="")]
    founds = [_found(), _found("C123-45-678/2021", "JOHN SMITH"), _found("C1", "J S"), _found("x/y/z", "A")]
    for c in claims:
        for f in founds:
            assert 0 <= score(c, f) <= 100


@pytest.mark.parametrize("value,label", [
    (100, "Very High"), (80, "Very High"), (79, "High"), (60, "High"), (59, "Medium"),
    (40, "Medium"), (39, "Low"), (20, "Low"), (19, "Very Low"), (0, "Very Low"),
])
def test_confidence_level_boundaries(value, label):
    assert confidence_level(value) == label


def test_name_that_normalises_to_nothing_earns_no_containment():
    # "" is a substring of every name; it must not count as +40
    assert score(_claim(reg="", name="Dr."), _found(name="JOHN SMITH")) == 0
    assert score(_claim(reg="", name="John Smith"), _found(name="123 !!")) == 0

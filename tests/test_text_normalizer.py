from app.services.text_normalizer import normalize, clean_candidate


def test_normalize_lowercases_and_collapses_whitespace():
    assert normalize("  John   SMITH\tMwangi ") == "john smith mwangi"


def test_normalize_strips_punctuation_and_digits():
    assert normalize("O'Brien-Kamau, J. 2nd") == "obrienkamau j nd"


def test_normalize_removes_honorifics_as_whole_words():
    assert normalize("Mr. John Smith") == "john smith"
    assert normalize("DR jane mrs doe") == "jane doe"
    # not a standalone token
    assert normalize("Mrsimon Drake") == "mrsimon drake"


def test_normalize_empty_and_idempotent():
    assert normalize("") == ""
    for raw in ["Mr. John  Smith", "m.r. mwangi", "  Dr-Ms Ann ", "ÉLODIE  dr. Ngugi!!"]:
        once = normalize(raw)
        assert normalize(once) == once


def test_clean_candidate_uppercases_letters_only():
    assert clean_candidate(" john  smith-mwangi 42 ") == "JOHN SMITHMWANGI"
    assert clean_candidate("") == ""

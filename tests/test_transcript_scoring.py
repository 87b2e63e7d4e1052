import pytest

from assessment.ai.transcript_scoring import normalize_words, score_transcript


REFERENCE = "The cat sat on the mat"


def test_normalize_strips_punctuation_and_case():
    assert normalize_words("Hello, WORLD! It's 9 o'clock.") == ["hello", "world", "it", "s", "o", "clock"]
    assert normalize_words("") == []
    assert normalize_words(None) == []


def test_exact_reading_scores_full_marks():
    result = score_transcript(REFERENCE, "the cat sat on the mat.")

    assert result.score == 100
    assert result.lcs_length == 6
    assert result.missing_ratio == 0
    assert result.extra_ratio == 0


def test_silence_scores_zero():
    result = score_transcript(REFERENCE, "")

    assert result.score == 0
    assert result.tokens == []


def test_word_order_matters():
    in_order = score_transcript(REFERENCE, REFERENCE)
    shuffled = score_transcript(REFERENCE, "mat the on sat cat the")

    # Same bag of words, so cosine and coverage are identical
    assert shuffled.cosine == pytest.approx(in_order.cosine)
    assert shuffled.vocab_coverage == in_order.vocab_coverage
    assert shuffled.score < in_order.score


def test_extra_words_are_penalised():
    padded = score_transcript(REFERENCE, "um the cat uh sat on like the mat you know")

    assert padded.lcs_length == 6
    assert padded.extra_ratio > 0
    assert 0 < padded.score < 100


def test_partial_reading_is_between_bounds():
    result = score_transcript(REFERENCE, "the cat sat")

    assert result.missing_ratio == pytest.approx(0.5)
    assert 0 < result.score < 100


@pytest.mark.parametrize("transcript", [
    "completely unrelated words here",
    "the " * 50,
    "mat mat mat mat mat mat mat mat",
    "[unclear] [unclear]",
])
def test_score_is_always_bounded(transcript):
    result = score_transcript(REFERENCE, transcript)

    assert 0 <= result.score <= 100


def test_tokens_flag_in_order_matches():
    result = score_transcript(REFERENCE, "The cat, um, sat")

    assert result.tokens == [
        {"word": "The", "match": True},
        {"word": "cat,", "match": True},
        {"word": "um,", "match": False},
        {"word": "sat", "match": False},
    ]


def test_metrics_are_rounded():
    metrics = score_transcript(REFERENCE, "the cat sat on a mat").metrics()

    assert metrics["reference_words"] == 6
    assert metrics["lcs_length"] == 5
    assert metrics["ordered_ratio"] == pytest.approx(0.8333)

import pytest

from briefguard.similarity import clip_excerpt, find_best_excerpt, split_sentences, text_similarity, tokenize


def test_tokenize_drops_stopwords_and_short_tokens() -> None:
    assert tokenize("The price of copper is up 12% in Q3") == ["price", "copper"]


def test_text_similarity_bounds() -> None:
    assert text_similarity("Copper premiums climbed", "copper premiums climbed") == pytest.approx(1.0)
    assert text_similarity("Copper premiums climbed", "Freight rates eased") == 0.0
    assert text_similarity("", "Copper premiums climbed") == 0.0
    assert text_similarity("of the and", "copper") == 0.0


def test_split_sentences_collapses_whitespace_and_keeps_trailing_fragment() -> None:
    text = "Smelter outages cut supply.\n\nPremiums rose!  Buyers wait"
    assert split_sentences(text) == ["Smelter outages cut supply.", "Premiums rose!", "Buyers wait"]
    assert split_sentences("   ") == []


def test_clip_excerpt_marks_truncation() -> None:
    assert clip_excerpt("  short text  ", 20) == "short text"
    clipped = clip_excerpt("a" * 40, 16)
    assert clipped.endswith("...")
    assert len(clipped) == 16


def test_find_best_excerpt_prefers_the_matching_sentence() -> None:
    content = (
        "Freight rates eased on Asia lanes. Smelter outages cut copper cathode supply in Chile. "
        "Analysts expect stable demand."
    )
    match = find_best_excerpt("Copper cathode supply was cut by smelter outages", content)
    assert match.excerpt == "Smelter outages cut copper cathode supply in Chile."
    assert match.similarity > 0.5


def test_find_best_excerpt_can_span_adjacent_sentences() -> None:
    content = "Smelter outages hit Chile. Cathode premiums doubled. Freight rates eased."
    match = find_best_excerpt("Smelter outages lifted cathode premiums", content)
    assert match.excerpt == "Smelter outages hit Chile. Cathode premiums doubled."


def test_find_best_excerpt_on_empty_content() -> None:
    match = find_best_excerpt("anything", "")
    assert match.excerpt == ""
    assert match.similarity == 0.0

"""
Tests for Weighted Vocabulary Scoring
"""

from src.traffic.models import BusinessType
from src.traffic.vocabulary import (
    SIZE,
    SIZE_RULES,
    TYPE_RULES,
    VocabularyRule,
    matched_terms,
    score_against_vocabularies,
    term_present,
)


RULES = (
    VocabularyRule("blog", 1, "blog"),
    VocabularyRule("about us", 2, "business"),
    VocabularyRule("inc.", 2, "business"),
    VocabularyRule("local", -2, "size"),
)


class TestMatching:
    """Whole-word, case-insensitive matching."""

    def test_case_insensitive(self):
        assert score_against_vocabularies("Read our BLOG", RULES)["blog"] == 1

    def test_whole_word_only(self):
        assert score_against_vocabularies("blogging tips", RULES)["blog"] == 0
        assert not term_present("weblog", "blog")

    def test_multi_word_phrase(self):
        assert score_against_vocabularies("<a>About Us</a>", RULES)["business"] == 2

    def test_term_ending_in_punctuation(self):
        assert score_against_vocabularies("Acme Inc. 2024", RULES)["business"] == 2

    def test_each_rule_counts_once(self):
        assert score_against_vocabularies("blog blog blog", RULES)["blog"] == 1

    def test_html_tags_do_not_break_words(self):
        assert score_against_vocabularies("<li>blog</li>", RULES)["blog"] == 1

    def test_negative_weights(self):
        assert score_against_vocabularies("a local bakery", RULES)["size"] == -2

    def test_all_categories_present(self):
        scores = score_against_vocabularies("", RULES)
        assert scores == {"blog": 0, "business": 0, "size": 0}

    def test_matched_terms_in_table_order(self):
        assert matched_terms("local blog, about us", RULES) == ["blog", "about us", "local"]


class TestTables:
    """Shape of the built-in vocabularies."""

    def test_long_enterprise_phrases_weigh_more(self):
        weights = {r.term: r.weight for r in TYPE_RULES if r.category == BusinessType.ENTERPRISE}
        assert weights["investor relations"] == 3
        assert weights["global"] == 2

    def test_tech_terms_score_enterprise_and_business(self):
        scores = score_against_vocabularies("Our webhook SDK", TYPE_RULES)
        assert scores[BusinessType.ENTERPRISE] == 2
        assert scores[BusinessType.BUSINESS] == 2

    def test_type_scores_cover_every_type(self):
        scores = score_against_vocabularies("", TYPE_RULES)
        assert set(scores) == set(BusinessType)

    def test_size_vocabulary(self):
        assert score_against_vocabularies("Our headquarters", SIZE_RULES)[SIZE] == 6
        assert score_against_vocabularies("Award-winning experts", SIZE_RULES)[SIZE] == 6
        assert score_against_vocabularies("A family business", SIZE_RULES)[SIZE] == -2
        assert score_against_vocabularies("Follow us on Instagram", SIZE_RULES)[SIZE] == 1

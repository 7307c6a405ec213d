"""Cache key derivation: determinism and normalization."""

from core.keys import cache_key, normalize_category, normalize_title


def test_argument_order_does_not_matter():
    assert cache_key("op", {"a": 1, "b": "x"}) == cache_key("op", {"b": "x", "a": 1})


def test_operation_name_is_part_of_the_key():
    assert cache_key("google_search", {"q": "x"}) != cache_key("site_search", {"q": "x"})


def test_queries_fold_case_and_whitespace():
    assert cache_key("google_search", {"q": "  Hello   World ", "num": 5}) == cache_key(
        "google_search", {"q": "hello world", "num": 5}
    )


def test_titles_follow_mediawiki_canonical_form():
    assert normalize_title("python_(programming language)") == "Python (programming language)"
    assert normalize_title("  iPhone  ") == "IPhone"
    # Only the first letter is case-insensitive on Wikipedia.
    assert cache_key("p", {"title": "New York"}) != cache_key("p", {"title": "New york"})


def test_category_prefix_is_canonical():
    assert normalize_category("physics") == "Category:Physics"
    assert normalize_category("category:physics") == "Category:Physics"
    assert normalize_category("Category:Physics") == "Category:Physics"


def test_language_lowercased():
    assert cache_key("p", {"title": "X", "lang": "EN"}) == cache_key("p", {"title": "X", "lang": "en"})


def test_num_is_clamped_to_api_range():
    assert cache_key("google_search", {"q": "x", "num": 50}) == cache_key("google_search", {"q": "x", "num": 10})


def test_none_arguments_dropped():
    assert cache_key("op", {"q": "x", "lang": None}) == cache_key("op", {"q": "x"})


def test_sites_sorted_and_deduplicated():
    assert cache_key("site_search", {"sites": ["B.org", "a.org", "b.org"]}) == cache_key(
        "site_search", {"sites": ["a.org", "b.org"]}
    )

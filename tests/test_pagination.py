"""Tests for report pagination and filter parsing."""

import unittest

from sca_results.pagination import (
    DEFAULT_ENTRIES_PER_PAGE,
    MAX_ENTRIES_PER_PAGE,
    matches_search,
    normalize_sort_direction,
    paginate,
    parse_active_filters,
    stable_sort,
)


class TestPaginate(unittest.TestCase):
    def setUp(self):
        self.rows = list(range(45))

    def test_first_page_with_defaults(self):
        page = paginate(self.rows, total_entries=60)
        self.assertEqual(page.data, list(range(20)))
        self.assertEqual(page.page, 0)
        self.assertEqual(page.entries_per_page, DEFAULT_ENTRIES_PER_PAGE)
        self.assertEqual(page.total_entries, 60)
        self.assertEqual(page.filter_count, 45)
        self.assertEqual(page.total_pages, 3)

    def test_last_partial_page(self):
        page = paginate(self.rows, 45, page=2, entries_per_page=20)
        self.assertEqual(page.data, [40, 41, 42, 43, 44])
        self.assertEqual(page.entry_count, 5)

    def test_page_past_end_is_empty(self):
        page = paginate(self.rows, 45, page=10, entries_per_page=20)
        self.assertEqual(page.data, [])
        self.assertEqual(page.total_pages, 3)

    def test_negative_page_serves_first_page(self):
        page = paginate(self.rows, 45, page=-3, entries_per_page=10)
        self.assertEqual(page.page, 0)
        self.assertEqual(page.data, list(range(10)))

    def test_invalid_page_size_uses_default(self):
        for size in (None, 0, -5):
            with self.subTest(size=size):
                self.assertEqual(paginate(self.rows, 45, entries_per_page=size).entries_per_page, 20)

    def test_oversized_page_size_saturates(self):
        page = paginate(list(range(250)), 250, entries_per_page=1000)
        self.assertEqual(page.entries_per_page, MAX_ENTRIES_PER_PAGE)
        self.assertEqual(len(page.data), 100)
        self.assertEqual(page.total_pages, 3)

    def test_empty_input(self):
        page = paginate([], 0)
        self.assertEqual(page.data, [])
        self.assertEqual(page.total_pages, 0)
        self.assertEqual(page.filter_count, 0)

    def test_to_dict_envelope(self):
        envelope = paginate([1, 2, 3], 3, entries_per_page=2).to_dict()
        self.assertEqual(
            envelope,
            {
                "data": [1, 2],
                "page": 0,
                "entries_per_page": 2,
                "entry_count": 2,
                "total_entries": 3,
                "total_pages": 2,
                "filter_count": 3,
            },
        )


class TestParseActiveFilters(unittest.TestCase):
    def test_bracketed_list(self):
        self.assertEqual(parse_active_filters("[MIT, Apache-2.0]"), ["MIT", "Apache-2.0"])

    def test_unbracketed_list(self):
        self.assertEqual(parse_active_filters("MIT,GPL-3.0-only"), ["MIT", "GPL-3.0-only"])

    def test_empty_tokens_dropped(self):
        self.assertEqual(parse_active_filters("[MIT,, ,Apache-2.0,]"), ["MIT", "Apache-2.0"])

    def test_empty_values(self):
        for value in (None, "", "[]", "[ ]"):
            with self.subTest(value=value):
                self.assertEqual(parse_active_filters(value), [])

    def test_only_one_bracket_pair_is_stripped(self):
        self.assertEqual(parse_active_filters("[[MIT]]"), ["[MIT]"])


class TestSortingAndSearch(unittest.TestCase):
    def test_sort_direction_normalization(self):
        self.assertEqual(normalize_sort_direction("asc"), "ASC")
        self.assertEqual(normalize_sort_direction("Desc"), "DESC")
        self.assertEqual(normalize_sort_direction("sideways", "ASC"), "ASC")
        self.assertEqual(normalize_sort_direction(None), "DESC")

    def test_stable_sort_keeps_input_order_for_ties(self):
        rows = [("b", 1), ("a", 2), ("c", 1), ("d", 2)]
        self.assertEqual(stable_sort(rows, lambda r: r[1], "ASC"), [("b", 1), ("c", 1), ("a", 2), ("d", 2)])
        self.assertEqual(stable_sort(rows, lambda r: r[1], "DESC"), [("a", 2), ("d", 2), ("b", 1), ("c", 1)])

    def test_matches_search_is_case_insensitive(self):
        self.assertTrue(matches_search("lodash", "LoDash"))
        self.assertTrue(matches_search("4.17", "lodash", "4.17.21"))
        self.assertFalse(matches_search("react", "lodash", None))
        self.assertTrue(matches_search(None, "anything"))
        self.assertTrue(matches_search("", "anything"))

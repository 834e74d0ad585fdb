"""
Tests for line parsing and index map construction.
"""
import unittest

from wordrank.common.errors import ParseError
from wordrank.indexer.index_map import RawEntry, build_index_map, parse_line


class TestParseLine(unittest.TestCase):
    def test_splits_at_first_delimiter_only(self):
        entry = parse_line('about,http://www.iht.com,http://www.nytimes.com')
        self.assertEqual(entry, RawEntry('about', 'http://www.iht.com,http://www.nytimes.com'))

    def test_url_key_with_count(self):
        self.assertEqual(parse_line('http://www.iht.com,1'), RawEntry('http://www.iht.com', '1'))

    def test_blank_lines_are_skipped(self):
        self.assertIsNone(parse_line(''))
        self.assertIsNone(parse_line('   '))

    def test_missing_delimiter_raises(self):
        with self.assertRaises(ParseError) as ctx:
            parse_line('orphan')
        self.assertEqual(ctx.exception.line, 'orphan')

    def test_empty_key_raises(self):
        with self.assertRaises(ParseError):
            parse_line(',1')

    def test_trailing_delimiter_gives_empty_value(self):
        self.assertEqual(parse_line('word,'), RawEntry('word', ''))


class TestBuildIndexMap(unittest.TestCase):
    def test_builds_map_in_insertion_order(self):
        result = build_index_map(
            "about,http://www.iht.com,http://www.nytimes.com\n"
            "http://www.iht.com,1\n"
            "http://www.nytimes.com,2\n"
        )
        self.assertEqual(list(result.index_map.keys()),
                         ['about', 'http://www.iht.com', 'http://www.nytimes.com'])
        self.assertEqual(result.index_map['http://www.nytimes.com'], '2')
        self.assertEqual(result.lines_read, 3)
        self.assertEqual(result.lines_skipped, 0)

    def test_last_write_wins_for_duplicate_keys(self):
        result = build_index_map("http://a.com,1\nsports,http://a.com\nhttp://a.com,7\n")
        self.assertEqual(result.index_map['http://a.com'], '7')
        self.assertEqual(list(result.index_map.keys()), ['http://a.com', 'sports'])

    def test_malformed_lines_are_counted_not_fatal(self):
        result = build_index_map("about,http://a.com\nnodelimiter\n\n,5\nhttp://a.com,3\n")
        self.assertEqual(result.lines_skipped, 2)
        self.assertEqual(dict(result.index_map), {'about': 'http://a.com', 'http://a.com': '3'})

    def test_handles_crlf_line_endings(self):
        result = build_index_map("http://a.com,3\r\nabout,http://a.com\r\n")
        self.assertEqual(result.index_map['http://a.com'], '3')
        self.assertEqual(result.index_map['about'], 'http://a.com')

    def test_only_newline_separates_lines(self):
        result = build_index_map("foo\x0cbar,http://a.com\nhttp://a.com,2\x85\n")
        self.assertEqual(dict(result.index_map), {
            'foo\x0cbar': 'http://a.com',
            'http://a.com': '2\x85',
        })
        self.assertEqual(result.lines_read, 2)
        self.assertEqual(result.lines_skipped, 0)

    def test_empty_input(self):
        result = build_index_map("")
        self.assertEqual(dict(result.index_map), {})
        self.assertEqual(result.lines_read, 0)

    def test_accepts_iterable_of_lines(self):
        result = build_index_map(iter(["about,http://a.com\n", "http://a.com,4\n"]))
        self.assertEqual(dict(result.index_map), {'about': 'http://a.com', 'http://a.com': '4'})

    def test_map_is_read_only(self):
        result = build_index_map("about,http://a.com\n")
        with self.assertRaises(TypeError):
            result.index_map['about'] = 'changed'

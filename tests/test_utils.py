"""
Tests for the URL predicate and helper functions.
"""
import unittest

from wordrank.common.utils import backoff_delay, chunked, is_url


class TestIsUrl(unittest.TestCase):
    def test_accepts_urls_from_inverted_index_output(self):
        for url in [
            'http://www.iht.com',
            'http://xgames.com/',
            'https://fivethirtyeight.com/datalab/what-kyrie-irvings-injury-could-mean-for-the-cavs-chances/',
            'http://espn.go.com',
            'https://recode.net:8443/path?q=1#frag',
            'ftp://files.example.org/pub',
            'http://127.0.0.1:8080/',
            'http://localhost/test',
        ]:
            with self.subTest(url=url):
                self.assertTrue(is_url(url))

    def test_rejects_words(self):
        for word in ['about', 'sports', 'distributed', '', '42', 'http', 'www']:
            with self.subTest(word=word):
                self.assertFalse(is_url(word))

    def test_rejects_malformed_urls(self):
        for value in [
            'www.iht.com',            # no scheme
            'mailto:someone@iht.com',
            'http://',
            'http://iht',             # no TLD
            'http://-bad-.com',
            'http://999.1.1.1',
            'http://iht.com:99999',
            'http://iht .com',
            'javascript://iht.com',
        ]:
            with self.subTest(value=value):
                self.assertFalse(is_url(value))


class TestChunked(unittest.TestCase):
    def test_splits_into_bounded_slices(self):
        self.assertEqual(chunked(list(range(7)), 3), [[0, 1, 2], [3, 4, 5], [6]])

    def test_empty_list(self):
        self.assertEqual(chunked([], 25), [])

    def test_rejects_zero_size(self):
        with self.assertRaises(ValueError):
            chunked([1], 0)


class TestBackoffDelay(unittest.TestCase):
    def test_doubles_per_attempt(self):
        self.assertEqual([backoff_delay(n, 0.5, 100) for n in (1, 2, 3, 4)], [0.5, 1.0, 2.0, 4.0])

    def test_is_capped(self):
        self.assertEqual(backoff_delay(10, 0.5, 3.0), 3.0)

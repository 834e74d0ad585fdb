"""
Generates WordUrlRank records from the index map.

URL keys never produce records of their own. They are only looked up to
find the rank of the sites listed under each word.
"""
import logging
from dataclasses import dataclass
from typing import Iterator, List, Mapping, Tuple

from wordrank.common.config import INPUT_DELIMITER
from wordrank.common.utils import is_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Record:
    """A single (word, url, rank) row."""
    word: str
    url: str
    rank: int = 0

    def key(self) -> Tuple[str, str]:
        return (self.word, self.url)

    def to_put_request(self):
        """Shape the record as a DynamoDB BatchWriteItem put request."""
        return {
            'PutRequest': {
                'Item': {
                    'Word': {'S': self.word},
                    'Url': {'S': self.url},
                    'Rank': {'N': str(self.rank)},
                }
            }
        }


@dataclass(frozen=True)
class IndexEntry:
    """The raw word -> sites mapping, written when the index sink is enabled."""
    word: str
    sites: Tuple[str, ...]

    def key(self) -> Tuple[str]:
        return (self.word,)

    def to_put_request(self):
        return {
            'PutRequest': {
                'Item': {
                    'Word': {'S': self.word},
                    'Sites': {'L': [{'S': site} for site in self.sites]},
                }
            }
        }


def parse_rank(raw_value):
    """Parse a URL occurrence count, falling back to 0 when missing or malformed."""
    if raw_value is None:
        return 0
    try:
        rank = int(raw_value.strip())
    except ValueError:
        return 0
    return rank if rank > 0 else 0


def split_sites(word, raw_value, delimiter=INPUT_DELIMITER) -> List[str]:
    """Split a word's site list, dropping empty names."""
    sites = raw_value.split(delimiter)
    kept = [site for site in sites if site]
    if len(kept) != len(sites):
        logger.warning(f"Skipping {len(sites) - len(kept)} empty site name(s) listed for word {word!r}")
    return kept


def iter_words(index_map: Mapping[str, str]) -> Iterator[Tuple[str, str]]:
    """Yield (word, raw_value) for every key that is not itself a URL."""
    for key, raw_value in index_map.items():
        if is_url(key):
            continue
        yield key, raw_value


def generate_records(index_map: Mapping[str, str], delimiter=INPUT_DELIMITER) -> Iterator[Record]:
    """
    Yield a Record for every site of every word, in map order then site order.

    Args:
        index_map: Completed, read-only key -> raw value map
        delimiter: Separator used in the site list

    Yields:
        Record(word, site, rank) where rank is the site's own entry in the
        map, or 0 when the site has no usable entry.
    """
    for word, raw_value in iter_words(index_map):
        for site in split_sites(word, raw_value, delimiter):
            yield Record(word=word, url=site, rank=parse_rank(index_map.get(site)))


def generate_index_entries(index_map: Mapping[str, str], delimiter=INPUT_DELIMITER) -> Iterator[IndexEntry]:
    """Yield the word -> sites mapping for every word key."""
    for word, raw_value in iter_words(index_map):
        yield IndexEntry(word=word, sites=tuple(split_sites(word, raw_value, delimiter)))

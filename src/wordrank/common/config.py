"""
Configuration settings for the inverted index loader.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional

# AWS region
AWS_REGION = 'us-east-1'  # Change to your preferred region

# DynamoDB table names
WORD_URL_RANK_TABLE = 'WordUrlRank'
WORD_SITES_TABLE = 'WordSites'

# Input format
INPUT_DELIMITER = ','

# Batch write settings
BATCH_WRITE_LIMIT = 25  # DynamoDB BatchWriteItem accepts at most 25 put requests
DEFAULT_MAX_WORKERS = 4  # batches in flight at once
DEFAULT_MAX_RETRIES = 5  # resubmissions per batch after the first attempt

# Backoff settings (seconds)
BACKOFF_BASE = 0.05
BACKOFF_MAX = 5.0

# Logging
LOG_FILE = 'wordrank_loader.log'


class Sink(Enum):
    """Output sinks a run can write to."""
    RANK_RECORDS = 'rank'
    INDEX_ENTRIES = 'index'

    @classmethod
    def parse(cls, value):
        """Parse a comma separated sink list such as 'rank,index'."""
        sinks = set()
        for name in value.split(','):
            name = name.strip()
            if not name:
                continue
            try:
                sinks.add(cls(name))
            except ValueError:
                choices = ', '.join(s.value for s in cls)
                raise ValueError(f"Unknown sink '{name}' (choose from: {choices})")
        if not sinks:
            raise ValueError("At least one sink is required")
        return frozenset(sinks)


@dataclass
class LoaderConfig:
    """Everything a single loader run needs."""
    input_path: Optional[str]
    sinks: FrozenSet[Sink] = field(default_factory=lambda: frozenset({Sink.RANK_RECORDS}))
    region_name: str = AWS_REGION
    rank_table: str = WORD_URL_RANK_TABLE
    index_table: str = WORD_SITES_TABLE
    batch_size: int = BATCH_WRITE_LIMIT
    max_workers: int = DEFAULT_MAX_WORKERS
    max_retries: int = DEFAULT_MAX_RETRIES
    backoff_base: float = BACKOFF_BASE
    backoff_max: float = BACKOFF_MAX

    def __post_init__(self):
        self.sinks = frozenset(self.sinks)
        if not self.sinks:
            raise ValueError("At least one sink is required")
        if not 1 <= self.batch_size <= BATCH_WRITE_LIMIT:
            raise ValueError(f"batch_size must be between 1 and {BATCH_WRITE_LIMIT}, got {self.batch_size}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must not be negative, got {self.max_retries}")
        if self.backoff_base < 0 or self.backoff_max < 0:
            raise ValueError("Backoff delays must not be negative")

    def table_for(self, sink):
        """Return the DynamoDB table a sink writes to."""
        if sink is Sink.RANK_RECORDS:
            return self.rank_table
        return self.index_table

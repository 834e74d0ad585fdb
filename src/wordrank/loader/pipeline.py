"""
Single entry point that loads inverted index output into DynamoDB.

Stages run one after another: read the input file, build and freeze the
index map, generate payloads for every configured sink, then write them.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List

from wordrank.common.config import LoaderConfig, Sink
from wordrank.common.errors import InputError
from wordrank.indexer.index_map import build_index_map
from wordrank.indexer.records import generate_index_entries, generate_records
from wordrank.writer.batch_writer import BatchWriter, FailedRecord, WriteReport
from wordrank.writer.store import DynamoStore

logger = logging.getLogger(__name__)

# Sinks are written in this order regardless of how they were configured
SINK_ORDER = (Sink.RANK_RECORDS, Sink.INDEX_ENTRIES)

GENERATORS = {
    Sink.RANK_RECORDS: generate_records,
    Sink.INDEX_ENTRIES: generate_index_entries,
}


@dataclass
class PipelineReport:
    lines_read: int = 0
    lines_skipped: int = 0
    records_generated: int = 0
    writes: Dict[Sink, WriteReport] = field(default_factory=dict)

    @property
    def written(self):
        return sum(w.written for w in self.writes.values())

    @property
    def failed(self) -> List[FailedRecord]:
        return [f for w in self.writes.values() for f in w.failed]

    @property
    def ok(self):
        return not self.failed


def read_input(path):
    """Read the whole inverted index output file as text."""
    if not path:
        raise InputError("Input params must include: -i INVERTED_INDEX_RESULTS_FILE_PATH")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise InputError(f"Failed to open the inverted index input file {path}: {e}") from e


def run_pipeline(config: LoaderConfig, store=None, reader=read_input, stop_event=None) -> PipelineReport:
    """
    Run one load.

    Args:
        config: Explicit run configuration
        store: Object with batch_write(table, requests); a DynamoStore for
            config.region_name is created when omitted
        reader: Callable returning the file contents for a path
        stop_event: threading.Event that, once set, stops new batches

    Raises:
        InputError: if the input cannot be read. Nothing is written.
    """
    data = reader(config.input_path)
    logger.info(f"Read {len(data)} characters from {config.input_path}")

    build = build_index_map(data)
    report = PipelineReport(lines_read=build.lines_read, lines_skipped=build.lines_skipped)

    if store is None:
        store = DynamoStore(region_name=config.region_name)

    for sink in SINK_ORDER:
        if sink not in config.sinks:
            continue

        payloads = list(GENERATORS[sink](build.index_map))
        if sink is Sink.RANK_RECORDS:
            report.records_generated = len(payloads)
        logger.info(f"Generated {len(payloads)} item(s) for sink '{sink.value}'")

        writer = BatchWriter(
            store,
            config.table_for(sink),
            batch_size=config.batch_size,
            max_workers=config.max_workers,
            max_retries=config.max_retries,
            backoff_base=config.backoff_base,
            backoff_max=config.backoff_max,
            stop_event=stop_event,
        )
        report.writes[sink] = writer.write(payloads)

    return report

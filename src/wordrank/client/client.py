"""
Command line tool that inserts inverted index results into DynamoDB.

Usage:
    wordrank-insert -i /input/invertedindex.txt
    wordrank-insert -i /input/invertedindex.txt --sinks rank,index --workers 8

Input example:
    about,http://www.iht.com,http://www.nytimes.com,http://espn.go.com
    http://www.iht.com,1
    http://www.nytimes.com,2
"""
import argparse
import logging
import signal
import sys
import threading
import traceback

from wordrank.common.config import (
    AWS_REGION, BACKOFF_BASE, BACKOFF_MAX, BATCH_WRITE_LIMIT,
    DEFAULT_MAX_RETRIES, DEFAULT_MAX_WORKERS, LOG_FILE,
    WORD_SITES_TABLE, WORD_URL_RANK_TABLE, LoaderConfig, Sink
)
from wordrank.common.errors import InputError
from wordrank.indexer.records import Record
from wordrank.loader.pipeline import run_pipeline

logger = logging.getLogger("loader")

EXIT_OK = 0
EXIT_WRITE_FAILED = 1
EXIT_INPUT_ERROR = 3


def setup_logging(log_file=LOG_FILE, verbose=False):
    """Configure console and file logging."""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] [Loader] %(message)s',
        handlers=handlers,
    )


def build_parser():
    parser = argparse.ArgumentParser(description='Insert inverted index results into DynamoDB')
    parser.add_argument('-i', '--input', dest='input_path', required=True,
                        help='Inverted index results input file path')
    parser.add_argument('--sinks', type=Sink.parse, default=frozenset({Sink.RANK_RECORDS}),
                        help="Comma separated output sinks: 'rank' and/or 'index' (default: rank)")
    parser.add_argument('--region', default=AWS_REGION, help='AWS region')
    parser.add_argument('--rank-table', default=WORD_URL_RANK_TABLE, help='Table for word/url/rank records')
    parser.add_argument('--index-table', default=WORD_SITES_TABLE, help='Table for word/sites entries')
    parser.add_argument('--batch-size', type=int, default=BATCH_WRITE_LIMIT, help='Items per batch write')
    parser.add_argument('--workers', type=int, default=DEFAULT_MAX_WORKERS, help='Batches in flight at once')
    parser.add_argument('--max-retries', type=int, default=DEFAULT_MAX_RETRIES,
                        help='Retries per batch for unprocessed items')
    parser.add_argument('--backoff-base', type=float, default=BACKOFF_BASE, help='First retry delay in seconds')
    parser.add_argument('--backoff-max', type=float, default=BACKOFF_MAX, help='Maximum retry delay in seconds')
    parser.add_argument('--log-file', default=LOG_FILE, help="Log file path ('' to disable)")
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    return parser


def describe(payload):
    if isinstance(payload, Record):
        return f"word={payload.word!r} url={payload.url!r}"
    return f"word={payload.word!r}"


def print_report(report):
    """Print the run summary."""
    print(f"Lines read: {report.lines_read}")
    print(f"Lines skipped: {report.lines_skipped}")
    print(f"Records generated: {report.records_generated}")
    for sink, write in report.writes.items():
        print(f"[{sink.value}] {write.table}: {write.written} written, "
              f"{write.duplicates} duplicates collapsed, {len(write.failed)} failed")
    for failure in report.failed:
        print(f"  ✗ {describe(failure.payload)}: {failure.error}")


def main(argv=None):
    """Main function to run the insert tool."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_file, args.verbose)

    try:
        config = LoaderConfig(
            input_path=args.input_path,
            sinks=args.sinks,
            region_name=args.region,
            rank_table=args.rank_table,
            index_table=args.index_table,
            batch_size=args.batch_size,
            max_workers=args.workers,
            max_retries=args.max_retries,
            backoff_base=args.backoff_base,
            backoff_max=args.backoff_max,
        )
    except ValueError as e:
        parser.error(str(e))

    stop_event = threading.Event()

    def handle_signal(signum, frame):
        logger.warning(f"Received signal {signum}, no new batches will be dispatched")
        stop_event.set()

    previous = {sig: signal.signal(sig, handle_signal) for sig in (signal.SIGINT, signal.SIGTERM)}

    try:
        report = run_pipeline(config, stop_event=stop_event)
    except InputError as e:
        logger.error(str(e))
        return EXIT_INPUT_ERROR
    except Exception as e:
        logger.error(f"Load failed: {e}")
        logger.error(traceback.format_exc())
        return EXIT_WRITE_FAILED
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    print_report(report)
    if not report.ok:
        logger.error(f"Failed to insert {len(report.failed)} item(s)")
        return EXIT_WRITE_FAILED

    tables = ', '.join(w.table for w in report.writes.values())
    logger.info(f"Inserted {report.written} item(s) into {tables}")
    return EXIT_OK


def main_entry():
    sys.exit(main())


if __name__ == "__main__":
    main_entry()

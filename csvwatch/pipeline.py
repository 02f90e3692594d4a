## csvwatch/pipeline.py

from __future__ import annotations
import io, os, re
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, List

import pandas as pd

from .bus import NotificationBus
from .errors import CsvImportError, ParseError, ReadError, UnsupportedFormat
from .schemas import ChangeEvent, ImportResult
from .utils import logger

_LINE_RE = re.compile(r"(line|row) (\d+)")


def is_csv(path: str) -> bool:
    return os.path.splitext(path)[1] == ".csv"


def read_input(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise ReadError(path, f"not valid UTF-8 ({e.reason})") from e
    except OSError as e:
        raise ReadError(path, e.strerror or str(e)) from e


def parse_csv(text: str, source: str = "<string>") -> List[Dict[str, str]]:
    """Parse CSV text into one record per data row, keyed by the header.

    Every cell stays a string; nothing is converted to NaN. Short rows are
    padded with "" by the pandas tokenizer. Duplicate header names are
    rejected rather than renamed.
    """
    try:
        df = pd.read_csv(io.StringIO(text), dtype=str, na_filter=False)
    except pd.errors.EmptyDataError as e:
        raise ParseError(source, 1, str(e)) from e
    except pd.errors.ParserError as e:
        m = _LINE_RE.search(str(e))
        row = 0
        if m:
            # "line N" is 1-based, "row N" (unterminated quote) is 0-based
            row = int(m.group(2)) + (1 if m.group(1) == "row" else 0)
        raise ParseError(source, row, str(e).strip()) from e
    if not isinstance(df.index, pd.RangeIndex):
        # pandas turned the first column into an index: rows are wider than the header
        raise ParseError(source, 2, f"expected {len(df.columns)} fields, saw {len(df.columns) + 1}")
    header = pd.read_csv(io.StringIO(text), header=None, nrows=1, dtype=str, na_filter=False).iloc[0].tolist()
    dupes = sorted({h for h in header if header.count(h) > 1})
    if dupes:
        raise ParseError(source, 1, f"duplicate column names {dupes}")
    return df.to_dict(orient="records")


def import_file(path: str) -> ImportResult:
    if not is_csv(path):
        raise UnsupportedFormat(path)
    records = parse_csv(read_input(path), source=path)
    logger.info(f"Imported OK: {path} -> {len(records)} records")
    logger.debug(f"Records from {path}: {records}")
    return ImportResult(source_file=path, records=records)


class Importer:
    """Converts every file announced on a bus.

    The bare filename of each event is resolved against `watch_path` and
    imported on a worker thread, so conversions overlap each other and the
    next poll cycle. Import failures are reported and turned into failed
    ImportResults; they never reach the bus or the watcher.
    """

    def __init__(self, bus: NotificationBus, watch_path: str, reporter=None, max_workers: int = 4):
        self.watch_path = watch_path
        self.reporter = reporter
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="csvwatch-import")
        self._subscription = bus.subscribe(self.on_change)

    def resolve(self, filename: str) -> str:
        return os.path.abspath(os.path.join(self.watch_path, filename))

    def on_change(self, event: ChangeEvent) -> Future:
        logger.info(f"New file detected: {event.filename}")
        return self._pool.submit(self.run_import, self.resolve(event.filename))

    def run_import(self, path: str) -> ImportResult:
        try:
            return import_file(path)
        except CsvImportError as e:
            if self.reporter is not None:
                self.reporter.report(path, e)
            else:
                logger.error(f"Failed importing {path}: {e}")
            return ImportResult(source_file=path, error=str(e))
        except Exception as e:
            # nobody waits on the future, so this is the only place it surfaces
            logger.exception(f"Unexpected failure importing {path}: {e}")
            if self.reporter is not None:
                self.reporter.report(path, e)
            return ImportResult(source_file=path, error=f"{type(e).__name__}: {e}")

    def close(self, wait: bool = True):
        self._subscription.cancel()
        self._pool.shutdown(wait=wait)

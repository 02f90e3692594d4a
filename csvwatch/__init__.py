"""
csvwatch package: poll a directory and import each new CSV file once.
- tracker: in-memory set of file names already announced
- watcher: DirWatcher poll loop and the `run` entry point
- bus: publish/subscribe channel for ChangeEvents
- pipeline: CSV import (validate → read → parse) and the Importer subscriber
- alerts: failure reporting via log/email/slack
- schemas: pydantic models and YAML config
- errors: exception taxonomy
- utils: logging and config helpers
"""

from dotenv import load_dotenv

from .bus import NotificationBus, Subscription
from .errors import (
    ConfigError,
    CsvImportError,
    ListingError,
    ParseError,
    ReadError,
    UnsupportedFormat,
    WatchError,
)
from .pipeline import Importer, import_file
from .schemas import ChangeEvent, ImportResult, WatchConfig, WatchTarget
from .tracker import ChangeTracker
from .watcher import DirWatcher

__all__ = [
    "ChangeEvent",
    "ChangeTracker",
    "ConfigError",
    "CsvImportError",
    "DirWatcher",
    "ImportResult",
    "Importer",
    "ListingError",
    "NotificationBus",
    "ParseError",
    "ReadError",
    "Subscription",
    "UnsupportedFormat",
    "WatchConfig",
    "WatchError",
    "WatchTarget",
    "import_file",
]

__version__ = "0.1.0"

# pick up SMTP_* / SLACK_WEBHOOK_URL from a local .env
load_dotenv()

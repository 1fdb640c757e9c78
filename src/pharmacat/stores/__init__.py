"""Record stores: one product table, several places to keep it."""

from .base import DraftInput, ImportReport, RecordStore
from .csv_overlay import CsvOverlayRecordStore, OverlayState
from .factory import build_record_store
from .remote import RemoteRecordStore
from .sql import EmbeddedRecordStore, SqliteFileRecordStore, SqlRecordStore

__all__ = [
    "CsvOverlayRecordStore",
    "DraftInput",
    "EmbeddedRecordStore",
    "ImportReport",
    "OverlayState",
    "RecordStore",
    "RemoteRecordStore",
    "SqlRecordStore",
    "SqliteFileRecordStore",
    "build_record_store",
]

from dataclasses import dataclass

from src.pharmacat.catalog import CatalogReference
from src.pharmacat.stores import RecordStore


@dataclass
class ApplicationDependencies:
    record_store: RecordStore
    catalog: CatalogReference

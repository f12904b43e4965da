"""Store package: CSV-backed record stores.

Exports:
- RecordStore, StoreError: generic whole-collection CSV store
- create_users_store, create_trainings_store: per-entity factories
"""
from .record_store import RecordStore, StoreError  # noqa: F401
from .users import create_users_store  # noqa: F401
from .trainings import create_trainings_store  # noqa: F401

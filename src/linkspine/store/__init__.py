"""
Link storage.

Modules:
    sqlite: LinkStore over the Connection protocol
    schema: DDL bootstrap and link kind registration
    memory: dict-backed store with call counting
"""

from linkspine.store.memory import InMemoryStore
from linkspine.store.schema import apply_schema, init_store, register_link_kind, unregister_link_kind
from linkspine.store.sqlite import LinkStore

__all__ = [
    "InMemoryStore",
    "LinkStore",
    "apply_schema",
    "init_store",
    "register_link_kind",
    "unregister_link_kind",
]

from .codec import decode_snapshot, encode_snapshot
from .stores import InMemorySnapshotStore, JsonFileSnapshotStore

__all__ = [
    "decode_snapshot",
    "encode_snapshot",
    "InMemorySnapshotStore",
    "JsonFileSnapshotStore",
]

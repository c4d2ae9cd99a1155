"""Persistence layer -- JSON state blob codec and file-backed store."""

from redenom.storage.state import (
    StateStore,
    decode_rate_table,
    decode_state,
    dumps_state,
    encode_rate_table,
    encode_state,
    loads_state,
)

__all__ = [
    "StateStore",
    "decode_rate_table",
    "decode_state",
    "dumps_state",
    "encode_rate_table",
    "encode_state",
    "loads_state",
]

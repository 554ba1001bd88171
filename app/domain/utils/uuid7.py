"""
UUIDv7 generator following RFC 9562.

Library entries, reading sessions and domain events are identified with
time-ordered UUIDs:

- The first 48 bits hold the Unix timestamp in milliseconds, so identifiers
  created later sort after earlier ones.
- Sessions of the same book are inserted in logging order, which keeps the
  reading_sessions primary key index append-mostly in SQLite.
- The remaining random bits keep identifiers globally unique.

RFC 9562: https://www.rfc-editor.org/rfc/rfc9562.html
"""

import os
import time
from uuid import UUID


def uuid7() -> UUID:
    """
    Generate a UUIDv7 (time-ordered).

    Layout (128 bits):
    - 48 bits: Unix timestamp in milliseconds
    - 4 bits: version (0111)
    - 12 bits: random (rand_a)
    - 2 bits: variant (10)
    - 62 bits: random (rand_b)

    Example:
        >>> from app.domain.utils.uuid7 import uuid7
        >>> uuid7().version
        7
    """
    timestamp_ms = int(time.time() * 1000)
    random_bytes = os.urandom(10)

    ts_bytes = timestamp_ms.to_bytes(6, byteorder="big")

    # version nibble + high bits of rand_a
    byte_6 = 0x70 | (random_bytes[0] & 0x0F)
    byte_7 = random_bytes[1]

    # variant bits + start of rand_b
    byte_8 = 0x80 | (random_bytes[2] & 0x3F)
    rand_b_bytes = random_bytes[3:10]

    return UUID(bytes=ts_bytes + bytes([byte_6, byte_7, byte_8]) + rand_b_bytes)

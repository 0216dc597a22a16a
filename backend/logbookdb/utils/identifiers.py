from __future__ import annotations

import secrets
import time
import uuid


def generate_uuid7() -> str:
    """
    Time-ordered UUIDv7 string used as the primary key of every table.

    48-bit millisecond timestamp, then version/variant bits around
    74 random bits.
    """
    value = int(time.time() * 1000) << 80
    value |= secrets.randbits(80)
    value &= ~(0xF << 76)
    value |= 0x7 << 76
    value &= ~(0x3 << 62)
    value |= 0x2 << 62
    return str(uuid.UUID(int=value))

"""Fixed-width little-endian reads from a byte buffer."""

from __future__ import annotations

import struct

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")


def read_u16_le(buffer, offset: int) -> int:
    """Unsigned 16-bit integer at `offset`. Raises struct.error past the end."""
    return _U16.unpack_from(buffer, offset)[0]


def read_u32_le(buffer, offset: int) -> int:
    """Unsigned 32-bit integer at `offset`. Raises struct.error past the end."""
    return _U32.unpack_from(buffer, offset)[0]

"""Typed reads over a stream of 5-bit groups.

Bech32 spits out one 5-bit group per byte. The reader concatenates groups
into bit arrays and reinterprets them as integers, bytes, text or bit sets,
advancing a cursor that never rewinds.
"""

from __future__ import annotations

from datetime import datetime, timezone

import bitstring

from ln_invoice.exceptions import TruncatedStreamError
from ln_invoice.tagged_field import TaggedField


def u5_to_bitarray(groups: bytes) -> bitstring.BitArray:
    """Concatenate the low 5 bits of each group, left to right."""
    ret = bitstring.BitArray()
    for group in groups:
        ret += bitstring.pack("uint:5", group)
    return ret


class BitStreamReader:
    """Single-use, single-pass reader over 5-bit groups.

    Every read consumes whole groups. Reading past the end raises
    :class:`TruncatedStreamError` instead of returning a short value.
    """

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def at_end(self) -> bool:
        return self._pos >= len(self._data)

    def _take(self, groups: int) -> bytes:
        if groups < 0 or groups > self.remaining:
            raise TruncatedStreamError(groups, self.remaining)
        ans = self._data[self._pos:self._pos + groups]
        self._pos += groups
        return ans

    def read_uint(self, groups: int) -> int:
        """Read ``groups`` groups as one big-endian unsigned integer."""
        acc = 0
        for group in self._take(groups):
            acc = (acc << 5) | group
        return acc

    def read_bit_aligned_bytes(self, bit_count: int) -> bytes:
        """Read the first ``bit_count`` bits of the next ``ceil(bit_count / 5)``
        groups and repack them into bytes.

        Unused bits of the last group are dropped. A trailing partial byte is
        padded with zero bits on the right.
        """
        groups = -(-bit_count // 5)
        bits = u5_to_bitarray(self._take(groups))[:bit_count]
        return bits.tobytes()

    def read_text(self, groups: int) -> str:
        """Read ``groups`` groups as UTF-8, discarding any sub-byte remainder."""
        bits = groups * 5
        return self.read_bit_aligned_bytes(bits - bits % 8).decode("utf-8")

    def read_timestamp(self, groups: int) -> datetime:
        """Read seconds since the epoch."""
        return datetime.fromtimestamp(self.read_uint(groups), tz=timezone.utc)

    def read_bit_set(self, groups: int) -> set[int]:
        """Read an unsigned integer and return the positions of its set bits."""
        value = self.read_uint(groups)
        return {i for i in range(value.bit_length()) if (value >> i) & 1}

    def read_tagged_field(self) -> TaggedField:
        tag = self.read_uint(1)
        size = self.read_uint(2)
        return TaggedField(tag, size, self._take(size))

    def read_tagged_fields(self) -> list[TaggedField]:
        """Read tagged fields until the stream is exhausted."""
        fields = []
        while not self.at_end():
            fields.append(self.read_tagged_field())
        return fields

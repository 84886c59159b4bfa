"""Tagged fields of a BOLT-11 invoice body."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

import bitstring

# pubkey (264) + short_channel_id (64) + fee_base_msat (32)
# + fee_proportional_millionths (32) + cltv_expiry_delta (16)
_ROUTE_HOP_BITS = 264 + 64 + 32 + 32 + 16


@dataclass(frozen=True)
class TaggedField:
    """A raw (tag, length, data) record. ``data`` holds one 5-bit group per byte."""

    tag: int
    size: int
    data: bytes


class FieldTag(IntEnum):
    PAYMENT_HASH = 1
    EXTRA_ROUTING_INFO = 3
    FEATURE_BITS = 5
    EXPIRY = 6
    FALLBACK_ON_CHAIN_ADDRESS = 9
    DESCRIPTION = 13
    SECRET = 16
    PAYEE_NODE = 19
    DESCRIPTION_HASH = 23
    MIN_FINAL_CLTV_EXPIRY_DELTA = 24
    METADATA = 27

    @classmethod
    def valid_tags(cls) -> set[int]:
        return {tag.value for tag in cls}


@dataclass(frozen=True)
class RouteHint:
    """One hop of a private route from an ``r`` (3) field."""

    pubkey: str
    short_channel_id: str
    fee_base_msat: int
    fee_proportional_millionths: int
    cltv_expiry_delta: int

    @classmethod
    def parse_all(cls, data: bytes) -> list[RouteHint]:
        """Split the byte-aligned contents of a routing field into hops.

        Trailing bits that do not fill a whole hop are ignored.
        """
        hops = []
        bits = bitstring.Bits(data)
        for pos in range(0, len(bits) - _ROUTE_HOP_BITS + 1, _ROUTE_HOP_BITS):
            hop = bits[pos:pos + _ROUTE_HOP_BITS]
            hops.append(
                cls(
                    pubkey=hop[:264].tobytes().hex(),
                    short_channel_id=_readable_scid(hop[264:328].uint),
                    fee_base_msat=hop[328:360].uint,
                    fee_proportional_millionths=hop[360:392].uint,
                    cltv_expiry_delta=hop[392:408].uint,
                )
            )
        return hops


def _readable_scid(short_channel_id: int) -> str:
    """Format as ``block x transaction x output``."""
    return (
        f"{(short_channel_id >> 40) & 0xFFFFFF}"
        f"x{(short_channel_id >> 16) & 0xFFFFFF}"
        f"x{short_channel_id & 0xFFFF}"
    )

"""Bech32 and Bech32m checksummed base-32 codec (BIP-173 / BIP-350).

Decoding yields the human-readable part and the data part as 5-bit groups,
one group per byte. Repacking the groups into 8-bit bytes is left to
:class:`ln_invoice.bitreader.BitStreamReader`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from ln_invoice.exceptions import Bech32FormatError, InvalidChecksumError

CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"

_CHARSET_REV: dict[str, int] = {c: i for i, c in enumerate(CHARSET)}

_GENERATOR = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)

_CHECKSUM_LENGTH = 6

_MAX_HRP_LENGTH = 83

# Two disjoint forms: all lowercase or all uppercase. The HRP is greedy, so
# the separator is the last "1" that still leaves six data characters.
_LOWER_RE = re.compile(r"(?P<hrp>[!-@\[-~]{1,83})1(?P<data>[!-@\[-~]{6,})")
_UPPER_RE = re.compile(r"(?P<hrp>[!-`{-~]{1,83})1(?P<data>[!-`{-~]{6,})")


class Encoding(Enum):
    """Checksum variant, identified by the constant the checksum reduces to."""

    BECH32 = 1
    BECH32M = 0x2BC830A3

    @property
    def const(self) -> int:
        return self.value


@dataclass(frozen=True)
class Bech32Payload:
    """Decoded Bech32 data: the human-readable part and 5-bit data groups."""

    encoding: Encoding
    hrp: str
    payload: bytes

    def __post_init__(self) -> None:
        if not self.hrp:
            raise ValueError("hrp cannot be empty")
        if len(self.hrp) > _MAX_HRP_LENGTH:
            raise ValueError(f"hrp is too long: {len(self.hrp)} > {_MAX_HRP_LENGTH}")
        if any(group > 31 for group in self.payload):
            raise ValueError("payload values must be 5-bit groups (0-31)")

    @property
    def encoded(self) -> str:
        return encode_bech32(self.encoding, self.hrp, self.payload)


def _polymod(values: bytes) -> int:
    """Find the polynomial with value coefficients mod the generator as 30-bit."""
    chk = 1
    for value in values:
        top = chk >> 25
        chk = ((chk & 0x1FFFFFF) << 5) ^ value
        for i, gen in enumerate(_GENERATOR):
            if (top >> i) & 1:
                chk ^= gen
    return chk


def _expand_hrp(hrp: str) -> bytes:
    """High 3 bits of each character, a zero separator, then the low 5 bits."""
    ascii_values = [ord(c) & 0x7F for c in hrp]
    return bytes([c >> 5 for c in ascii_values] + [0] + [c & 31 for c in ascii_values])


def _verify_checksum(hrp: str, values: bytes) -> Encoding:
    checksum = _polymod(_expand_hrp(hrp) + values)
    for encoding in Encoding:
        if checksum == encoding.const:
            return encoding
    raise InvalidChecksumError(checksum)


def _create_checksum(encoding: Encoding, hrp: str, payload: bytes) -> bytes:
    mod = _polymod(_expand_hrp(hrp) + payload + bytes(_CHECKSUM_LENGTH)) ^ encoding.const
    return bytes((mod >> (5 * (5 - i))) & 31 for i in range(_CHECKSUM_LENGTH))


def decode_bech32(text: str) -> Bech32Payload:
    """Decode a Bech32 or Bech32m string.

    Args:
        text: The encoded string, entirely lowercase or entirely uppercase.

    Returns:
        The payload, with a lowercase HRP and the checksum words removed.

    Raises:
        Bech32FormatError: If the text is malformed or has a character outside
            the Bech32 alphabet.
        InvalidChecksumError: If the checksum does not verify.
    """
    match = _LOWER_RE.fullmatch(text) or _UPPER_RE.fullmatch(text)
    if not match:
        raise Bech32FormatError("Unparseable format")

    hrp = match.group("hrp").lower()
    try:
        values = bytes(_CHARSET_REV[c] for c in match.group("data").lower())
    except KeyError:
        raise Bech32FormatError("Invalid character") from None

    encoding = _verify_checksum(hrp, values)
    return Bech32Payload(encoding, hrp, values[:-_CHECKSUM_LENGTH])


def encode_bech32(encoding: Encoding, hrp: str, payload: bytes) -> str:
    """Encode 5-bit groups under the given HRP with a checksum.

    The HRP is lowercased, so ``decode_bech32(s).encoded == s.lower()``.
    """
    hrp = hrp.lower()
    combined = bytes(payload) + _create_checksum(encoding, hrp, bytes(payload))
    return hrp + "1" + "".join(CHARSET[group] for group in combined)

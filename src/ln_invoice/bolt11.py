"""BOLT-11 payment request parsing.

BOLT11 format: ln{bc|tb}{amount}{multiplier}1{data}{checksum}
Multipliers: m (milli = 0.001), u (micro = 0.000001),
             n (nano = 0.000000001), p (pico = 0.000000000001)

The data part is a 35-bit timestamp, any number of tagged fields and a
520-bit recoverable signature over SHA-256(hrp || data-without-signature).
"""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import cached_property

from ln_invoice.amount import BitcoinAmount
from ln_invoice.bech32 import Bech32Payload, decode_bech32
from ln_invoice.bitreader import BitStreamReader
from ln_invoice.exceptions import InvalidInvoiceError, LnInvoiceError, UnknownNetworkError
from ln_invoice.network import Network
from ln_invoice.signature import recover_public_key
from ln_invoice.tagged_field import FieldTag, RouteHint, TaggedField

logger = logging.getLogger(__name__)

# Match: ln + network + optional(amount + optional multiplier) + anything else
_HRP_RE = re.compile(
    r"ln(?P<network>[a-z]+)"
    r"(?P<amount>(?P<digits>[0-9]*)(?P<multiplier>[munp])?)?"
    r"(?P<suffix>.*)"
)

# 520 bits: 64-byte compact signature + 1-byte recovery id
SIGNATURE_GROUPS = 104
SIGNATURE_BITS = 520

TIMESTAMP_GROUPS = 7

DEFAULT_EXPIRY = timedelta(hours=1)
DEFAULT_MIN_FINAL_CLTV_EXPIRY = 18

# A payment hash field of any other length is skipped.
PAYMENT_HASH_GROUPS = 52


def _floor_to_bytes(groups: int) -> int:
    bits = groups * 5
    return bits - bits % 8


@dataclass(frozen=True)
class PaymentRequest:
    """A request for payment, as per BOLT-11.

    Derived values (description, expiry, payee key, ...) are read from the
    raw tagged fields on first access.
    """

    network: Network
    timestamp: datetime
    payment_hash: str
    signature: bytes
    hash: bytes
    amount: BitcoinAmount | None = None
    tagged_fields: tuple[TaggedField, ...] = ()

    @classmethod
    def parse(cls, encoded: str, strict: bool = False) -> PaymentRequest:
        return parse_invoice(encoded, strict)

    @classmethod
    def parse_unsafe(cls, encoded: str) -> PaymentRequest:
        return parse_invoice_unsafe(encoded)

    @cached_property
    def _fields_by_tag(self) -> dict[int, TaggedField]:
        # Later fields replace earlier ones with the same tag.
        return {field.tag: field for field in self.tagged_fields}

    def _field(self, tag: int) -> TaggedField | None:
        return self._fields_by_tag.get(tag)

    @cached_property
    def description(self) -> str | None:
        """Short description of purpose of payment (UTF-8)."""
        field = self._field(FieldTag.DESCRIPTION)
        if field is None:
            return None
        return BitStreamReader(field.data).read_text(field.size)

    @cached_property
    def description_hash(self) -> str | None:
        """SHA-256 of a description too long to carry in the invoice itself."""
        field = self._field(FieldTag.DESCRIPTION_HASH)
        if field is None:
            return None
        return BitStreamReader(field.data).read_bit_aligned_bytes(256).hex()

    @cached_property
    def expiry(self) -> timedelta:
        """Expiry from the ``x`` field, 1 hour if absent."""
        field = self._field(FieldTag.EXPIRY)
        if field is None:
            return DEFAULT_EXPIRY
        return timedelta(seconds=BitStreamReader(field.data).read_uint(field.size))

    @cached_property
    def payee_node_public_key(self) -> bytes:
        """Compressed public key of the payee, recovered from the signature."""
        return recover_public_key(self.signature, self.hash)

    @cached_property
    def payment_secret(self) -> str | None:
        field = self._field(FieldTag.SECRET)
        if field is None:
            return None
        return BitStreamReader(field.data).read_bit_aligned_bytes(256).hex()

    @cached_property
    def features(self) -> frozenset[int]:
        """Positions of the set feature bits (tag 5)."""
        field = self._field(FieldTag.FEATURE_BITS)
        if field is None:
            return frozenset()
        return frozenset(BitStreamReader(field.data).read_bit_set(field.size))

    @cached_property
    def min_final_cltv_expiry(self) -> int:
        field = self._field(FieldTag.MIN_FINAL_CLTV_EXPIRY_DELTA)
        if field is None:
            return DEFAULT_MIN_FINAL_CLTV_EXPIRY
        return BitStreamReader(field.data).read_uint(field.size)

    @cached_property
    def metadata(self) -> str | None:
        field = self._field(FieldTag.METADATA)
        if field is None:
            return None
        return BitStreamReader(field.data).read_bit_aligned_bytes(_floor_to_bytes(field.size)).hex()

    @cached_property
    def payee_node(self) -> str | None:
        """Node id from an explicit ``n`` field, if the payee included one."""
        field = self._field(FieldTag.PAYEE_NODE)
        if field is None:
            return None
        return BitStreamReader(field.data).read_bit_aligned_bytes(264).hex()

    @cached_property
    def route_hints(self) -> list[RouteHint]:
        """Private route hops from every ``r`` field, in order."""
        hops: list[RouteHint] = []
        for field in self.tagged_fields:
            if field.tag != FieldTag.EXTRA_ROUTING_INFO:
                continue
            data = BitStreamReader(field.data).read_bit_aligned_bytes(_floor_to_bytes(field.size))
            hops.extend(RouteHint.parse_all(data))
        return hops

    @property
    def amount_msat(self) -> int | None:
        return self.amount.millisat() if self.amount is not None else None

    @property
    def expires_at(self) -> datetime:
        return self.timestamp + self.expiry

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at


def _invalid(message: str, cause: BaseException | None = None) -> InvalidInvoiceError:
    logger.debug("Rejected invoice: %s", message)
    return InvalidInvoiceError(message, cause)


def _decode(encoded: str) -> Bech32Payload:
    try:
        return decode_bech32(encoded)
    except LnInvoiceError as e:
        raise _invalid(f"Failed to bech32 decode [invoice={encoded}]", e) from e


def _match_hrp(hrp: str) -> re.Match[str]:
    match = _HRP_RE.fullmatch(hrp)
    if not match:
        raise _invalid(f"Cannot parse invoice. Bad HRP. [hrp={hrp}]")
    suffix = match.group("suffix")
    if suffix:
        raise _invalid(f"Unexpected suffix in HRP. [hrp={hrp}][suffix={suffix}]")
    return match


def _parse_network(match: re.Match[str], encoded: str) -> Network:
    try:
        return Network.parse(match.group("network"))
    except UnknownNetworkError as e:
        raise _invalid(f"Invalid network. [invoice={encoded}]", e) from e


def _parse_amount(match: re.Match[str], hrp: str) -> BitcoinAmount | None:
    """Resolve ``amount`` and ``multiplier`` from the HRP.

    BOLT #11: a reader MUST fail if the amount in pico-bitcoin is not a
    multiple of 10, since the payload cannot carry finer than a millisatoshi.
    """
    digits = match.group("digits")
    if not digits:
        return None

    value = int(digits)
    multiplier = match.group("multiplier")
    try:
        if multiplier == "p":
            amount = BitcoinAmount.from_pico(value)
        elif multiplier == "n":
            amount = BitcoinAmount.from_pico(value * 1_000)
        elif multiplier == "u":
            amount = BitcoinAmount(value * 100)
        elif multiplier == "m":
            amount = BitcoinAmount(value * 100_000)
        else:
            # No multiplier means the amount is in BTC
            amount = BitcoinAmount(value * 100_000_000)
    except (ValueError, OverflowError) as e:
        raise _invalid(f"Invalid amount. [hrp={hrp}]", e) from e

    if amount.pico_remainder % 10 != 0:
        raise _invalid(f"Invalid amount. Pico amounts must be a multiple of 10. [hrp={hrp}]")
    return amount


def _hash_data(hrp: str, body: bytes) -> bytes:
    """SHA-256 over the HRP and the body repacked to bytes, signature excluded."""
    data = BitStreamReader(body).read_bit_aligned_bytes(len(body) * 5)
    return hashlib.sha256(hrp.encode("utf-8") + data).digest()


def _validate_tagged_fields(fields: list[TaggedField], strict: bool) -> None:
    if not strict:
        return
    valid = FieldTag.valid_tags()
    unknown = [tag for tag in dict.fromkeys(f.tag for f in fields) if tag not in valid]
    if unknown:
        raise _invalid(f"Tagged field has unknown tag(s) [{','.join(str(t) for t in unknown)}]")


def parse_invoice(encoded: str, strict: bool = False) -> PaymentRequest:
    """Parse an encoded BOLT-11 invoice.

    Args:
        encoded: The invoice string (e.g., "lnbc25m1p...").
        strict: Reject tags outside the BOLT-11 set.

    Returns:
        The parsed PaymentRequest.

    Raises:
        InvalidInvoiceError: At the first stage that fails. ``cause`` holds
            the underlying error where there is one.
    """
    decoded = _decode(encoded)
    match = _match_hrp(decoded.hrp)
    network = _parse_network(match, encoded)
    amount = _parse_amount(match, decoded.hrp)

    if len(decoded.payload) < SIGNATURE_GROUPS:
        raise _invalid(f"Invoice too short [invoice={encoded}]")
    body = decoded.payload[:-SIGNATURE_GROUPS]
    signature_groups = decoded.payload[-SIGNATURE_GROUPS:]

    reader = BitStreamReader(body)
    try:
        timestamp = reader.read_timestamp(TIMESTAMP_GROUPS)
        tagged_fields = reader.read_tagged_fields()
    except LnInvoiceError as e:
        raise _invalid(
            "Cannot parse tagged fields from data. "
            f"[invoice={encoded}][data={decoded.payload.hex()}]",
            e,
        ) from e

    payment_hash_field = next(
        (
            f for f in tagged_fields
            if f.tag == FieldTag.PAYMENT_HASH and f.size == PAYMENT_HASH_GROUPS
        ),
        None,
    )
    if payment_hash_field is None:
        raise _invalid(f"Invoice did not include a payment hash [invoice={encoded}]")
    payment_hash = BitStreamReader(payment_hash_field.data).read_bit_aligned_bytes(256).hex()

    _validate_tagged_fields(tagged_fields, strict)

    request = PaymentRequest(
        network=network,
        timestamp=timestamp,
        amount=amount,
        payment_hash=payment_hash,
        tagged_fields=tuple(tagged_fields),
        signature=BitStreamReader(signature_groups).read_bit_aligned_bytes(SIGNATURE_BITS),
        hash=_hash_data(decoded.hrp, body),
    )
    logger.debug(
        "Parsed invoice on %s with %d tagged fields", network.name, len(tagged_fields)
    )
    return request


def parse_invoice_unsafe(encoded: str) -> PaymentRequest:
    """Parse an invoice where failure is fatal to the caller.

    Raises:
        InvalidInvoiceError: If it cannot be parsed.
    """
    return parse_invoice(encoded)

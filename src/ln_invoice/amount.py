"""Exact conversions between Bitcoin denominations.

A :class:`BitcoinAmount` is held as whole satoshi plus a sub-satoshi remainder
in pico-bitcoin:

    1 BTC = 100,000,000 sat = 100,000,000,000 msat = 1,000,000,000,000 pico
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, localcontext

MSAT_PER_SAT = 1_000
PICO_PER_MSAT = 10
PICO_PER_SAT = 10_000
SATS_PER_BTC = 100_000_000
PICO_PER_BTC = SATS_PER_BTC * PICO_PER_SAT

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _exact_int64(value: int, unit: str) -> int:
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise OverflowError(f"{value} {unit} does not fit in a signed 64-bit integer")
    return value


@dataclass(frozen=True)
class BitcoinAmount:
    """A quantity of Bitcoin, denominated in satoshi with a pico-btc remainder.

    Args:
        satoshi: Whole satoshi (10^-8 BTC).
        pico_remainder: Sub-satoshi remainder in pico-btc (10^-12 BTC),
            ``0 <= pico_remainder < 10000``.
    """

    satoshi: int
    pico_remainder: int = 0

    def __post_init__(self) -> None:
        _exact_int64(self.satoshi, "sat")
        if not 0 <= self.pico_remainder < PICO_PER_SAT:
            raise ValueError(
                f"pico_remainder must be in [0, {PICO_PER_SAT}), got {self.pico_remainder}"
            )

    @classmethod
    def from_pico(cls, pico: int) -> BitcoinAmount:
        """An amount of ``pico`` pico-btc."""
        sats, remainder = divmod(pico, PICO_PER_SAT)
        return cls(sats, remainder)

    @classmethod
    def from_millisat(cls, millisat: int) -> BitcoinAmount:
        """An amount of ``millisat`` millisatoshi."""
        return cls.from_pico(millisat * PICO_PER_MSAT)

    @classmethod
    def from_bitcoin(cls, btc: Decimal) -> BitcoinAmount:
        """An amount of ``btc`` bitcoin. Digits below a pico are truncated, not rounded."""
        with localcontext() as ctx:
            ctx.prec = max(ctx.prec, len(Decimal(btc).as_tuple().digits) + 13)
            pico = int(Decimal(btc) * PICO_PER_BTC)
        return cls.from_pico(pico)

    def _total_pico(self) -> int:
        return self.satoshi * PICO_PER_SAT + self.pico_remainder

    def bitcoin(self) -> Decimal:
        """The amount in BTC, with trailing zeros stripped."""
        with localcontext() as ctx:
            ctx.prec = 40
            btc = Decimal(self.satoshi) / SATS_PER_BTC + Decimal(self.pico_remainder) / PICO_PER_BTC
            return btc.normalize()

    def pico(self) -> int:
        """The amount in pico-btc. Raises OverflowError outside 64-bit range."""
        return _exact_int64(self._total_pico(), "pico")

    def millisat(self) -> int:
        """The amount in millisatoshi, truncated toward zero."""
        total = self._total_pico()
        msat = abs(total) // PICO_PER_MSAT
        return _exact_int64(msat if total >= 0 else -msat, "msat")


def millisat_amount(millisat: int) -> BitcoinAmount:
    """A BitcoinAmount representing the given millisat value."""
    return BitcoinAmount.from_millisat(millisat)


def pico_amount(pico: int) -> BitcoinAmount:
    """A BitcoinAmount representing the given pico-btc value."""
    return BitcoinAmount.from_pico(pico)

"""ln-invoice exceptions."""

from __future__ import annotations


class LnInvoiceError(Exception):
    """Base exception for ln-invoice."""


class Bech32FormatError(LnInvoiceError):
    """Text could not be decoded as Bech32 or Bech32m."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class InvalidChecksumError(Bech32FormatError):
    """Checksum matched neither the Bech32 nor the Bech32m constant."""

    def __init__(self, checksum: int):
        self.checksum = checksum
        super().__init__(f"Invalid checksum: {checksum}")


class TruncatedStreamError(LnInvoiceError):
    """A read ran past the end of the 5-bit group stream."""

    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Cannot read {requested} groups, only {available} remaining"
        )


class UnknownNetworkError(LnInvoiceError):
    """Network code is not registered in SLIP-0173."""

    def __init__(self, network: str):
        self.network = network
        super().__init__(f"{network} is unknown and cannot be parsed")


class InvalidInvoiceError(LnInvoiceError):
    """Payment request could not be parsed."""

    def __init__(self, message: str, cause: BaseException | None = None):
        self.message = message
        self.cause = cause
        super().__init__(message)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InvalidInvoiceError):
            return NotImplemented
        return self.message == other.message and self.cause is other.cause

    def __hash__(self) -> int:
        return hash(self.message)


class SignatureRecoveryError(LnInvoiceError):
    """Public key could not be recovered from a signature."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Cannot recover public key: {reason}")

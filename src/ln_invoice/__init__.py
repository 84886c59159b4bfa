"""ln-invoice — Lightning (BOLT-11) payment request decoding for Python.

Decodes the Bech32 envelope, the 5-bit packed tagged fields and the amount
encoded in the human-readable part, and recovers the payee's public key
from the invoice signature.

Usage:
    from ln_invoice import parse_invoice

    invoice = parse_invoice("lnbc25m1pvjluezpp5...")
    invoice.amount.millisat()
    invoice.description
    invoice.payee_node_public_key.hex()
"""

from ln_invoice.amount import BitcoinAmount, millisat_amount, pico_amount
from ln_invoice.bech32 import Bech32Payload, Encoding, decode_bech32, encode_bech32
from ln_invoice.bitreader import BitStreamReader
from ln_invoice.bolt11 import PaymentRequest, parse_invoice, parse_invoice_unsafe
from ln_invoice.exceptions import (
    Bech32FormatError,
    InvalidChecksumError,
    InvalidInvoiceError,
    LnInvoiceError,
    SignatureRecoveryError,
    TruncatedStreamError,
    UnknownNetworkError,
)
from ln_invoice.network import Network
from ln_invoice.signature import recover_public_key
from ln_invoice.tagged_field import FieldTag, RouteHint, TaggedField

__version__ = "0.1.0"

__all__ = [
    # Bech32
    "Bech32Payload",
    "Encoding",
    "decode_bech32",
    "encode_bech32",
    # Bit stream
    "BitStreamReader",
    # Amounts
    "BitcoinAmount",
    "millisat_amount",
    "pico_amount",
    # Invoices
    "Network",
    "TaggedField",
    "FieldTag",
    "RouteHint",
    "PaymentRequest",
    "parse_invoice",
    "parse_invoice_unsafe",
    # Signatures
    "recover_public_key",
    # Exceptions
    "LnInvoiceError",
    "Bech32FormatError",
    "InvalidChecksumError",
    "TruncatedStreamError",
    "UnknownNetworkError",
    "InvalidInvoiceError",
    "SignatureRecoveryError",
]

"""Recover a payee's public key from a BOLT-11 recoverable signature."""

from __future__ import annotations

import hashlib

from ecdsa import SECP256k1, VerifyingKey
from ecdsa.errors import MalformedPointError
from ecdsa.numbertheory import SquareRootError
from ecdsa.util import MalformedSignature, sigdecode_string

from ln_invoice.exceptions import SignatureRecoveryError

SIGNATURE_LENGTH = 65

def recover_public_key(signature: bytes, message_hash: bytes) -> bytes:
    """Recover the signer's compressed public key.

    Args:
        signature: 65 bytes, ``r`` (32) || ``s`` (32) || recovery id (1).
        message_hash: The 32-byte SHA-256 digest the signature covers.

    Returns:
        The 33-byte compressed SEC1 public key.

    Raises:
        SignatureRecoveryError: If the inputs are malformed or no key can be
            recovered.
    """
    if len(signature) != SIGNATURE_LENGTH:
        raise SignatureRecoveryError(
            f"signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}"
        )
    if len(message_hash) != 32:
        raise SignatureRecoveryError(
            f"message hash must be 32 bytes, got {len(message_hash)}"
        )

    # r and s stay as raw 32-byte big-endian strings; sigdecode_string reads
    # them as unbounded integers.
    compact, recovery_id = signature[:64], signature[64]
    try:
        keys = VerifyingKey.from_public_key_recovery_with_digest(
            compact,
            message_hash,
            SECP256k1,
            hashfunc=hashlib.sha256,
            sigdecode=sigdecode_string,
        )
    except (ValueError, MalformedPointError, MalformedSignature, SquareRootError) as e:
        raise SignatureRecoveryError(str(e)) from e

    # Candidates are ordered by the parity of R's y coordinate, which is the
    # low bit of the recovery id.
    if recovery_id >= len(keys):
        raise SignatureRecoveryError(f"recovery id {recovery_id} out of range")
    return keys[recovery_id].to_string("compressed")

"""MD5 signature generation and verification for PayFast payloads.

The same routine signs outbound payment requests and verifies inbound ITNs,
so a request this module signs always verifies against itself.
"""

import hashlib
import hmac
from collections.abc import Mapping
from typing import Any

from .encoder import (
    SIGNATURE_FIELD,
    encode_value,
    notification_canonical_string,
    payment_canonical_string,
)


def salt_with_passphrase(canonical: str, passphrase: str | None = None) -> str:
    """Append ``&passphrase=<encoded>`` when a passphrase is configured."""
    if passphrase and passphrase.strip():
        return f"{canonical}&passphrase={encode_value(passphrase)}"
    return canonical


def generate_signature(canonical: str, passphrase: str | None = None) -> str:
    """Compute the lowercase hex MD5 of a canonical string.

    Args:
        canonical: Output of the canonical encoder.
        passphrase: Optional shared secret; ignored when blank.

    Returns:
        32-character lowercase hex digest.
    """
    salted = salt_with_passphrase(canonical, passphrase)
    return hashlib.md5(salted.encode("utf-8")).hexdigest()


def sign_payment_fields(fields: Mapping[str, Any], passphrase: str | None = None) -> str:
    """Sign an outbound payment request field set."""
    return generate_signature(payment_canonical_string(fields), passphrase)


def sign_notification_fields(
    fields: Mapping[str, Any], passphrase: str | None = None
) -> str:
    """Sign an ITN field set (any ``signature`` entry is ignored)."""
    return generate_signature(notification_canonical_string(fields), passphrase)


def signatures_match(expected: str, received: str | None) -> bool:
    """Constant-time comparison of two hex signatures."""
    if not received:
        return False
    return hmac.compare_digest(expected.encode("ascii"), received.strip().encode("utf-8"))


def verify_signature(
    canonical: str, received: str | None, passphrase: str | None = None
) -> bool:
    """Check a received signature against a canonical string."""
    return signatures_match(generate_signature(canonical, passphrase), received)


def verify_notification_signature(
    fields: Mapping[str, Any], passphrase: str | None = None
) -> bool:
    """Recompute an ITN signature and compare it with the received one."""
    return verify_signature(
        notification_canonical_string(fields), fields.get(SIGNATURE_FIELD), passphrase
    )


def verify_payment_signature(
    fields: Mapping[str, Any], passphrase: str | None = None
) -> bool:
    """Verify a signed outbound payment field set."""
    return verify_signature(
        payment_canonical_string(fields), fields.get(SIGNATURE_FIELD), passphrase
    )

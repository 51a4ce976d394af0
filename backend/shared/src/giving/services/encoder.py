"""Canonical encoding of PayFast field sets.

PayFast computes its signature over the fields in the order its integration
guide lists them, not alphabetically, with each trimmed value encoded like
PHP's ``urlencode``: spaces become ``+`` and every other reserved character
becomes an uppercase ``%XX`` escape. Any deviation produces a signature the
gateway rejects, so both outbound requests and inbound ITNs go through here.
"""

from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import parse_qsl, quote_plus

from giving.models.errors import ConfigurationError

# Outbound payment request, in PayFast's documented order.
PAYMENT_FIELD_ORDER: tuple[str, ...] = (
    # Merchant details
    "merchant_id",
    "merchant_key",
    "return_url",
    "cancel_url",
    "notify_url",
    # Customer details
    "name_first",
    "name_last",
    "email_address",
    "cell_number",
    # Transaction details
    "m_payment_id",
    "amount",
    "item_name",
    "item_description",
    "custom_int1",
    "custom_int2",
    "custom_int3",
    "custom_int4",
    "custom_int5",
    "custom_str1",
    "custom_str2",
    "custom_str3",
    "custom_str4",
    "custom_str5",
    # Transaction options
    "email_confirmation",
    "confirmation_address",
    "payment_method",
    # Subscriptions
    "subscription_type",
    "billing_date",
    "recurring_amount",
    "frequency",
    "cycles",
)

# Inbound ITN payload, in the order PayFast posts it.
NOTIFICATION_FIELD_ORDER: tuple[str, ...] = (
    "m_payment_id",
    "pf_payment_id",
    "payment_status",
    "item_name",
    "item_description",
    "amount_gross",
    "amount_fee",
    "amount_net",
    "custom_str1",
    "custom_str2",
    "custom_str3",
    "custom_str4",
    "custom_str5",
    "custom_int1",
    "custom_int2",
    "custom_int3",
    "custom_int4",
    "custom_int5",
    "name_first",
    "name_last",
    "email_address",
    "merchant_id",
    "token",
    "billing_date",
)

REQUIRED_PAYMENT_FIELDS: tuple[str, ...] = (
    "merchant_id",
    "merchant_key",
    "m_payment_id",
    "amount",
)

SIGNATURE_FIELD = "signature"


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def encode_value(value: Any) -> str:
    """Percent-encode a single trimmed value (space as ``+``, uppercase hex)."""
    # quote_plus always leaves "~" alone; urlencode escapes it.
    return quote_plus(_clean(value), safe="").replace("~", "%7E")


def require_fields(fields: Mapping[str, Any], required: Iterable[str]) -> None:
    """Fail fast if any required field is absent or blank.

    Raises:
        ConfigurationError: Listing the missing field names.
    """
    missing = [name for name in required if not _clean(fields.get(name))]
    if missing:
        raise ConfigurationError(details={"missing_fields": ",".join(missing)})


def ordered_pairs(
    fields: Mapping[str, Any],
    field_order: Iterable[str],
    *,
    include_unlisted: bool = False,
) -> list[tuple[str, str]]:
    """Select non-empty fields in table order.

    Args:
        fields: Field name to value mapping; its own ordering is ignored
            for names that appear in the table.
        field_order: The protocol's fixed ordering table.
        include_unlisted: Append fields missing from the table after the
            table fields, in the mapping's order.

    Returns:
        (name, trimmed value) pairs. The signature field is never included.
    """
    order = tuple(field_order)
    pairs = [
        (name, _clean(fields.get(name)))
        for name in order
        if name != SIGNATURE_FIELD and _clean(fields.get(name))
    ]
    if include_unlisted:
        listed = set(order)
        pairs.extend(
            (name, _clean(value))
            for name, value in fields.items()
            if name not in listed and name != SIGNATURE_FIELD and _clean(value)
        )
    return pairs


def join_pairs(pairs: Iterable[tuple[str, str]]) -> str:
    """Join pairs as ``key=value`` with ``&``, encoding each value."""
    return "&".join(f"{name}={encode_value(value)}" for name, value in pairs)


def canonical_string(
    fields: Mapping[str, Any],
    field_order: Iterable[str] = PAYMENT_FIELD_ORDER,
    *,
    include_unlisted: bool = False,
) -> str:
    """Build the canonical string a signature is computed over."""
    return join_pairs(
        ordered_pairs(fields, field_order, include_unlisted=include_unlisted)
    )


def payment_canonical_string(fields: Mapping[str, Any]) -> str:
    """Canonical string for an outbound payment request.

    Raises:
        ConfigurationError: If amount, merchant_id, merchant_key or
            m_payment_id is missing.
    """
    require_fields(fields, REQUIRED_PAYMENT_FIELDS)
    return canonical_string(fields, PAYMENT_FIELD_ORDER)


def notification_canonical_string(fields: Mapping[str, Any]) -> str:
    """Canonical string for an inbound ITN, excluding its signature."""
    return canonical_string(fields, NOTIFICATION_FIELD_ORDER, include_unlisted=True)


def decode_canonical(canonical: str) -> dict[str, str]:
    """Parse a canonical string back into an ordered field mapping."""
    return dict(parse_qsl(canonical, keep_blank_values=True))

"""Order ID parsing and formatting.

Order IDs are ``ORD-`` followed by a zero-padded sequence number. The
current format pads to 3 digits (``ORD-007``); older records use 6 digits
(``ORD-000007``) or the ``ORDER-`` prefix, and some externally created
records carry bare numerals. All of them are recognized when scanning
existing orders, but only the current format is ever produced.
"""

import re

ORDER_ID_PREFIX = "ORD-"
ORDER_ID_WIDTH = 3

# Tried in order; canonical formats come before the lenient fallbacks.
_SEQUENCE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^(?:ORD|ORDER)-(\d{3})$", re.IGNORECASE),
    re.compile(r"^(?:ORD|ORDER)-(\d{6})$", re.IGNORECASE),
    re.compile(r"^(?:ORD|ORDER)-(\d+)$", re.IGNORECASE),
    re.compile(r"^(\d{3}|\d{6})$"),
    re.compile(r"(\d+)"),
)

# Longer digit runs are not treated as sequence numbers
MAX_SEQUENCE_DIGITS = 18

_CANONICAL_PATTERN = re.compile(r"^ORD-(?:\d{3}|[1-9]\d{3,})$")
_FIRST_DIGITS = re.compile(r"(\d+)")


def _to_number(digits: str) -> int | None:
    if len(digits) > MAX_SEQUENCE_DIGITS:
        return None
    return int(digits)


def parse_sequence_number(order_id: str | None) -> int | None:
    """Extract the sequence number from an order ID.

    Supports ORD-001, ORD-000001, ORDER-001, ORDER-000001, 001, 000001
    and, as a last resort, the first run of digits anywhere in the string.
    A match that parses to 0, or has more than MAX_SEQUENCE_DIGITS digits,
    is ignored and the next pattern is tried.

    Args:
        order_id: Raw order ID (may be empty or malformed)

    Returns:
        Positive sequence number, or None if the ID is not sequential
    """
    if not order_id:
        return None

    for pattern in _SEQUENCE_PATTERNS:
        match = pattern.search(order_id)
        if match:
            number = _to_number(match.group(1))
            if number:
                return number

    return None


def format_order_id(number: int) -> str:
    """Format a sequence number as a canonical order ID (``ORD-007``).

    Numbers above 999 simply widen the numeral (``ORD-1000``).
    """
    return f"{ORDER_ID_PREFIX}{number:0{ORDER_ID_WIDTH}d}"


def is_valid_sequential_order_id(order_id: str | None) -> bool:
    """Check whether an order ID carries a recognizable sequence number."""
    return parse_sequence_number(order_id) is not None


def normalize_order_id(order_id: str) -> str:
    """Normalize an order ID for display.

    Canonical IDs are returned as-is. Anything else containing digits is
    reformatted around its first digit run (``order 45`` -> ``ORD-045``).
    IDs without digits are returned unchanged.
    """
    if _CANONICAL_PATTERN.match(order_id):
        return order_id

    match = _FIRST_DIGITS.search(order_id)
    number = _to_number(match.group(1)) if match else None
    if number is not None:
        return format_order_id(number)

    return order_id

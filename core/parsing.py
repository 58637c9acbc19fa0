"""
Money and description parsing.

Normalizes raw operator input (currency strings, multi-line text) into typed
values. Amounts are Decimal throughout so that quantity * rate is exact;
rounding to cents happens only at display time.
"""

import html
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from core.exceptions import ValidationError

CENTS = Decimal("0.01")

DEFAULT_MIN_DESCRIPTION_LENGTH = 5

# Everything except digits, minus sign and decimal point is noise ("$", ",", spaces).
_CURRENCY_NOISE = re.compile(r"[^\d.\-]")
# Leading numeric prefix of the cleaned string, like parseFloat would read it.
_NUMERIC_PREFIX = re.compile(r"^-?(\d+\.?\d*|\.\d+)")


def parse_currency(raw) -> Decimal:
    """
    Parse a currency-like value into a Decimal.

    Never raises. Empty or unparseable input yields Decimal("0").

        parse_currency("$1,234.50") == Decimal("1234.50")
        parse_currency("") == 0
        parse_currency("abc") == 0
    """
    if raw is None or isinstance(raw, bool):
        return Decimal("0")
    if isinstance(raw, (int, float, Decimal)):
        try:
            value = to_amount(raw)
        except ValidationError:
            return Decimal("0")
        return value

    cleaned = _CURRENCY_NOISE.sub("", str(raw))
    match = _NUMERIC_PREFIX.match(cleaned)
    if match is None:
        return Decimal("0")
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return Decimal("0")


def to_amount(value, field: str = "amount") -> Decimal:
    """
    Coerce a numeric input to a finite Decimal.

    Floats go through their shortest repr so 4.50 becomes Decimal("4.5")
    rather than its binary expansion. Strings are parsed as currency.

    Raises:
        ValidationError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(repr(value))
    elif isinstance(value, str):
        return parse_currency(value)
    else:
        raise ValidationError(f"{field} must be a number", field=field)

    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number", field=field)
    return result


def round_cents(amount: Decimal) -> Decimal:
    """Round half-up to whole cents."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_currency(amount) -> str:
    """Display form of an amount, e.g. "$1,234.50"."""
    value = round_cents(to_amount(amount))
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def normalize_lines(raw) -> str:
    """Convert CRLF and lone CR line endings to LF."""
    if raw is None:
        return ""
    return str(raw).replace("\r\n", "\n").replace("\r", "\n")


def normalize_description(
    raw,
    detailed: bool = False,
    min_length: int = DEFAULT_MIN_DESCRIPTION_LENGTH,
) -> str:
    """
    Trim a description, keeping internal line breaks verbatim.

    Args:
        raw: Operator-typed text
        detailed: Caller requires a "detailed" description
        min_length: Minimum length when detailed is True

    Raises:
        ValidationError: detailed is True and the trimmed text is too short
    """
    text = normalize_lines(raw).strip()
    if detailed and len(text) < min_length:
        raise ValidationError(
            f"Description must be at least {min_length} characters",
            field="description",
        )
    return text


def escape_html(text) -> str:
    """Escape & < > " ' for safe inclusion in markup."""
    return html.escape(str(text or ""), quote=True).replace("&#x27;", "&#39;")


def render_description_for_display(text) -> str:
    """
    Escaped markup with line breaks turned into <br>.

    Operates on the raw stored description. Feeding it previously rendered
    markup would double-escape; callers always pass the stored string.
    """
    return escape_html(normalize_lines(text)).replace("\n", "<br>")

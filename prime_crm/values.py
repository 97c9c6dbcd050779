"""Parsing and pt-BR formatting of captured field values.

Captured values are stored as the raw strings staff typed; these helpers
read them back for validation and for message composition.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, localcontext

_PT_BR_NUMBER = re.compile(r"^-?\d{1,3}(\.\d{3})+(,\d+)?$|^-?\d+,\d+$")


def parse_decimal(raw: str | None) -> Decimal | None:
    """Parse a number typed either as ``1234.56`` or in pt-BR as ``1.234,56``."""
    if raw is None:
        return None
    text = raw.strip().replace("R$", "").strip()
    if not text:
        return None
    if _PT_BR_NUMBER.match(text):
        text = text.replace(".", "").replace(",", ".")
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def parse_date(raw: str | None) -> date | None:
    """Parse an ISO date (``2024-05-10``), tolerating a trailing time part."""
    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        return datetime.strptime(text, "%d/%m/%Y").date()
    except ValueError:
        return None


def _round(value: Decimal, places: int) -> Decimal:
    """Round to ``places`` decimals with enough precision for any magnitude."""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + places + 2)
        return value.quantize(Decimal(1).scaleb(-places))


def format_number_br(value: Decimal, max_fraction_digits: int = 3) -> str:
    """Format like ``Number.toLocaleString('pt-BR')``: ``350000`` -> ``350.000``."""
    rounded = _round(value, max_fraction_digits)
    sign = "-" if rounded < 0 else ""
    integer_part, _, fraction_part = f"{rounded.copy_abs():f}".partition(".")
    groups = []
    while len(integer_part) > 3:
        groups.insert(0, integer_part[-3:])
        integer_part = integer_part[:-3]
    groups.insert(0, integer_part)
    text = sign + ".".join(groups)
    fraction_part = fraction_part.rstrip("0")
    if fraction_part:
        text += "," + fraction_part
    return text


def format_money_br(value: Decimal) -> str:
    """Currency with exactly two decimals: ``180000`` -> ``180.000,00``."""
    text = format_number_br(_round(value, 2), max_fraction_digits=2)
    integer_part, _, fraction_part = text.partition(",")
    return f"{integer_part},{fraction_part.ljust(2, '0')}"


def format_date_br(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def display_number(raw: str) -> str:
    """pt-BR number for messages, falling back to the raw text when unparseable."""
    value = parse_decimal(raw)
    return format_number_br(value) if value is not None else raw.strip()


def display_date(raw: str) -> str:
    """pt-BR date for messages, falling back to the raw text when unparseable."""
    value = parse_date(raw)
    return format_date_br(value) if value is not None else raw.strip()

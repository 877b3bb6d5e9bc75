"""Time and money helpers shared by every context."""

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")


def utcnow() -> datetime:
    return datetime.now(UTC)


def aware(value: datetime | None) -> datetime | None:
    """Treat naive datetimes read back from the database as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def money(value) -> Decimal:
    """Round to cents, half-up."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)

"""
Horloge métier SmartPolice.

Toutes les dates "calendaires" (date d'inscription, attribution mensuelle,
expiration des consultations) sont exprimées dans le fuseau de
settings.TIMEZONE. Les horodatages stockés sont en UTC.
"""
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from smartpolice.core.config import settings


def business_tz() -> ZoneInfo:
    """Fuseau horaire du calendrier métier."""
    return ZoneInfo(settings.TIMEZONE)


def utcnow() -> datetime:
    """Horodatage courant en UTC (timezone-aware)."""
    return datetime.now(timezone.utc)


def today() -> date:
    """Date du jour dans le calendrier métier."""
    return datetime.now(business_tz()).date()


def start_of_day(day: date) -> datetime:
    """Minuit (calendrier métier) du jour donné, converti en UTC."""
    local = datetime(day.year, day.month, day.day, tzinfo=business_tz())
    return local.astimezone(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """
    Normalise un datetime en UTC.

    SQLite renvoie des datetimes naïfs : ils sont considérés comme UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

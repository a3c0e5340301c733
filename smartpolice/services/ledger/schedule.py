"""
Calendrier d'attribution des tickets.

Règles :
- Attribution initiale (plan.initial_tickets) à la date d'inscription
- Attribution mensuelle (plan.monthly_tickets) le 1er de chaque mois,
  à partir du mois qui suit l'inscription, jusqu'à la date de référence incluse
"""

from datetime import date
from typing import List, Optional


def first_of_next_month(day: date) -> date:
    """Premier jour du mois suivant."""
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def monthly_grant_dates(
        registration_date: date,
        as_of: date,
        after: Optional[date] = None,
) -> List[date]:
    """
    Dates des attributions mensuelles dues.

    Args:
        registration_date: Date d'inscription du client
        as_of: Date de référence (incluse)
        after: Ne renvoyer que les dates strictement postérieures

    Returns:
        Liste croissante de dates (toutes au 1er du mois)

    Example:
        >>> monthly_grant_dates(date(2024, 1, 15), date(2024, 4, 1))
        [date(2024, 2, 1), date(2024, 3, 1), date(2024, 4, 1)]
    """
    dates = []
    current = first_of_next_month(registration_date)
    while current <= as_of:
        if after is None or current > after:
            dates.append(current)
        current = first_of_next_month(current)
    return dates


def next_grant_date(registration_date: date, as_of: date) -> date:
    """Prochaine attribution mensuelle strictement après `as_of`."""
    first = first_of_next_month(registration_date)
    if first > as_of:
        return first
    return first_of_next_month(as_of)

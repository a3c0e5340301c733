"""Registre de tickets : débit atomique, attributions et livret."""
from smartpolice.services.ledger.engine import TicketLedger, validate_amount
from smartpolice.services.ledger.passbook import (
    Passbook,
    PassbookEntry,
    PassbookEntryKind,
    build_passbook,
)
from smartpolice.services.ledger.schedule import monthly_grant_dates, next_grant_date

__all__ = [
    "TicketLedger",
    "validate_amount",
    "Passbook",
    "PassbookEntry",
    "PassbookEntryKind",
    "build_passbook",
    "monthly_grant_dates",
    "next_grant_date",
]

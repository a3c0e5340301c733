"""
Reconstruction du livret de tickets (passbook).

Le livret rejoue, dans l'ordre chronologique, les attributions du plan
(initiale + mensuelles) et les débits du journal de consommation pour
produire un solde courant à chaque ligne.

IMPORTANT :
- Calcul pur, sans effet de bord, refait à chaque appel (pas de cache)
- Les attributions utilisent les valeurs COURANTES du plan pour tout
  l'historique : modifier un plan réécrit rétroactivement le livret
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Iterable, List, Optional

from smartpolice.core.clock import as_utc, start_of_day
from smartpolice.models.clients.client import Client
from smartpolice.models.clients.plan import Plan
from smartpolice.models.tickets.consumption_log import TicketConsumptionLog
from smartpolice.services.ledger.schedule import monthly_grant_dates


class PassbookEntryKind(str, Enum):
    """Nature d'une ligne du livret."""
    INITIAL_GRANT = "INITIAL_GRANT"
    MONTHLY_GRANT = "MONTHLY_GRANT"
    CONSUMPTION = "CONSUMPTION"


@dataclass
class PassbookEntry:
    """Ligne du livret."""
    occurred_at: datetime
    kind: PassbookEntryKind
    description: str
    delta: int
    running_balance: int = 0
    consumption_type: Optional[str] = None
    related_id: Optional[str] = None
    log_id: Optional[int] = None


@dataclass
class Passbook:
    """
    Livret reconstruit d'un client.

    `entries` est trié du plus récent au plus ancien (affichage) ;
    `closing_balance` est le solde après la dernière opération chronologique.
    """
    client_id: int
    as_of: date
    entries: List[PassbookEntry] = field(default_factory=list)

    @property
    def closing_balance(self) -> int:
        if not self.entries:
            return 0
        return self.entries[0].running_balance

    @property
    def total_granted(self) -> int:
        return sum(e.delta for e in self.entries if e.delta > 0)

    @property
    def total_consumed(self) -> int:
        return -sum(e.delta for e in self.entries if e.delta < 0)


def build_passbook(
        client: Client,
        plan: Plan,
        logs: Iterable[TicketConsumptionLog],
        as_of: date,
) -> Passbook:
    """
    Rejoue attributions et débits pour un client.

    Args:
        client: Client concerné
        plan: Plan courant du client
        logs: Écritures de consommation du client
        as_of: Date de référence (attributions mensuelles incluses jusqu'à cette date)

    Returns:
        Passbook dont les lignes sont triées du plus récent au plus ancien
    """
    # Attributions émises avant les débits : à horodatage égal, le tri
    # stable les place en premier.
    emitted: List[PassbookEntry] = [
        PassbookEntry(
            occurred_at=start_of_day(client.registration_date),
            kind=PassbookEntryKind.INITIAL_GRANT,
            description=f"初回付与 ({plan.name})",
            delta=plan.initial_tickets,
        )
    ]

    for grant_date in monthly_grant_dates(client.registration_date, as_of):
        emitted.append(
            PassbookEntry(
                occurred_at=start_of_day(grant_date),
                kind=PassbookEntryKind.MONTHLY_GRANT,
                description=f"月次付与 ({plan.name})",
                delta=plan.monthly_tickets,
            )
        )

    for log in logs:
        emitted.append(
            PassbookEntry(
                occurred_at=as_utc(log.consumed_at),
                kind=PassbookEntryKind.CONSUMPTION,
                description=log.description,
                delta=-log.ticket_cost,
                consumption_type=log.consumption_type.value,
                related_id=log.related_id,
                log_id=log.id,
            )
        )

    chronological = sorted(emitted, key=lambda e: e.occurred_at)

    balance = 0
    for entry in chronological:
        balance += entry.delta
        entry.running_balance = balance

    return Passbook(
        client_id=client.id,
        as_of=as_of,
        entries=list(reversed(chronological)),
    )

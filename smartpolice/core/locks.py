"""
Verrous applicatifs par ressource.

Sérialise les sections critiques "vérifier puis modifier" sur une même
ressource (solde de tickets d'un client, liste d'inscrits d'un séminaire
ou d'un événement, demandes d'un service) au sein du processus.

Les verrous sont réentrants : une passerelle de consommation peut tenir
le verrou du client pendant qu'elle appelle le débit du registre, qui
reprend ce même verrou.
"""

import threading
from contextlib import contextmanager
from enum import Enum
from typing import Dict, Iterator, Tuple


class LockScope(str, Enum):
    """Types de ressources verrouillables."""
    CLIENT = "client"
    SEMINAR = "seminar"
    EVENT = "event"
    SERVICE = "service"


class KeyedLockRegistry:
    """
    Registre de verrous indexés par (type de ressource, identifiant).

    Fonctionnalités :
    - Création paresseuse d'un RLock par ressource
    - Context manager `hold()` pour la section critique

    Example:
        with resource_locks.hold(LockScope.CLIENT, client_id):
            # vérification du solde + décrément
            ...
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Tuple[str, int], "threading.RLock"] = {}

    def _get_lock(self, scope: LockScope, resource_id: int) -> threading.RLock:
        key = (scope.value, resource_id)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, scope: LockScope, resource_id: int) -> Iterator[None]:
        """Acquiert le verrou de la ressource pour la durée du bloc."""
        lock = self._get_lock(scope, resource_id)
        with lock:
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# Instance unique pour le processus
resource_locks = KeyedLockRegistry()

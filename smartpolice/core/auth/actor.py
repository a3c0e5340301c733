"""
Acteur authentifié à l'origine d'une action.

L'identité est fournie par le service d'authentification (claims du JWT) ;
SmartPolice ne gère pas les comptes de connexion.
"""

from dataclasses import dataclass
from typing import Optional

from smartpolice.models.enums import AccessRole


@dataclass(frozen=True)
class Actor:
    """
    Auteur d'une requête.

    Attributes:
        actor_id: Identifiant stable (email en pratique), reporté dans l'audit
        name: Nom affiché
        role: Rôle d'accès
        client_id: Entreprise de rattachement (rôles côté client)
        affiliate_id: Partenaire de rattachement (rôle AFFILIATE)
    """
    actor_id: str
    name: str
    role: AccessRole
    client_id: Optional[int] = None
    affiliate_id: Optional[int] = None

    @property
    def is_client_side(self) -> bool:
        return self.role.is_client_side

    def belongs_to_client(self, client_id: int) -> bool:
        return self.is_client_side and self.client_id == client_id


SYSTEM_ACTOR = Actor(actor_id="system", name="システム", role=AccessRole.SUPERADMIN)

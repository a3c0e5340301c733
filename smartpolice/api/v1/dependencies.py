# smartpolice/api/v1/dependencies.py
"""
Dépendances générales de l'API v1.

Utilitaires partagés par tous les modules :
- PaginationParams : Paramètres de pagination standardisés
- paginated_response : Enveloppe de réponse paginée
- raise_for_result : Conversion d'un OperationResult en erreur HTTP

Pour l'authentification et les permissions, voir :
    smartpolice/core/auth/actor_auth.py
"""
import math
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Query

from smartpolice.core.results import OperationResult


class PaginationParams:
    """
    Paramètres de pagination standardisés pour toutes les routes de liste.

    Usage:
        @router.get("/clients")
        def list_clients(pagination: PaginationParams = Depends()):
            # pagination.page, pagination.size, pagination.offset
            ...
    """

    def __init__(
            self,
            page: Annotated[int, Query(ge=1, description="Numéro de page (commence à 1)")] = 1,
            size: Annotated[int, Query(ge=1, le=100, description="Nombre d'éléments par page")] = 20,
    ):
        self.page = page
        self.size = size

    @property
    def offset(self) -> int:
        """Calcule l'offset pour la requête SQL."""
        return (self.page - 1) * self.size


Pagination = Annotated[PaginationParams, Depends()]


def paginated_response(items: list, total: int, page: int, size: int) -> dict:
    """Construit une réponse paginée standardisée."""
    return {
        "items": items,
        "total": total,
        "page": page,
        "size": size,
        "pages": math.ceil(total / size) if size > 0 else 0,
    }


def raise_for_result(result: OperationResult) -> Any:
    """
    Renvoie la valeur d'un résultat réussi, sinon lève l'HTTPException associée.

    Le détail de l'erreur porte le code métier et le message utilisateur :
        {"code": "INSUFFICIENT_TICKETS", "message": "チケット残数がありません。"}
    """
    if not result:
        raise HTTPException(
            status_code=result.error.http_status,
            detail={"code": result.error.value, "message": result.message},
        )
    return result.value

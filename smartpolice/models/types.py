"""
Types SQLAlchemy personnalisés pour SmartPolice.

Ce module définit des types compatibles SQLite (store par défaut) et PostgreSQL.
"""

from sqlalchemy import JSON, Text
from sqlalchemy.dialects.postgresql import JSONB


# ============================================================================
# JSONBCompatible - Type JSON compatible multi-dialecte
# ============================================================================
#
# - Sur PostgreSQL : utilise JSONB
# - Sur SQLite/autres : utilise JSON standard
#
# Usage dans les modèles:
#     permissions: Mapped[list] = mapped_column(JSONBCompatible, default=list)
#
# ============================================================================

JSONBCompatible = JSON().with_variant(JSONB(astext_type=Text()), 'postgresql')

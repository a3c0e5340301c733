# smartpolice/models/catalog/service.py
"""
Modèle Service - Catalogue des offres de services.

Ce module définit la table `services` : les prestations (accompagnement
d'urgence, audit de sécurité, formation...) proposées aux clients dont
le plan ouvre la fonctionnalité VIEW_SERVICES.

Un service inactif reste en base mais n'est plus visible ni demandable
depuis le portail client.
"""

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smartpolice.database.base_class import Base
from smartpolice.models.enums import ServiceCategory, ServicePriceType, ServiceStatus
from smartpolice.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from smartpolice.models.catalog.service_application import ServiceApplication


class Service(Base, TimestampMixin):
    """
    Offre de service du catalogue.

    Attributes:
        id: Identifiant unique
        name: Nom commercial
        category: Catégorie (EMERGENCY, SECURITY, TRAINING, CONSULTING)
        description: Résumé affiché dans la liste
        long_description: Présentation détaillée
        price: Prix en yens
        price_type: Mode de tarification (MONTHLY, ONE_TIME, PER_USE)
        status: ACTIVE (visible) ou INACTIVE

    Example:
        service = Service(
            name="24時間緊急対応",
            category=ServiceCategory.EMERGENCY,
            description="インシデント発生時の即時対応",
            price=300000,
            price_type=ServicePriceType.MONTHLY,
        )
    """

    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("price >= 0", name="service_price_non_negative"),
        {"comment": "Catalogue des offres de services"},
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    category: Mapped[ServiceCategory] = mapped_column(
        Enum(ServiceCategory, name="service_category_enum", create_constraint=True),
        nullable=False,
        index=True,
    )

    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    long_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    price: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Prix (JPY)"
    )

    price_type: Mapped[ServicePriceType] = mapped_column(
        Enum(ServicePriceType, name="service_price_type_enum", create_constraint=True),
        nullable=False,
        default=ServicePriceType.ONE_TIME,
    )

    icon: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    main_image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    status: Mapped[ServiceStatus] = mapped_column(
        Enum(ServiceStatus, name="service_status_enum", create_constraint=True),
        nullable=False,
        default=ServiceStatus.ACTIVE,
        index=True,
    )

    # Supprimer un service détache ses demandes (service_id NULL), qui
    # conservent le nom du service
    applications: Mapped[List["ServiceApplication"]] = relationship(
        "ServiceApplication",
        back_populates="service",
        order_by="ServiceApplication.id",
    )

    @property
    def is_active(self) -> bool:
        return self.status == ServiceStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<Service(id={self.id}, name='{self.name}', status={self.status.value})>"

"""
Configuration centralisée SmartPolice
Charge les variables depuis le fichier .env

Regroupe :
- Environnement et base de données (SQLite propre au processus par défaut)
- Vérification des tokens JWT émis par le service d'authentification
- Règles métier paramétrables (lieux en ligne, expiration, affiliation)
"""
import json
import logging
from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from smartpolice import __version__


class Settings(BaseSettings):
    """
    Configuration de l'application SmartPolice.

    Les valeurs sont chargées depuis les variables d'environnement
    ou le fichier .env à la racine du projet.

    Usage:
        from smartpolice.core.config import settings
        print(settings.DATABASE_URL)
    """

    # === Environnement ===
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    APP_NAME: str = "SmartPolice"
    APP_VERSION: str = __version__

    # === Base de données ===
    # Store propre au processus (SQLite temporaire) ; toute URL SQLAlchemy est acceptée
    DATABASE_URL: str = "sqlite://"
    SEED_DEMO_DATA: bool = True

    # === JWT (vérification uniquement, l'émission est externe) ===
    JWT_SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    TOKEN_ISSUER: str = "smartpolice"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # === Calendrier métier ===
    TIMEZONE: str = "Asia/Tokyo"

    # === Règles métier ===
    # Lieux pour lesquels l'inscription à un séminaire/événement consomme un ticket
    ONLINE_LOCATION_LABELS: List[str] = ["オンライン", "Online"]
    CONSULTATION_EXPIRATION_DAYS: int = 7
    AFFILIATE_COMMISSION_PER_REFERRAL: int = 5000
    AFFILIATE_MINIMUM_PAYOUT: int = 3000

    # === CORS ===
    CORS_ORIGINS: List[str] = ["http://localhost:8000", "http://localhost:3000"]

    # === Logging ===
    LOG_LEVEL: str = "INFO"

    # === Configuration Pydantic ===
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # === Validators ===

    @field_validator('CORS_ORIGINS', 'ONLINE_LOCATION_LABELS', mode='before')
    @classmethod
    def parse_string_list(cls, v):
        """Parse une liste depuis une string JSON ou une valeur simple"""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [v]
        return v

    @field_validator('ENVIRONMENT')
    @classmethod
    def validate_environment(cls, v):
        """Valide que l'environnement est valide"""
        allowed = ['development', 'staging', 'production', 'test']
        if v.lower() not in allowed:
            raise ValueError(f"ENVIRONMENT doit être parmi : {allowed}")
        return v.lower()

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v):
        """Valide que le niveau de log est connu du module logging"""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"LOG_LEVEL inconnu : {v}")
        return level

    @field_validator('AFFILIATE_COMMISSION_PER_REFERRAL', 'AFFILIATE_MINIMUM_PAYOUT', 'CONSULTATION_EXPIRATION_DAYS')
    @classmethod
    def validate_positive(cls, v):
        if v < 0:
            raise ValueError("La valeur doit être positive")
        return v

    # === Properties générales ===

    @property
    def is_development(self) -> bool:
        """Retourne True si en mode développement"""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Retourne True si en mode production"""
        return self.ENVIRONMENT == "production"

    def is_online_location(self, location: str | None) -> bool:
        """Retourne True si le lieu déclenche une consommation de ticket"""
        if not location:
            return False
        return location.strip() in self.ONLINE_LOCATION_LABELS


@lru_cache()
def get_settings() -> Settings:
    """
    Retourne l'instance des settings (mise en cache).

    Utilise lru_cache pour ne charger les settings qu'une seule fois.
    """
    return Settings()


# Instance globale pour import facile
settings = get_settings()

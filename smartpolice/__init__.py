"""SmartPolice - portail B2B de gestion des clients, consultations et tickets."""

__version__ = "0.1.0"

"""
Tests des endpoints système (/ et /health).
"""

from fastapi import status
from fastapi.testclient import TestClient

from smartpolice.core.config import settings
from smartpolice.main import app


class TestSystemEndpoints:
    """Tests de la page d'accueil et de la configuration de l'application."""

    def test_root_reports_configured_version(self):
        response = TestClient(app).get("/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["app"] == settings.APP_NAME
        assert response.json()["version"] == settings.APP_VERSION

    def test_application_uses_settings(self):
        """Version et mode debug de l'application proviennent de la configuration."""
        assert app.version == settings.APP_VERSION
        assert app.debug is settings.DEBUG

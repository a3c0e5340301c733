"""
Tests API pour le module Consultations.

Ce module teste les endpoints :
- POST /api/v1/consultations : Ouverture (1 ticket)
- GET /api/v1/consultations, /api/v1/consultations/{id} : Lecture
- POST /api/v1/consultations/{id}/participants : Invitation (1 ticket pour un spécialiste)
- PATCH /api/v1/consultations/{id}/status : Cycle de vie
"""

from fastapi import status


def _open(api, client_id: int, subject: str = "SNSでの誹謗中傷への対応"):
    return api.post(
        "/api/v1/consultations",
        json={
            "client_id": client_id,
            "subject": subject,
            "priority": "HIGH",
            "body": "自社に関する書き込みが拡散しています。",
        },
    )


class TestOpenConsultationEndpoint:
    """Tests de l'ouverture."""

    def test_open_consultation(self, api_client_user, client_company):
        response = _open(api_client_user, client_company.id)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["reference"] == f"T-{data['id']:04d}"
        assert data["status"] == "RECEIVED"
        assert data["priority"] == "HIGH"

        balance = api_client_user.get(f"/api/v1/clients/{client_company.id}/tickets").json()
        assert balance["remaining_tickets"] == 4

    def test_open_without_tickets_returns_402(self, as_actor, other_client_actor, client_empty):
        api = as_actor(other_client_actor)

        response = _open(api, client_empty.id)

        assert response.status_code == status.HTTP_402_PAYMENT_REQUIRED
        assert api.get("/api/v1/consultations").json()["total"] == 0

    def test_open_for_other_client_is_forbidden(self, as_actor, other_client_actor, client_company):
        response = _open(as_actor(other_client_actor), client_company.id)

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestReadConsultations:
    """Tests de lecture et d'isolation entre clients."""

    def test_client_sees_only_own_consultations(
            self, as_actor, client_actor, other_client_actor, client_company, client_empty
    ):
        _open(as_actor(client_actor), client_company.id)

        own = as_actor(client_actor).get("/api/v1/consultations").json()
        other = as_actor(other_client_actor).get(
            "/api/v1/consultations", params={"client_id": client_company.id}
        ).json()

        assert own["total"] == 1
        assert other["total"] == 0

    def test_detail_of_other_client_is_forbidden(self, as_actor, client_actor, other_client_actor, client_company):
        consultation_id = _open(as_actor(client_actor), client_company.id).json()["id"]

        response = as_actor(other_client_actor).get(f"/api/v1/consultations/{consultation_id}")

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_detail_includes_messages(self, api_client_user, client_company):
        consultation_id = _open(api_client_user, client_company.id).json()["id"]

        response = api_client_user.get(f"/api/v1/consultations/{consultation_id}")

        assert response.status_code == status.HTTP_200_OK
        messages = response.json()["messages"]
        assert len(messages) == 1
        assert messages[0]["sender_kind"] == "CLIENT"

    def test_unknown_consultation(self, api_admin):
        response = api_admin.get("/api/v1/consultations/999")

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestInviteEndpoint:
    """Tests de l'invitation de participants."""

    def test_invite_lawyer(self, as_actor, client_actor, staff_actor, client_company, staff_lawyer):
        consultation_id = _open(as_actor(client_actor), client_company.id).json()["id"]

        api = as_actor(staff_actor)
        response = api.post(
            f"/api/v1/consultations/{consultation_id}/participants",
            json={"participant_type": "staff", "participant_id": staff_lawyer.id},
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["ticket_consumed"] is True
        assert data["participant"]["role"] == "LAWYER"
        assert data["message"].endswith("（チケット1枚消費）")

        detail = api.get(f"/api/v1/consultations/{consultation_id}").json()
        assert len(detail["participants"]) == 1
        assert detail["messages"][-1]["sender_kind"] == "SYSTEM"

        balance = api.get(f"/api/v1/clients/{client_company.id}/tickets").json()
        assert balance["remaining_tickets"] == 3

    def test_invite_same_lawyer_twice_returns_409(self, as_actor, client_actor, client_company, staff_lawyer):
        api = as_actor(client_actor)
        consultation_id = _open(api, client_company.id).json()["id"]
        payload = {"participant_type": "staff", "participant_id": staff_lawyer.id}

        api.post(f"/api/v1/consultations/{consultation_id}/participants", json=payload)
        response = api.post(f"/api/v1/consultations/{consultation_id}/participants", json=payload)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["detail"]["code"] == "ALREADY_PARTICIPANT"


class TestStatusEndpoint:
    """Tests du changement de statut."""

    def test_staff_advances_status(self, as_actor, client_actor, staff_actor, client_company):
        consultation_id = _open(as_actor(client_actor), client_company.id).json()["id"]

        response = as_actor(staff_actor).patch(
            f"/api/v1/consultations/{consultation_id}/status", json={"status": "IN_PROGRESS"}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "IN_PROGRESS"

    def test_client_cannot_change_status(self, api_client_user, client_company):
        consultation_id = _open(api_client_user, client_company.id).json()["id"]

        response = api_client_user.patch(
            f"/api/v1/consultations/{consultation_id}/status", json={"status": "COMPLETED"}
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_backward_transition_returns_400(self, as_actor, client_actor, staff_actor, client_company):
        consultation_id = _open(as_actor(client_actor), client_company.id).json()["id"]
        api = as_actor(staff_actor)
        api.patch(f"/api/v1/consultations/{consultation_id}/status", json={"status": "COMPLETED"})

        response = api.patch(f"/api/v1/consultations/{consultation_id}/status", json={"status": "RECEIVED"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"]["code"] == "INVALID_STATUS_TRANSITION"

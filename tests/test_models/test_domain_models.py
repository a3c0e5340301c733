"""
Tests des modèles et enums du domaine.
"""
import pytest

from smartpolice.models import Consultation, Plan, Seminar
from smartpolice.models.enums import (
    ClientUserRole,
    ConsultationStatus,
    ConsumptionType,
    ParticipantRole,
    StaffRole,
    consumption_types_matching,
)


class TestConsultationStatus:
    """Tests du cycle de vie à sens unique."""

    @pytest.mark.parametrize("current,target,allowed", [
        (ConsultationStatus.RECEIVED, ConsultationStatus.IN_PROGRESS, True),
        (ConsultationStatus.RECEIVED, ConsultationStatus.COMPLETED, True),
        (ConsultationStatus.IN_PROGRESS, ConsultationStatus.COMPLETED, True),
        (ConsultationStatus.IN_PROGRESS, ConsultationStatus.RECEIVED, False),
        (ConsultationStatus.COMPLETED, ConsultationStatus.IN_PROGRESS, False),
        (ConsultationStatus.COMPLETED, ConsultationStatus.COMPLETED, False),
    ])
    def test_can_transition_to(self, current, target, allowed):
        assert current.can_transition_to(target) is allowed

    def test_reference_format(self):
        assert Consultation.format_reference(7) == "T-0007"
        assert Consultation.format_reference(12345) == "T-12345"


class TestParticipantRole:
    """Tests des rôles de participant."""

    def test_only_specialists_are_billable(self):
        billable = {r for r in ParticipantRole if r.is_billable}

        assert billable == {ParticipantRole.LAWYER, ParticipantRole.ACCOUNTANT}

    def test_mapping_from_staff_role(self):
        assert ParticipantRole.from_staff_role(StaffRole.LEGAL) == ParticipantRole.LAWYER
        assert ParticipantRole.from_staff_role(StaffRole.ACCOUNTING) == ParticipantRole.ACCOUNTANT
        assert ParticipantRole.from_staff_role(StaffRole.ADMIN) == ParticipantRole.DEPUTY

    def test_mapping_from_client_user_role(self):
        assert ParticipantRole.from_client_user_role(ClientUserRole.CLIENT_ADMIN) == ParticipantRole.CLIENT_ADMIN
        assert ParticipantRole.from_client_user_role(ClientUserRole.CLIENT_STAFF) == ParticipantRole.CLIENT_STAFF

    def test_labels(self):
        assert ParticipantRole.LAWYER.label == "弁護士"
        assert ParticipantRole.ACCOUNTANT.label == "公認会計士"


class TestConsumptionType:
    """Tests des libellés de consommation."""

    def test_labels(self):
        assert ConsumptionType.NEW_CONSULTATION.label == "新規相談"
        assert ConsumptionType.SPECIALIST_INVITE.label == "専門家招待"

    def test_matching_by_label_or_code(self):
        assert consumption_types_matching("招待") == [ConsumptionType.SPECIALIST_INVITE]
        assert consumption_types_matching("online") == [ConsumptionType.ONLINE_EVENT_PARTICIPATION]
        assert consumption_types_matching(None) == []


class TestGatheringLocation:
    """Tests de la détection des lieux en ligne."""

    @pytest.mark.parametrize("location,online", [
        ("オンライン", True),
        ("Online", True),
        (" オンライン ", True),
        ("東京会場", False),
        ("", False),
        (None, False),
    ])
    def test_is_online(self, location, online):
        assert Seminar(title="t", location=location, capacity=1).is_online is online


class TestPlanPermissions:
    """Tests des permissions portées par un plan."""

    def test_unknown_codes_are_ignored(self):
        plan = Plan(code="p", name="p", permissions=["VIEW_SERVICES", "LEGACY_FLAG"])

        assert {p.value for p in plan.permission_set} == {"VIEW_SERVICES"}

    def test_empty_permissions(self):
        assert Plan(code="p", name="p", permissions=None).permission_set == frozenset()

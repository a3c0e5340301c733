from smartpolice.models.consultations.consultation import Consultation
from smartpolice.models.consultations.participant import ConsultationParticipant
from smartpolice.models.consultations.message import ConsultationMessage

__all__ = ["Consultation", "ConsultationParticipant", "ConsultationMessage"]

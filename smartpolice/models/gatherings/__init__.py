from smartpolice.models.gatherings.seminar import Seminar, SeminarApplication
from smartpolice.models.gatherings.event import Event, EventApplication

__all__ = ["Seminar", "SeminarApplication", "Event", "EventApplication"]

from smartpolice.models.staff.staff import Staff

__all__ = ["Staff"]

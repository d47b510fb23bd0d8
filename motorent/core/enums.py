from enum import Enum


class RentalStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    FINISHED = "FINISHED"
    CANCELLED = "CANCELLED"
    OVERDUE = "OVERDUE"


class UnitStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    BOOKED = "BOOKED"
    RENTED = "RENTED"
    MAINTENANCE = "MAINTENANCE"
    OVERDUE = "OVERDUE"


# Rentals that still hold their unit
OPEN_RENTAL_STATUSES = (RentalStatus.ACTIVE.value, RentalStatus.OVERDUE.value)

from .motor import MotorTypeRepository, MotorUnitRepository
from .rental import RentalRepository

__all__ = [
    "MotorTypeRepository",
    "MotorUnitRepository",
    "RentalRepository",
]

from .database import get_engine, get_sessionmaker
from .models import Base, MotorType, MotorUnit, Rental

__all__ = [
    "Base",
    "MotorType",
    "MotorUnit",
    "Rental",
    "get_sessionmaker",
    "get_engine",
]

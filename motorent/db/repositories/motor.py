from typing import List, Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from motorent.db.models import MotorType, MotorUnit


class MotorTypeRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, type_id: str) -> Optional[MotorType]:
        return self.session.get(MotorType, type_id)

    def create(self, motor_type: MotorType) -> None:
        self.session.add(motor_type)
        self.session.flush()


class MotorUnitRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, unit_id: str) -> Optional[MotorUnit]:
        return self.session.get(MotorUnit, unit_id)

    def get_by_plate_number(self, plate_number: str) -> Optional[MotorUnit]:
        return self.session.execute(
            select(MotorUnit).where(MotorUnit.plate_number == plate_number)
        ).scalar_one_or_none()

    def create(self, unit: MotorUnit) -> None:
        self.session.add(unit)
        self.session.flush()

    def list_units(self, status: Optional[str] = None) -> List[MotorUnit]:
        query = select(MotorUnit).order_by(MotorUnit.plate_number)
        if status:
            query = query.where(MotorUnit.status == status)
        return list(self.session.execute(query).scalars().all())

    def set_status(self, unit_id: str, status: str) -> bool:
        unit = self.get_by_id(unit_id)
        if not unit:
            return False

        old_status = unit.status
        unit.status = status
        self.session.flush()
        logger.debug(f"Unit {unit.plate_number} status: {old_status} -> {status}")
        return True


__all__ = ["MotorTypeRepository", "MotorUnitRepository"]

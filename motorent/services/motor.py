from typing import List, Optional

from loguru import logger

from motorent.core.enums import UnitStatus
from motorent.core.exceptions import (
    DuplicatePlateNumberException,
    MotorTypeNotFoundException,
    UnitNotFoundException,
)
from motorent.core.utils import uuid4
from motorent.db.models import MotorType, MotorUnit
from motorent.db.repositories.motor import MotorTypeRepository, MotorUnitRepository
from motorent.schemas import (
    MotorTypeCreate,
    MotorTypeResponse,
    MotorUnitCreate,
    MotorUnitResponse,
)


class MotorService:
    def __init__(self, type_repo: MotorTypeRepository, unit_repo: MotorUnitRepository):
        self.type_repo = type_repo
        self.unit_repo = unit_repo

    def create_type(self, request: MotorTypeCreate) -> MotorTypeResponse:
        motor_type = MotorType(
            id=uuid4(), brand=request.brand, model=request.model, cc=request.cc
        )
        self.type_repo.create(motor_type)
        logger.info(f"Motor type {motor_type.brand} {motor_type.model} created")
        return MotorTypeResponse.model_validate(motor_type)

    def create_unit(self, request: MotorUnitCreate) -> MotorUnitResponse:
        if not self.type_repo.get_by_id(request.type_id):
            logger.warning(f"Motor type {request.type_id} not found")
            raise MotorTypeNotFoundException()

        plate_number = request.plate_number.strip().upper()
        if self.unit_repo.get_by_plate_number(plate_number):
            logger.warning(f"Plate number {plate_number} already registered")
            raise DuplicatePlateNumberException()

        unit = MotorUnit(
            id=uuid4(),
            type_id=request.type_id,
            plate_number=plate_number,
            daily_rate=request.daily_rate,
            status=UnitStatus.AVAILABLE.value,
            year=request.year,
            color=request.color,
        )
        self.unit_repo.create(unit)
        logger.info(f"Motor unit {unit.plate_number} created")
        return MotorUnitResponse.model_validate(unit)

    def list_units(self, status: Optional[str] = None) -> List[MotorUnitResponse]:
        return [
            MotorUnitResponse.model_validate(unit)
            for unit in self.unit_repo.list_units(status)
        ]

    def get_unit(self, unit_id: str) -> MotorUnitResponse:
        unit = self.unit_repo.get_by_id(unit_id)
        if not unit:
            raise UnitNotFoundException()
        return MotorUnitResponse.model_validate(unit)

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from sqlalchemy.orm import Session

from motorent.api.dependencies import get_motor_service, get_session
from motorent.core.exceptions import (
    DuplicatePlateNumberException,
    MotorTypeNotFoundException,
    UnitNotFoundException,
    duplicate_plate_number_exception,
    motor_type_not_found_exception,
    unit_not_found_exception,
)
from motorent.schemas import (
    MotorTypeCreate,
    MotorTypeResponse,
    MotorUnitCreate,
    MotorUnitResponse,
)
from motorent.services.motor import MotorService

router = APIRouter()


@router.post("/motor-types", response_model=MotorTypeResponse, status_code=201)
def create_motor_type(
    request: MotorTypeCreate,
    motor_service: MotorService = Depends(get_motor_service),
    session: Session = Depends(get_session),
):
    try:
        response = motor_service.create_type(request)
        session.commit()
        return response
    except Exception as e:
        session.rollback()
        logger.exception(f"Error creating motor type: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/motor-units", response_model=MotorUnitResponse, status_code=201)
def create_motor_unit(
    request: MotorUnitCreate,
    motor_service: MotorService = Depends(get_motor_service),
    session: Session = Depends(get_session),
):
    try:
        response = motor_service.create_unit(request)
        session.commit()
        return response
    except MotorTypeNotFoundException:
        session.rollback()
        raise motor_type_not_found_exception()
    except DuplicatePlateNumberException:
        session.rollback()
        raise duplicate_plate_number_exception()
    except Exception as e:
        session.rollback()
        logger.exception(f"Error creating motor unit: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/motor-units", response_model=List[MotorUnitResponse])
def list_motor_units(
    status: Optional[str] = None,
    motor_service: MotorService = Depends(get_motor_service),
):
    return motor_service.list_units(status)


@router.get("/motor-units/{unit_id}", response_model=MotorUnitResponse)
def get_motor_unit(
    unit_id: str,
    motor_service: MotorService = Depends(get_motor_service),
):
    try:
        return motor_service.get_unit(unit_id)
    except UnitNotFoundException:
        raise unit_not_found_exception()

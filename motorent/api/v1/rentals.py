from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger
from sqlalchemy.orm import Session

from motorent.api.dependencies import get_rental_service, get_session
from motorent.core.exceptions import (
    InvalidPhoneNumberException,
    InvalidRentalPeriodException,
    InvalidRentalUpdateException,
    RentalAlreadyFinishedException,
    RentalNotFoundException,
    UnitNotFoundException,
    UnitUnavailableException,
    bad_request_exception,
    rental_not_found_exception,
    unit_not_found_exception,
)
from motorent.schemas import (
    FacilityReport,
    OverdueCheckResponse,
    PenaltyReport,
    PriceRequest,
    PriceResponse,
    RentalCreate,
    RentalResponse,
    RentalUpdate,
)
from motorent.services.rental import RentalService

router = APIRouter()


@router.post("/rentals/calculate-price", response_model=PriceResponse)
def calculate_price(
    request: PriceRequest,
    rental_service: RentalService = Depends(get_rental_service),
):
    try:
        return rental_service.calculate_price(request)
    except UnitNotFoundException:
        raise unit_not_found_exception()
    except InvalidRentalPeriodException as e:
        raise bad_request_exception(str(e))


@router.post("/rentals", response_model=RentalResponse, status_code=201)
def create_rental(
    request: RentalCreate,
    rental_service: RentalService = Depends(get_rental_service),
    session: Session = Depends(get_session),
):
    try:
        response = rental_service.create_rental(request)
        session.commit()
        rental_service.send_notifications()
        return response
    except UnitNotFoundException:
        session.rollback()
        raise unit_not_found_exception()
    except (InvalidRentalPeriodException, UnitUnavailableException) as e:
        session.rollback()
        raise bad_request_exception(str(e))
    except Exception as e:
        session.rollback()
        logger.exception(f"Error creating rental: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/rentals", response_model=List[RentalResponse])
def list_rentals(
    status: Optional[str] = None,
    unit_id: Optional[str] = None,
    search: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    rental_service: RentalService = Depends(get_rental_service),
):
    return rental_service.list_rentals(
        status,
        page,
        limit,
        unit_id=unit_id,
        search=search,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/rentals/history", response_model=List[RentalResponse])
def rental_history(
    unit_id: Optional[str] = None,
    search: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    rental_service: RentalService = Depends(get_rental_service),
):
    return rental_service.get_history(
        page,
        limit,
        unit_id=unit_id,
        search=search,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/rentals/reports/penalty", response_model=PenaltyReport)
def penalty_report(
    start: date,
    end: date,
    rental_service: RentalService = Depends(get_rental_service),
):
    return rental_service.get_penalty_report(start, end)


@router.get("/rentals/reports/facilities", response_model=FacilityReport)
def facility_report(
    start: date,
    end: date,
    rental_service: RentalService = Depends(get_rental_service),
):
    return rental_service.get_facility_report(start, end)


@router.get("/rentals/phone/{number}", response_model=List[RentalResponse])
def find_by_phone(
    number: str,
    rental_service: RentalService = Depends(get_rental_service),
):
    try:
        return rental_service.find_by_phone(number)
    except InvalidPhoneNumberException as e:
        raise bad_request_exception(str(e))


@router.post("/rentals/overdue/check", response_model=OverdueCheckResponse)
def check_overdue(
    rental_service: RentalService = Depends(get_rental_service),
    session: Session = Depends(get_session),
):
    try:
        marked = rental_service.check_overdue_rentals()
        session.commit()
        rental_service.send_notifications()
        return OverdueCheckResponse(marked=marked)
    except Exception as e:
        session.rollback()
        logger.exception(f"Error checking overdue rentals: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/rentals/{rental_id}", response_model=RentalResponse)
def get_rental(
    rental_id: str,
    rental_service: RentalService = Depends(get_rental_service),
):
    try:
        return rental_service.get_rental(rental_id)
    except RentalNotFoundException:
        raise rental_not_found_exception()


@router.patch("/rentals/{rental_id}", response_model=RentalResponse)
def update_rental(
    rental_id: str,
    request: RentalUpdate,
    rental_service: RentalService = Depends(get_rental_service),
    session: Session = Depends(get_session),
):
    try:
        response = rental_service.update_rental(rental_id, request)
        session.commit()
        rental_service.send_notifications()
        return response
    except RentalNotFoundException:
        session.rollback()
        raise rental_not_found_exception()
    except UnitNotFoundException:
        session.rollback()
        raise unit_not_found_exception()
    except (
        InvalidRentalPeriodException,
        InvalidRentalUpdateException,
        RentalAlreadyFinishedException,
        UnitUnavailableException,
    ) as e:
        session.rollback()
        raise bad_request_exception(str(e))
    except Exception as e:
        session.rollback()
        logger.exception(f"Error updating rental: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/rentals/{rental_id}/finish", response_model=RentalResponse)
def finish_rental(
    rental_id: str,
    rental_service: RentalService = Depends(get_rental_service),
    session: Session = Depends(get_session),
):
    try:
        response = rental_service.finish_rental(rental_id)
        session.commit()
        rental_service.send_notifications()
        return response
    except RentalNotFoundException:
        session.rollback()
        raise rental_not_found_exception()
    except RentalAlreadyFinishedException as e:
        session.rollback()
        raise bad_request_exception(str(e))
    except Exception as e:
        session.rollback()
        logger.exception(f"Error finishing rental: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/rentals/{rental_id}", status_code=204)
def delete_rental(
    rental_id: str,
    rental_service: RentalService = Depends(get_rental_service),
    session: Session = Depends(get_session),
):
    try:
        rental_service.delete_rental(rental_id)
        session.commit()
    except RentalNotFoundException:
        session.rollback()
        raise rental_not_found_exception()
    except Exception as e:
        session.rollback()
        logger.exception(f"Error deleting rental: {e}")
        raise HTTPException(status_code=500, detail=str(e))

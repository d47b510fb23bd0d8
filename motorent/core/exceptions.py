from fastapi import HTTPException


class MotorentException(Exception):
    pass


class UnitNotFoundException(MotorentException):
    pass


class MotorTypeNotFoundException(MotorentException):
    pass


class DuplicatePlateNumberException(MotorentException):
    pass


class RentalNotFoundException(MotorentException):
    pass


class InvalidRentalPeriodException(MotorentException):
    pass


class UnitUnavailableException(MotorentException):
    pass


class RentalAlreadyFinishedException(MotorentException):
    pass


class InvalidPhoneNumberException(MotorentException):
    pass


class InvalidRentalUpdateException(MotorentException):
    pass


def unit_not_found_exception(detail: str = "Motor unit not found"):
    return HTTPException(status_code=404, detail=detail)


def motor_type_not_found_exception(detail: str = "Motor type not found"):
    return HTTPException(status_code=404, detail=detail)


def duplicate_plate_number_exception(detail: str = "Plate number already registered"):
    return HTTPException(status_code=409, detail=detail)


def rental_not_found_exception(detail: str = "Rental not found"):
    return HTTPException(status_code=404, detail=detail)


def bad_request_exception(detail: str):
    return HTTPException(status_code=400, detail=detail)

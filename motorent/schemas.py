from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from motorent.core.enums import RentalStatus

TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"


class MotorTypeCreate(BaseModel):
    brand: str = Field(..., min_length=1, max_length=64)
    model: str = Field(..., min_length=1, max_length=64)
    cc: int = Field(..., gt=0)


class MotorTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    brand: str
    model: str
    cc: int


class MotorUnitCreate(BaseModel):
    type_id: str
    plate_number: str = Field(..., min_length=1, max_length=16)
    daily_rate: int = Field(..., ge=0, description="Harga sewa per hari, rupiah")
    year: Optional[int] = None
    color: Optional[str] = None


class MotorUnitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type_id: str
    plate_number: str
    daily_rate: int
    status: str
    year: Optional[int] = None
    color: Optional[str] = None


class PriceRequest(BaseModel):
    unit_id: str
    start_date: date
    end_date: date
    start_time: Optional[str] = Field(None, pattern=TIME_OF_DAY_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_OF_DAY_PATTERN)


class RentalCreate(PriceRequest):
    renter_name: str = Field(..., min_length=1, max_length=128)
    whatsapp_number: str = Field(..., min_length=6, max_length=32)
    helmets: int = Field(0, ge=0, le=2)
    raincoats: int = Field(0, ge=0, le=2)
    total_cost: Optional[int] = Field(None, ge=0)


class RentalUpdate(BaseModel):
    renter_name: Optional[str] = Field(None, min_length=1, max_length=128)
    whatsapp_number: Optional[str] = Field(None, min_length=6, max_length=32)
    unit_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[str] = Field(None, pattern=TIME_OF_DAY_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_OF_DAY_PATTERN)
    helmets: Optional[int] = Field(None, ge=0, le=2)
    raincoats: Optional[int] = Field(None, ge=0, le=2)
    status: Optional[RentalStatus] = None
    total_cost: Optional[int] = Field(None, ge=0)


class UnitSummary(BaseModel):
    id: str
    plate_number: str
    brand: str
    model: str
    cc: int
    daily_rate: int


class PriceBreakdown(BaseModel):
    start_date: date
    end_date: date
    start_time: str
    end_time: str
    total_hours: int
    full_days: int
    extra_hours: int
    daily_rate: int
    hourly_rate: int
    daily_amount: int
    hourly_amount: int


class PriceResponse(BaseModel):
    unit: UnitSummary
    breakdown: PriceBreakdown
    total_cost: int


class RentalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    renter_name: str
    whatsapp_number: str
    unit_id: str
    start_date: date
    end_date: date
    start_time: str
    end_time: str
    helmets: int
    raincoats: int
    status: str
    total_cost: int
    penalty: int = 0
    created_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


class ReportPeriod(BaseModel):
    start: datetime
    end: datetime


class PenaltyReport(BaseModel):
    data: List[RentalResponse]
    total_penalty: int
    period: ReportPeriod


class FacilityReport(BaseModel):
    data: List[RentalResponse]
    total_helmets: int
    total_raincoats: int
    period: ReportPeriod


class OverdueCheckResponse(BaseModel):
    marked: List[str]


class HealthResponse(BaseModel):
    ok: bool = True

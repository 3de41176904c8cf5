from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date
from decimal import Decimal

class BusSearchResult(BaseModel):
    """A bus offered on the requested route"""
    id: int
    name: str
    operator_name: str = Field(..., alias="operatorName")
    operator_id: int = Field(..., alias="operatorId")
    policy_id: Optional[int] = Field(None, alias="policyId")
    departure: str
    arrival: str
    price: Decimal
    type: str

    class Config:
        populate_by_name = True

class BusSearchResponse(BaseModel):
    buses: List[BusSearchResult]

class Seat(BaseModel):
    number: str
    row: int
    column: str
    is_occupied: bool = Field(..., alias="isOccupied")
    is_best: bool = Field(..., alias="isBest")

    class Config:
        populate_by_name = True

class SeatMap(BaseModel):
    operator_id: int = Field(..., alias="operatorId")
    travel_date: Optional[date] = Field(None, alias="travelDate")
    rows: int
    seats_per_row: int = Field(..., alias="seatsPerRow")
    seats: List[Seat]
    available_count: int = Field(..., alias="availableCount")

    class Config:
        populate_by_name = True

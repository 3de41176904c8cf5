from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from trustroute.database import get_db
from trustroute.buses.schemas import BusSearchResponse, SeatMap
from trustroute.buses.service import BusSearchService

router = APIRouter()

@router.get("/search", response_model=BusSearchResponse)
def search_buses(
    origin: Optional[str] = Query(None, alias="from", description="Origin city"),
    destination: Optional[str] = Query(None, alias="to", description="Destination city"),
    travel_date: Optional[date] = Query(None, alias="date", description="Travel date"),
    db: Session = Depends(get_db)
):
    """Search buses between two cities"""
    if not origin or not destination or not travel_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="From, To, and Date are required"
        )

    bus_service = BusSearchService(db)
    return BusSearchResponse(buses=bus_service.search(origin, destination, travel_date))

@router.get("/{operator_id}/seats", response_model=SeatMap)
def get_seat_map(
    operator_id: int,
    travel_date: Optional[date] = Query(None, alias="date", description="Travel date"),
    db: Session = Depends(get_db)
):
    """Get the seat layout of an operator's bus"""
    bus_service = BusSearchService(db)
    if not bus_service.operator_service.get_operator(operator_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Operator not found"
        )
    return bus_service.get_seat_map(operator_id, travel_date)

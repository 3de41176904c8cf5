from typing import List, Optional, Set
from datetime import date
from decimal import Decimal
from sqlalchemy.orm import Session

from trustroute.models import Booking
from trustroute.operators.service import OperatorService
from trustroute.buses.schemas import BusSearchResult, Seat, SeatMap

SEAT_ROWS = 10
SEATS_PER_ROW = 4
# Seats shown as taken on every bus
MOCK_OCCUPIED_SEATS = {"1A", "2B", "5C", "8D", "10A"}
BEST_SEAT_ROWS = 2
BASE_FARE = Decimal("700")
FARE_STEP = Decimal("150")

def seat_label(row: int, column_index: int) -> str:
    return f"{row}{chr(ord('A') + column_index)}"

def all_seat_numbers() -> List[str]:
    return [
        seat_label(row, col)
        for row in range(1, SEAT_ROWS + 1)
        for col in range(SEATS_PER_ROW)
    ]

class BusSearchService:
    """Mocked bus search: every operator runs one bus on every route"""

    def __init__(self, db: Session):
        self.db = db
        self.operator_service = OperatorService(db)

    def search(self, origin: str, destination: str, travel_date: date) -> List[BusSearchResult]:
        results = []
        for index, operator in enumerate(self.operator_service.list_operators()):
            policy = self.operator_service.policy_service.get_current_policy(operator.id)
            results.append(BusSearchResult(
                id=operator.id,
                name=f"{operator.name} Express",
                operator_name=operator.name,
                operator_id=operator.id,
                policy_id=policy.id if policy else None,
                departure=f"{9 + index}:00 AM",
                arrival=f"{5 + index}:00 PM",
                price=BASE_FARE + FARE_STEP * index,
                type="A/C Sleeper" if index % 2 == 0 else "Non-A/C Seater",
            ))
        return results

    def booked_seats(self, operator_id: int, travel_date: Optional[date]) -> Set[str]:
        """Seats held by confirmed bookings of an operator on a travel date"""
        if travel_date is None:
            return set()

        rows = self.db.query(Booking.seat_number).filter(
            Booking.operator_id == operator_id,
            Booking.status == "CONFIRMED",
            Booking.seat_number.isnot(None),
            Booking.travel_day == travel_date
        ).all()
        return {seat_number for (seat_number,) in rows}

    def is_seat_available(self, operator_id: int, travel_date: Optional[date], seat_number: str) -> bool:
        if seat_number not in all_seat_numbers() or seat_number in MOCK_OCCUPIED_SEATS:
            return False
        return seat_number not in self.booked_seats(operator_id, travel_date)

    def get_seat_map(self, operator_id: int, travel_date: Optional[date] = None) -> SeatMap:
        occupied = MOCK_OCCUPIED_SEATS | self.booked_seats(operator_id, travel_date)

        seats = []
        for row in range(1, SEAT_ROWS + 1):
            for col in range(SEATS_PER_ROW):
                number = seat_label(row, col)
                is_occupied = number in occupied
                seats.append(Seat(
                    number=number,
                    row=row,
                    column=chr(ord('A') + col),
                    is_occupied=is_occupied,
                    is_best=row <= BEST_SEAT_ROWS and not is_occupied,
                ))

        return SeatMap(
            operator_id=operator_id,
            travel_date=travel_date,
            rows=SEAT_ROWS,
            seats_per_row=SEATS_PER_ROW,
            seats=seats,
            available_count=len([s for s in seats if not s.is_occupied]),
        )

from datetime import datetime, timedelta, timezone
from decimal import Decimal

ADMIN_KEY = "test-admin-key"

STANDARD_RULES = {
    "slabs": [
        {"hoursBefore": 24, "refundPercentage": 95, "label": "More than 24 hours before departure"},
        {"hoursBefore": 12, "refundPercentage": 75, "label": "12-24 hours before departure"},
        {"hoursBefore": 3, "refundPercentage": 50, "label": "3-12 hours before departure"},
        {"hoursBefore": 0, "refundPercentage": 0, "label": "Less than 3 hours before departure"},
    ],
    "fees": {"convenience": 5, "operatorDelay": 0},
}

class FakeChatClient:
    """Records conversations instead of calling the chat provider"""

    def __init__(self, reply=None, error=None):
        self.calls = []
        self.reply = reply or {"choices": [{"message": {"role": "assistant", "content": "Happy to help!"}}]}
        self.error = error

    def complete(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return self.reply

    def close(self):
        pass

def dec(value) -> Decimal:
    return Decimal(str(value))

def hours_from_now(hours: float) -> str:
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).isoformat()

def signup_and_login(client, email="asha@example.com", password="secret123", name="Asha"):
    response = client.post("/api/v1/auth/signup", json={"email": email, "password": password, "name": name})
    assert response.status_code == 201, response.text
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()

def create_booking(client, operator, hours_ahead=30, amount=1000, seat="3A", **extra):
    payload = {
        "operatorId": operator["operator_id"],
        "policyId": operator["policy_id"],
        "amount": amount,
        "seatNumber": seat,
        "passengerName": "Asha",
        "travelDate": hours_from_now(hours_ahead),
        "route": "Chennai → Bangalore",
        "departureTime": "9:00 AM",
    }
    payload.update(extra)
    response = client.post("/api/v1/bookings", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["booking"]

#!/usr/bin/env python3

from trustroute.config import settings
from trustroute.database import Base, build_engine, build_session_factory
from trustroute.models import BusOperator, Booking, RefundPolicy, RefundTransaction
from trustroute.refunds.policy_service import validate_rules

def standard_rules(slabs, convenience=5, operator_delay=0):
    return {
        "slabs": [
            {"hoursBefore": hours, "refundPercentage": pct, "label": label}
            for hours, pct, label in slabs
        ],
        "fees": {"convenience": convenience, "operatorDelay": operator_delay},
    }

OPERATORS = [
    ("FastTrack Travels", standard_rules([
        (24, 100, "More than 24 hours before departure"),
        (12, 50, "12-24 hours before departure"),
        (0, 0, "Less than 12 hours before departure"),
    ])),
    ("StarBus", standard_rules([
        (24, 95, "More than 24 hours before departure"),
        (0, 0, "Less than 24 hours before departure"),
    ])),
    ("GreenLine", standard_rules([
        (48, 75, "More than 48 hours before departure"),
        (12, 50, "12-48 hours before departure"),
        (0, 0, "Less than 12 hours before departure"),
    ])),
    ("NightRider", standard_rules([
        (24, 95, "More than 24 hours before departure"),
        (6, 50, "6-24 hours before departure"),
        (0, 0, "Less than 6 hours before departure"),
    ])),
    ("CityLink Express", standard_rules([
        (24, 80, "More than 24 hours before departure"),
        (3, 40, "3-24 hours before departure"),
        (0, 0, "Less than 3 hours before departure"),
    ])),
    ("Royal Coaches", standard_rules([
        (12, 90, "More than 12 hours before departure"),
        (3, 40, "3-12 hours before departure"),
        (0, 0, "Less than 3 hours before departure"),
    ])),
    ("MetroWay", standard_rules([
        (24, 95, "More than 24 hours before departure"),
        (12, 75, "12-24 hours before departure"),
        (3, 50, "3-12 hours before departure"),
        (0, 0, "Less than 3 hours before departure"),
    ])),
]

def create_seed_data():
    engine = build_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)
    db = build_session_factory(engine)()

    try:
        print("Creating seed data for TrustRoute...")

        # Clear existing data (in reverse dependency order)
        print("Clearing existing data...")
        db.query(RefundTransaction).delete()
        db.query(Booking).delete()
        db.query(RefundPolicy).delete()
        db.query(BusOperator).delete()

        for name, rules in OPERATORS:
            operator = BusOperator(name=name)
            db.add(operator)
            db.flush()
            db.add(RefundPolicy(
                operator_id=operator.id,
                version=1,
                is_current=True,
                rules=validate_rules(rules).model_dump(mode="json", by_alias=True),
            ))
            print(f"Created operator: {name}")

        db.commit()
        print("Seeding complete!")

    except Exception as e:
        db.rollback()
        print(f"Seed error: {e}")
        raise
    finally:
        db.close()
        engine.dispose()

if __name__ == "__main__":
    create_seed_data()

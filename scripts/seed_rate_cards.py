from datetime import date, timedelta
from pathlib import Path

import yaml

from app.db import Base, SessionLocal, engine
from app import models  # noqa: F401  (registers SQLAlchemy models)
from app.dependencies import get_pricing_config
from app.repositories.rate_cards import find_active_card
from app.repositories.shippers import get_shipper_by_code
from app.services import RateCardService, ShipperService

DATA_FILE = Path(__file__).parent / "data" / "rate_cards.yaml"


def main(path: Path = DATA_FILE):
    Base.metadata.create_all(bind=engine)

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    db = SessionLocal()
    try:
        shippers = ShipperService(db)
        rate_cards = RateCardService(db, get_pricing_config())

        by_code = {}
        for item in raw.get("shippers", []):
            existing = get_shipper_by_code(db, item["shipper_code"])
            by_code[item["shipper_code"]] = existing or shippers.create(item, actor_id="seed")

        created = skipped = 0
        today = date.today()
        for item in raw.get("rate_cards", []):
            data = dict(item)
            shipper = by_code[data.pop("shipper_code")]
            if find_active_card(
                db, shipper.id, data["origin_airport"], data["destination_airport"], data["shipment_type"]
            ):
                skipped += 1
                continue
            valid_days = int(data.pop("valid_days", 30))
            data.update(
                shipper_id=shipper.id,
                valid_from=today,
                valid_until=today + timedelta(days=valid_days),
            )
            rate_cards.create(data, actor_id="seed")
            created += 1

        print(f"Seeded {len(by_code)} shippers and {created} rate cards from {path} ({skipped} already present)")
    finally:
        db.close()


if __name__ == "__main__":
    main()

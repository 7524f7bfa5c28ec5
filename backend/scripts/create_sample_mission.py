# backend/scripts/create_sample_mission.py
"""
Insert a demo mission assigned to an existing user.

    python scripts/create_sample_mission.py <username> [mission-id]
"""
import sys
from datetime import date

from parkops.db import SessionLocal
from parkops.errors import MissionServiceError
from parkops.schemas.mission import MissionCreate
from parkops.services.lifecycle import create_mission


def sample_payload(username: str, mission_id: str) -> MissionCreate:
    return MissionCreate.model_validate({
        "username": username,
        "id": mission_id,
        "date": date.today().isoformat(),
        "cashier": "John Doe",
        "machineName": "Machine A1",
        "qrCode": "QR12345",
        "collect": {
            "notes": {"amount": 500},
            "coins": {"amount": 200},
        },
        "refill": {
            "coins": {"amount": 100, "coinTypes": {"1": 50, "2": 50}},
            "notes": {"amount": 500, "noteTypes": {"10": 30, "20": 20}},
        },
        "maintenance": [
            {"task": {"en": "Clean screen", "fr": "Nettoyer l'écran"}},
            {"task": {"en": "Check printer", "fr": "Vérifier l'imprimante"}},
        ],
    })


if __name__ == "__main__":
    if len(sys.argv) not in (2, 3):
        print("Usage: python scripts/create_sample_mission.py <username> [mission-id]")
        sys.exit(1)

    mission_id = sys.argv[2] if len(sys.argv) == 3 else "mission-001"
    with SessionLocal() as s:
        try:
            mission = create_mission(s, sample_payload(sys.argv[1], mission_id))
        except MissionServiceError as e:
            print(f"✗ {e.message}")
            sys.exit(1)
    print("✓ Sample mission created successfully")
    print(f"  Mission ID: {mission.mission_id}")
    print(f"  Status: {mission.status}")

import os
from pathlib import Path

# Configuration via environment variables with sensible defaults
PORT = int(os.getenv("PORT", "8000"))

# SQLite storage for reproduction events and tasks
DB_PATH = os.getenv("DB_PATH", str(Path(__file__).parent / "data" / "ladoum.db"))

# Authentication and security
VALID_KEYS = [k.strip() for k in os.getenv("VALID_KEYS", "").split(",") if k.strip()]

# Reproduction rules (Ladoum sheep defaults)
GESTATION_DAYS = int(os.getenv("GESTATION_DAYS", "150"))
MATING_CONFIRMATION_DAYS = int(os.getenv("MATING_CONFIRMATION_DAYS", "20"))  # Mating older than this is presumed failed
ULTRASOUND_DELAY_DAYS = int(os.getenv("ULTRASOUND_DELAY_DAYS", "45"))
WEANING_DELAY_DAYS = int(os.getenv("WEANING_DELAY_DAYS", "90"))
HEAT_WINDOW_DAYS = int(os.getenv("HEAT_WINDOW_DAYS", "2"))  # +/- days around a predicted heat
GESTATION_WINDOW_DAYS = int(os.getenv("GESTATION_WINDOW_DAYS", "5"))  # +/- days around an expected birth

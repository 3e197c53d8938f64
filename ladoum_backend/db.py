import os
import sqlite3
import logging
from pathlib import Path
from .config import DB_PATH

logger = logging.getLogger(__name__)

# Ensure data directory exists
db_path = Path(DB_PATH)
data_dir = db_path.parent
data_dir.mkdir(parents=True, exist_ok=True)

try:
    os.chmod(data_dir, 0o777)
except PermissionError:
    pass

# Initialize DB and tables
conn = sqlite3.connect(DB_PATH, check_same_thread=False)
logger.info(f"SQLite database opened at {DB_PATH}")

# Reproduction events: one row per event, offspring_ids stored as a JSON array
conn.execute(
    """
    CREATE TABLE IF NOT EXISTS reproduction_events (
        id TEXT PRIMARY KEY,
        farm_id TEXT,
        animal_id TEXT NOT NULL,
        type TEXT NOT NULL CHECK (type IN ('Heat', 'Mating', 'Pregnancy', 'Birth', 'Abortion', 'Weaning')),
        date TEXT NOT NULL,
        notes TEXT,
        intensity TEXT,
        duration REAL,
        male_id TEXT,
        mating_type TEXT,
        expected_due_date TEXT,
        confirmation_method TEXT,
        litter_size INTEGER,
        offspring_ids TEXT,
        complications TEXT,
        weaning_weight REAL,
        created_by TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """
)

conn.execute(
    """
    CREATE TABLE IF NOT EXISTS tasks (
        id TEXT PRIMARY KEY,
        farm_id TEXT,
        title TEXT NOT NULL,
        date TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'Todo',
        priority TEXT NOT NULL DEFAULT 'Medium',
        type TEXT NOT NULL DEFAULT 'General',
        animal_id TEXT,
        description TEXT,
        assigned_to TEXT,
        created_by TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """
)
conn.commit()


def create_indexes() -> None:
    try:
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_reproduction_events_animal_date ON reproduction_events(animal_id, date)"
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_reproduction_events_farm_date ON reproduction_events(farm_id, date)"
        )
        # One heat per animal per day; guards against double submit and re-uploaded files
        conn.execute(
            """
            CREATE UNIQUE INDEX IF NOT EXISTS uniq_heat_animal_date
            ON reproduction_events(animal_id, date) WHERE type = 'Heat'
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_farm_date ON tasks(farm_id, date)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_animal ON tasks(animal_id)")
        conn.commit()
    except sqlite3.Error as e:
        logger.error(f"Error creating indexes: {e}")


create_indexes()

"""KuzuDB embedded graph database connection."""
import os
import logging
import kuzu
from pathlib import Path

logger = logging.getLogger(__name__)

DB_PATH = Path(os.environ.get("DB_PATH", Path(__file__).resolve().parent.parent / "graph_data"))
_database = None


def get_database():
    global _database
    if _database is None:
        DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        _database = kuzu.Database(str(DB_PATH))
        _init_schema(_database)
        logger.info("Opened genealogy database at %s", DB_PATH)
    return _database


def _init_schema(db):
    conn = kuzu.Connection(db)

    # ── Core data tables ──
    conn.execute(
        "CREATE NODE TABLE IF NOT EXISTS Person("
        "id STRING, name STRING, gender STRING, generation INT64, "
        "birth_date STRING, death_date STRING, birth_place STRING, "
        "bio STRING, is_starred BOOL, avatar_url STRING, "
        "family_id STRING, created_at STRING, "
        "PRIMARY KEY(id))"
    )
    # parent-child / adopted: FROM parent TO child; spouse: FROM primary side
    conn.execute(
        "CREATE REL TABLE IF NOT EXISTS RELATED("
        "FROM Person TO Person, id STRING, rel_type STRING, seq INT64, created_at STRING)"
    )

    # ── Family table ──
    conn.execute(
        "CREATE NODE TABLE IF NOT EXISTS Family("
        "id STRING, name STRING, descr STRING, created_at STRING, "
        "PRIMARY KEY(id))"
    )

    # ── Event (life timeline; person_id references Person.id) ──
    conn.execute(
        "CREATE NODE TABLE IF NOT EXISTS Event("
        "id STRING, person_id STRING, event_type STRING, title STRING, "
        "event_date STRING, description STRING, location STRING, "
        "latitude DOUBLE, longitude DOUBLE, created_at STRING, "
        "PRIMARY KEY(id))"
    )

    # ── OperateLog (audit log) ──
    conn.execute(
        "CREATE NODE TABLE IF NOT EXISTS OperateLog("
        "id STRING, family_id STRING, operator STRING, "
        "action STRING, entity_type STRING, entity_id STRING, "
        "summary STRING, created_at STRING, "
        "PRIMARY KEY(id))"
    )


def get_conn():
    db = get_database()
    conn = kuzu.Connection(db)
    try:
        yield conn
    finally:
        pass

"""Person and relation CRUD against KuzuDB. Rows come back as plain dicts."""
import logging
import threading
import uuid
from datetime import datetime, timezone
import kuzu

from . import events
from .schemas import RELATION_TYPES

logger = logging.getLogger(__name__)

# seq is read then written in two statements; allocations must not interleave
_SEQ_LOCK = threading.Lock()

_PERSON_COLUMNS = (
    "id", "name", "gender", "generation", "birth_date", "death_date",
    "birth_place", "bio", "is_starred", "avatar_url", "family_id",
)
_PERSON_RETURN = ", ".join(f"p.{c}" for c in _PERSON_COLUMNS)
_OPTIONAL_TEXT = ("birth_date", "death_date", "birth_place", "bio", "avatar_url", "family_id")
_UPDATABLE = ("name", "gender", "generation", "birth_date", "death_date", "birth_place", "bio", "avatar_url")


def _row_to_person(row) -> dict:
    p = dict(zip(_PERSON_COLUMNS, row))
    # optional text is stored as '' rather than NULL
    for col in _OPTIONAL_TEXT:
        if not p[col]:
            p[col] = None
    p["is_starred"] = bool(p["is_starred"])
    return p


def _row_to_relation(row) -> dict:
    return {"id": row[0], "from_id": row[1], "to_id": row[2], "type": row[3]}


# ── Person CRUD ──

def create_person(conn: kuzu.Connection, name: str, gender: str = "male", generation: int = 1,
                  birth_date: str | None = None, death_date: str | None = None,
                  birth_place: str | None = None, bio: str | None = None,
                  is_starred: bool = False, avatar_url: str | None = None,
                  family_id: str | None = None) -> dict:
    if gender not in ("male", "female"):
        raise ValueError(f"Unknown gender: {gender}")
    if generation < 1:
        raise ValueError("generation must be >= 1")
    pid = str(uuid.uuid4())
    now = datetime.now(timezone.utc).isoformat()
    conn.execute(
        "CREATE (p:Person {id: $id, name: $name, gender: $gender, generation: $gen, "
        "birth_date: $bd, death_date: $dd, birth_place: $bp, bio: $bio, "
        "is_starred: $star, avatar_url: $avatar, family_id: $fid, created_at: $ts})",
        {"id": pid, "name": name, "gender": gender, "gen": int(generation),
         "bd": birth_date or "", "dd": death_date or "", "bp": birth_place or "",
         "bio": bio or "", "star": bool(is_starred), "avatar": avatar_url or "",
         "fid": family_id or "", "ts": now}
    )
    return get_person(conn, pid)


def get_person(conn: kuzu.Connection, person_id: str, family_id: str | None = None) -> dict | None:
    query = "MATCH (p:Person) WHERE p.id = $id"
    params = {"id": person_id}
    if family_id:
        query += " AND p.family_id = $fid"
        params["fid"] = family_id
    result = conn.execute(f"{query} RETURN {_PERSON_RETURN}", params)
    if result.has_next():
        return _row_to_person(result.get_next())
    return None


def list_people(conn: kuzu.Connection, family_id: str | None = None, keyword: str | None = None) -> list[dict]:
    """List people ordered by generation, then name."""
    clauses = []
    params = {}
    if family_id:
        clauses.append("p.family_id = $fid")
        params["fid"] = family_id
    if keyword and keyword.strip():
        clauses.append("p.name CONTAINS $kw")
        params["kw"] = keyword.strip()
    where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
    result = conn.execute(
        f"MATCH (p:Person){where} RETURN {_PERSON_RETURN} ORDER BY p.generation, p.name",
        params
    )
    people = []
    while result.has_next():
        people.append(_row_to_person(result.get_next()))
    return people


def update_person(conn: kuzu.Connection, person_id: str, **fields) -> dict | None:
    """Update the given fields; None values are left untouched."""
    if get_person(conn, person_id) is None:
        return None
    updates = {k: v for k, v in fields.items() if k in _UPDATABLE and v is not None}
    if "gender" in updates and updates["gender"] not in ("male", "female"):
        raise ValueError(f"Unknown gender: {updates['gender']}")
    if "generation" in updates and updates["generation"] < 1:
        raise ValueError("generation must be >= 1")
    if updates:
        sets = ", ".join(f"p.{k} = ${k}" for k in updates)
        conn.execute(
            f"MATCH (p:Person) WHERE p.id = $id SET {sets}",
            {"id": person_id, **updates}
        )
    return get_person(conn, person_id)


def toggle_star(conn: kuzu.Connection, person_id: str) -> dict | None:
    person = get_person(conn, person_id)
    if person is None:
        return None
    conn.execute(
        "MATCH (p:Person) WHERE p.id = $id SET p.is_starred = $star",
        {"id": person_id, "star": not person["is_starred"]}
    )
    return get_person(conn, person_id)


def delete_person(conn: kuzu.Connection, person_id: str) -> bool:
    """Delete a person together with every relation and event touching them."""
    if get_person(conn, person_id) is None:
        return False
    events.delete_events_for_person(conn, person_id)
    conn.execute("MATCH (p:Person) WHERE p.id = $id DETACH DELETE p", {"id": person_id})
    logger.info("Deleted person %s with its relations and events", person_id)
    return True


# ── Relation CRUD ──

def _next_seq(conn: kuzu.Connection) -> int:
    result = conn.execute("MATCH (:Person)-[r:RELATED]->(:Person) RETURN max(r.seq)")
    current = result.get_next()[0] if result.has_next() else None
    return 0 if current is None else int(current) + 1


def create_relation(conn: kuzu.Connection, from_id: str, to_id: str, rel_type: str) -> dict:
    if rel_type not in RELATION_TYPES:
        raise ValueError(f"Unknown relation type: {rel_type}")
    if from_id == to_id:
        raise ValueError("A person cannot be related to themselves")
    for pid in (from_id, to_id):
        if get_person(conn, pid) is None:
            raise ValueError(f"Person not found: {pid}")

    rid = str(uuid.uuid4())
    now = datetime.now(timezone.utc).isoformat()
    with _SEQ_LOCK:
        conn.execute(
            "MATCH (a:Person), (b:Person) WHERE a.id = $src AND b.id = $dst "
            "CREATE (a)-[:RELATED {id: $id, rel_type: $rtype, seq: $seq, created_at: $ts}]->(b)",
            {"src": from_id, "dst": to_id, "id": rid, "rtype": rel_type,
             "seq": _next_seq(conn), "ts": now}
        )
    return {"id": rid, "from_id": from_id, "to_id": to_id, "type": rel_type}


def get_relation(conn: kuzu.Connection, relation_id: str) -> dict | None:
    result = conn.execute(
        "MATCH (a:Person)-[r:RELATED]->(b:Person) WHERE r.id = $id "
        "RETURN r.id, a.id, b.id, r.rel_type",
        {"id": relation_id}
    )
    if result.has_next():
        return _row_to_relation(result.get_next())
    return None


def list_relations(conn: kuzu.Connection, family_id: str | None = None) -> list[dict]:
    """Relations in creation order. With family_id, only those inside the family."""
    where = ""
    params = {}
    if family_id:
        where = " WHERE a.family_id = $fid AND b.family_id = $fid"
        params["fid"] = family_id
    result = conn.execute(
        f"MATCH (a:Person)-[r:RELATED]->(b:Person){where} "
        f"RETURN r.id, a.id, b.id, r.rel_type ORDER BY r.seq, r.created_at",
        params
    )
    rels = []
    while result.has_next():
        rels.append(_row_to_relation(result.get_next()))
    return rels


def relations_for_person(conn: kuzu.Connection, person_id: str) -> list[dict]:
    return [r for r in list_relations(conn) if person_id in (r["from_id"], r["to_id"])]


def delete_relation(conn: kuzu.Connection, relation_id: str) -> bool:
    if get_relation(conn, relation_id) is None:
        return False
    conn.execute(
        "MATCH (a:Person)-[r:RELATED]->(b:Person) WHERE r.id = $id DELETE r",
        {"id": relation_id}
    )
    return True

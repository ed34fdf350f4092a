"""Family CRUD. A family scopes a set of people and the relations between them."""
import uuid
from datetime import datetime, timezone
import kuzu

from . import events


def _member_count(conn: kuzu.Connection, family_id: str) -> int:
    result = conn.execute(
        "MATCH (p:Person) WHERE p.family_id = $fid RETURN count(p)",
        {"fid": family_id}
    )
    return int(result.get_next()[0]) if result.has_next() else 0


def _row_to_family(conn: kuzu.Connection, row) -> dict:
    # counted on read; Family has no stored counter
    return {"id": row[0], "name": row[1], "description": row[2] or None, "created_at": row[3],
            "member_count": _member_count(conn, row[0])}


def create_family(conn: kuzu.Connection, name: str, description: str | None = None) -> dict:
    fid = str(uuid.uuid4())
    now = datetime.now(timezone.utc).isoformat()
    conn.execute(
        "CREATE (f:Family {id: $id, name: $name, descr: $descr, created_at: $ts})",
        {"id": fid, "name": name, "descr": description or "", "ts": now}
    )
    return {"id": fid, "name": name, "description": description or None, "created_at": now,
            "member_count": 0}


def get_family(conn: kuzu.Connection, family_id: str) -> dict | None:
    result = conn.execute(
        "MATCH (f:Family) WHERE f.id = $id RETURN f.id, f.name, f.descr, f.created_at",
        {"id": family_id}
    )
    if result.has_next():
        return _row_to_family(conn, result.get_next())
    return None


def list_families(conn: kuzu.Connection) -> list[dict]:
    result = conn.execute(
        "MATCH (f:Family) RETURN f.id, f.name, f.descr, f.created_at ORDER BY f.name"
    )
    rows = []
    while result.has_next():
        rows.append(result.get_next())
    return [_row_to_family(conn, row) for row in rows]


def rename_family(conn: kuzu.Connection, family_id: str, name: str):
    conn.execute(
        "MATCH (f:Family) WHERE f.id = $id SET f.name = $name",
        {"id": family_id, "name": name}
    )


def delete_family(conn: kuzu.Connection, family_id: str):
    """Delete a family, all its people (with their relations and events) and its operation log."""
    events.delete_events_for_family(conn, family_id)
    conn.execute(
        "MATCH (p:Person) WHERE p.family_id = $fid DETACH DELETE p",
        {"fid": family_id}
    )
    conn.execute(
        "MATCH (o:OperateLog) WHERE o.family_id = $fid DELETE o",
        {"fid": family_id}
    )
    conn.execute(
        "MATCH (f:Family) WHERE f.id = $fid DELETE f",
        {"fid": family_id}
    )

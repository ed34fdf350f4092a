"""Operation log for person, relation and event edits."""
import uuid
from datetime import datetime, timezone
import kuzu


def record_operation(conn: kuzu.Connection, family_id: str | None, operator: str,
                     action: str, entity_type: str, entity_id: str, summary: str = ""):
    """Record an edit, e.g. ("create", "relation", rid, "张三 - 李四")."""
    oid = str(uuid.uuid4())
    now = datetime.now(timezone.utc).isoformat()
    conn.execute(
        "CREATE (o:OperateLog {id: $id, family_id: $fid, operator: $op, "
        "action: $action, entity_type: $etype, entity_id: $eid, "
        "summary: $summary, created_at: $ts})",
        {"id": oid, "fid": family_id or "", "op": operator,
         "action": action, "etype": entity_type, "eid": entity_id,
         "summary": summary, "ts": now}
    )
    return {"id": oid, "created_at": now}


def list_operations(conn: kuzu.Connection, family_id: str | None = None, limit: int = 50, offset: int = 0,
                    entity_id: str | None = None):
    """List recent operations, newest first. entity_id narrows to one person, relation or event."""
    limit = max(1, min(int(limit), 200))
    offset = max(0, int(offset))
    clauses = []
    params = {}
    if family_id:
        clauses.append("o.family_id = $fid")
        params["fid"] = family_id
    if entity_id:
        clauses.append("o.entity_id = $eid")
        params["eid"] = entity_id
    where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
    result = conn.execute(
        f"MATCH (o:OperateLog){where} "
        f"RETURN o.id, o.family_id, o.operator, o.action, "
        f"o.entity_type, o.entity_id, o.summary, o.created_at "
        f"ORDER BY o.created_at DESC "
        f"SKIP {offset} LIMIT {limit}",
        params
    )
    operations = []
    while result.has_next():
        row = result.get_next()
        operations.append({
            "id": row[0],
            "family_id": row[1] or None,
            "operator": row[2],
            "action": row[3],
            "entity_type": row[4],
            "entity_id": row[5],
            "summary": row[6],
            "created_at": row[7],
        })
    return operations

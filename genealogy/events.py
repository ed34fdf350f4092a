"""Life events (a person's timeline) against KuzuDB. Rows come back as plain dicts."""
import logging
import uuid
from datetime import datetime, timezone
import kuzu

from .schemas import EVENT_TYPES

logger = logging.getLogger(__name__)

_EVENT_COLUMNS = (
    "id", "person_id", "type", "title", "event_date", "description",
    "location", "latitude", "longitude", "created_at",
)
_EVENT_RETURN = (
    "e.id, e.person_id, e.event_type, e.title, e.event_date, e.description, "
    "e.location, e.latitude, e.longitude, e.created_at"
)
_OPTIONAL_TEXT = ("event_date", "description", "location")
_UPDATABLE = {
    "type": "event_type", "title": "title", "event_date": "event_date",
    "description": "description", "location": "location",
    "latitude": "latitude", "longitude": "longitude",
}


def _row_to_event(row) -> dict:
    e = dict(zip(_EVENT_COLUMNS, row))
    for col in _OPTIONAL_TEXT:
        if not e[col]:
            e[col] = None
    return e


def _person_exists(conn: kuzu.Connection, person_id: str) -> bool:
    result = conn.execute("MATCH (p:Person) WHERE p.id = $id RETURN p.id", {"id": person_id})
    return result.has_next()


def _check(event_type: str | None, title: str | None):
    if event_type is not None and event_type not in EVENT_TYPES:
        raise ValueError(f"Unknown event type: {event_type}")
    if title is not None and not title.strip():
        raise ValueError("title must not be empty")


def create_event(conn: kuzu.Connection, person_id: str, title: str, event_type: str = "other",
                 event_date: str | None = None, description: str | None = None,
                 location: str | None = None, latitude: float | None = None,
                 longitude: float | None = None) -> dict:
    _check(event_type, title)
    if not _person_exists(conn, person_id):
        raise ValueError(f"Person not found: {person_id}")
    eid = str(uuid.uuid4())
    now = datetime.now(timezone.utc).isoformat()
    props = ("id: $id, person_id: $pid, event_type: $etype, title: $title, "
             "event_date: $edate, description: $descr, location: $loc, created_at: $ts")
    params = {"id": eid, "pid": person_id, "etype": event_type, "title": title.strip(),
              "edate": event_date or "", "descr": description or "", "loc": location or "",
              "ts": now}
    # unset coordinates stay NULL
    if latitude is not None:
        props += ", latitude: $lat"
        params["lat"] = float(latitude)
    if longitude is not None:
        props += ", longitude: $lng"
        params["lng"] = float(longitude)
    conn.execute(f"CREATE (e:Event {{{props}}})", params)
    return get_event(conn, eid)


def get_event(conn: kuzu.Connection, event_id: str) -> dict | None:
    result = conn.execute(
        f"MATCH (e:Event) WHERE e.id = $id RETURN {_EVENT_RETURN}",
        {"id": event_id}
    )
    if result.has_next():
        return _row_to_event(result.get_next())
    return None


def update_event(conn: kuzu.Connection, event_id: str, **fields) -> dict | None:
    """Update the given fields; None values are left untouched."""
    if get_event(conn, event_id) is None:
        return None
    updates = {k: v for k, v in fields.items() if k in _UPDATABLE and v is not None}
    _check(updates.get("type"), updates.get("title"))
    if "title" in updates:
        updates["title"] = updates["title"].strip()
    if updates:
        columns = {_UPDATABLE[k]: v for k, v in updates.items()}
        sets = ", ".join(f"e.{c} = ${c}" for c in columns)
        conn.execute(
            f"MATCH (e:Event) WHERE e.id = $id SET {sets}",
            {"id": event_id, **columns}
        )
    return get_event(conn, event_id)


def delete_event(conn: kuzu.Connection, event_id: str) -> bool:
    if get_event(conn, event_id) is None:
        return False
    conn.execute("MATCH (e:Event) WHERE e.id = $id DELETE e", {"id": event_id})
    return True


def events_for_person(conn: kuzu.Connection, person_id: str) -> list[dict]:
    """A person's timeline, oldest first. Undated events come first."""
    result = conn.execute(
        f"MATCH (e:Event) WHERE e.person_id = $pid "
        f"RETURN {_EVENT_RETURN} ORDER BY e.event_date, e.created_at",
        {"pid": person_id}
    )
    events = []
    while result.has_next():
        events.append(_row_to_event(result.get_next()))
    return events


def list_events(conn: kuzu.Connection, family_id: str | None = None) -> list[dict]:
    """Every event ordered by date. With family_id, only events of that family's people."""
    if family_id:
        query = ("MATCH (e:Event), (p:Person) "
                 "WHERE e.person_id = p.id AND p.family_id = $fid")
        params = {"fid": family_id}
    else:
        query, params = "MATCH (e:Event)", {}
    result = conn.execute(
        f"{query} RETURN {_EVENT_RETURN} ORDER BY e.event_date, e.created_at",
        params
    )
    events = []
    while result.has_next():
        events.append(_row_to_event(result.get_next()))
    return events


def delete_events_for_person(conn: kuzu.Connection, person_id: str):
    conn.execute("MATCH (e:Event) WHERE e.person_id = $pid DELETE e", {"pid": person_id})
    logger.debug("Deleted events of person %s", person_id)


def delete_events_for_family(conn: kuzu.Connection, family_id: str):
    conn.execute(
        "MATCH (e:Event), (p:Person) WHERE e.person_id = p.id AND p.family_id = $fid DELETE e",
        {"fid": family_id}
    )

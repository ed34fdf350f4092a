import logging
import os

import kuzu
from fastapi import FastAPI, Depends, Header, HTTPException, Query

from .db import get_conn
from . import crud, events, families, changelog, schemas
from .context import FamilyContext
from .hierarchy import hierarchy_to_dict

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("genealogy")

app = FastAPI(title="genealogy")


def _family_of(person: dict | None) -> str | None:
    return person["family_id"] if person else None


# ── Families ──

@app.get("/api/families", response_model=list[schemas.FamilyOut])
def list_families(conn: kuzu.Connection = Depends(get_conn)):
    return families.list_families(conn)


@app.post("/api/families", response_model=schemas.FamilyOut)
def add_family(body: schemas.FamilyCreate, conn: kuzu.Connection = Depends(get_conn)):
    return families.create_family(conn, body.name, body.description)


@app.get("/api/families/{family_id}", response_model=schemas.FamilyOut)
def get_family(family_id: str, conn: kuzu.Connection = Depends(get_conn)):
    family = families.get_family(conn, family_id)
    if family is None:
        raise HTTPException(404, "Family not found")
    return family


@app.put("/api/families/{family_id}", response_model=schemas.FamilyOut)
def rename_family(family_id: str, body: schemas.FamilyCreate, conn: kuzu.Connection = Depends(get_conn)):
    if families.get_family(conn, family_id) is None:
        raise HTTPException(404, "Family not found")
    families.rename_family(conn, family_id, body.name)
    return families.get_family(conn, family_id)


@app.delete("/api/families/{family_id}")
def delete_family(family_id: str, conn: kuzu.Connection = Depends(get_conn)):
    if families.get_family(conn, family_id) is None:
        raise HTTPException(404, "Family not found")
    families.delete_family(conn, family_id)
    logger.info("Deleted family %s", family_id)
    return {"ok": True}


# ── People ──

@app.get("/api/people", response_model=list[schemas.PersonOut])
def people(family_id: str | None = None, keyword: str | None = None,
           conn: kuzu.Connection = Depends(get_conn)):
    return crud.list_people(conn, family_id=family_id, keyword=keyword)


@app.post("/api/people", response_model=schemas.PersonOut)
def add_person(body: schemas.PersonCreate, conn: kuzu.Connection = Depends(get_conn),
               x_operator: str = Header("anonymous")):
    if body.family_id and families.get_family(conn, body.family_id) is None:
        raise HTTPException(404, "Family not found")
    try:
        person = crud.create_person(conn, **body.model_dump())
    except ValueError as e:
        raise HTTPException(400, str(e))
    changelog.record_operation(conn, person["family_id"], x_operator,
                               "create", "person", person["id"], person["name"])
    return person


@app.get("/api/people/{person_id}", response_model=schemas.PersonOut)
def get_person(person_id: str, conn: kuzu.Connection = Depends(get_conn)):
    person = crud.get_person(conn, person_id)
    if person is None:
        raise HTTPException(404, "Person not found")
    return person


@app.put("/api/people/{person_id}", response_model=schemas.PersonOut)
def update_person(person_id: str, body: schemas.PersonUpdate, conn: kuzu.Connection = Depends(get_conn),
                  x_operator: str = Header("anonymous")):
    try:
        person = crud.update_person(conn, person_id, **body.model_dump())
    except ValueError as e:
        raise HTTPException(400, str(e))
    if person is None:
        raise HTTPException(404, "Person not found")
    changelog.record_operation(conn, person["family_id"], x_operator,
                               "update", "person", person_id, person["name"])
    return person


@app.patch("/api/people/{person_id}/star", response_model=schemas.PersonOut)
def toggle_star(person_id: str, conn: kuzu.Connection = Depends(get_conn)):
    person = crud.toggle_star(conn, person_id)
    if person is None:
        raise HTTPException(404, "Person not found")
    return person


@app.delete("/api/people/{person_id}")
def delete_person(person_id: str, conn: kuzu.Connection = Depends(get_conn),
                  x_operator: str = Header("anonymous")):
    person = crud.get_person(conn, person_id)
    if not crud.delete_person(conn, person_id):
        raise HTTPException(404, "Person not found")
    changelog.record_operation(conn, _family_of(person), x_operator,
                               "delete", "person", person_id, person["name"])
    return {"ok": True}


@app.get("/api/people/{person_id}/relations", response_model=list[schemas.PersonRelationOut])
def person_relations(person_id: str, conn: kuzu.Connection = Depends(get_conn)):
    person = crud.get_person(conn, person_id)
    if person is None:
        raise HTTPException(404, "Person not found")
    return FamilyContext.load(conn, person["family_id"]).relations_of(person_id)


@app.get("/api/people/{person_id}/lineage", response_model=schemas.LineageOut)
def person_lineage(person_id: str, conn: kuzu.Connection = Depends(get_conn)):
    person = crud.get_person(conn, person_id)
    if person is None:
        raise HTTPException(404, "Person not found")
    ctx = FamilyContext.load(conn, person["family_id"])
    return {"ancestors": ctx.ancestors(person_id), "descendants": ctx.descendants(person_id)}


# ── Relations ──

@app.get("/api/relations", response_model=list[schemas.RelationOut])
def relations(family_id: str | None = None, conn: kuzu.Connection = Depends(get_conn)):
    return crud.list_relations(conn, family_id=family_id)


@app.get("/api/relations/person/{person_id}", response_model=list[schemas.RelationOut])
def relations_by_person(person_id: str, conn: kuzu.Connection = Depends(get_conn)):
    return crud.relations_for_person(conn, person_id)


@app.post("/api/relations", response_model=schemas.RelationOut)
def add_relation(body: schemas.RelationCreate, conn: kuzu.Connection = Depends(get_conn),
                 x_operator: str = Header("anonymous")):
    try:
        rel = crud.create_relation(conn, body.from_id, body.to_id, body.type)
    except ValueError as e:
        raise HTTPException(400, str(e))
    src = crud.get_person(conn, body.from_id)
    dst = crud.get_person(conn, body.to_id)
    changelog.record_operation(conn, _family_of(src), x_operator,
                               "create", "relation", rel["id"], f"{src['name']} - {dst['name']}")
    return rel


@app.delete("/api/relations/{relation_id}")
def delete_relation(relation_id: str, conn: kuzu.Connection = Depends(get_conn),
                    x_operator: str = Header("anonymous")):
    rel = crud.get_relation(conn, relation_id)
    if rel is None:
        raise HTTPException(404, "Relation not found")
    crud.delete_relation(conn, relation_id)
    changelog.record_operation(conn, _family_of(crud.get_person(conn, rel["from_id"])), x_operator,
                               "delete", "relation", relation_id)
    return {"ok": True}


# ── Events ──

@app.get("/api/events", response_model=list[schemas.EventOut])
def all_events(family_id: str | None = None, conn: kuzu.Connection = Depends(get_conn)):
    return events.list_events(conn, family_id=family_id)


@app.get("/api/events/person/{person_id}", response_model=list[schemas.EventOut])
def person_events(person_id: str, conn: kuzu.Connection = Depends(get_conn)):
    if crud.get_person(conn, person_id) is None:
        raise HTTPException(404, "Person not found")
    return events.events_for_person(conn, person_id)


@app.post("/api/events", response_model=schemas.EventOut)
def add_event(body: schemas.EventCreate, conn: kuzu.Connection = Depends(get_conn),
              x_operator: str = Header("anonymous")):
    data = body.model_dump()
    data["event_type"] = data.pop("type")
    try:
        event = events.create_event(conn, **data)
    except ValueError as e:
        raise HTTPException(400, str(e))
    person = crud.get_person(conn, event["person_id"])
    changelog.record_operation(conn, _family_of(person), x_operator,
                               "create", "event", event["id"], f"{person['name']} - {event['title']}")
    return event


@app.put("/api/events/{event_id}", response_model=schemas.EventOut)
def update_event(event_id: str, body: schemas.EventUpdate, conn: kuzu.Connection = Depends(get_conn),
                 x_operator: str = Header("anonymous")):
    try:
        event = events.update_event(conn, event_id, **body.model_dump())
    except ValueError as e:
        raise HTTPException(400, str(e))
    if event is None:
        raise HTTPException(404, "Event not found")
    person = crud.get_person(conn, event["person_id"])
    changelog.record_operation(conn, _family_of(person), x_operator,
                               "update", "event", event_id, event["title"])
    return event


@app.delete("/api/events/{event_id}")
def delete_event(event_id: str, conn: kuzu.Connection = Depends(get_conn),
                 x_operator: str = Header("anonymous")):
    event = events.get_event(conn, event_id)
    if event is None:
        raise HTTPException(404, "Event not found")
    events.delete_event(conn, event_id)
    changelog.record_operation(conn, _family_of(crud.get_person(conn, event["person_id"])), x_operator,
                               "delete", "event", event_id, event["title"])
    return {"ok": True}


# ── Derived views ──

@app.get("/api/summaries", response_model=dict[str, schemas.RelationSummaryOut])
def summaries(family_id: str | None = None, conn: kuzu.Connection = Depends(get_conn)):
    index = FamilyContext.load(conn, family_id).reindex()
    return {pid: s.to_dict() for pid, s in index.items()}


@app.get("/api/tree")
def tree(family_id: str | None = None, conn: kuzu.Connection = Depends(get_conn)):
    return hierarchy_to_dict(FamilyContext.load(conn, family_id).synthesize())


@app.get("/api/stats", response_model=schemas.StatsOut)
def stats(family_id: str | None = None, conn: kuzu.Connection = Depends(get_conn)):
    return FamilyContext.load(conn, family_id).stats()


@app.get("/api/operations")
def operations(family_id: str | None = None, entity_id: str | None = None,
               limit: int = Query(50), offset: int = Query(0),
               conn: kuzu.Connection = Depends(get_conn)):
    return changelog.list_operations(conn, family_id=family_id, limit=limit, offset=offset,
                                     entity_id=entity_id)


@app.get("/health")
def health():
    return {"ok": True}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.environ.get("HOST", "127.0.0.1"), port=int(os.environ.get("PORT", "8000")))

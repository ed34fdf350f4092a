"""Shared fixtures for the genealogy test suite."""
import pytest
import kuzu
from fastapi.testclient import TestClient

from genealogy.db import _init_schema, get_conn
from genealogy.schemas import Person, Relation
from genealogy import crud, families


# ── In-memory snapshot helpers ──

def make_person(pid, name=None, gender="male", generation=1, **extra):
    return Person(id=pid, name=name or f"P{pid}", gender=gender, generation=generation, **extra)


def make_relation(rid, from_id, to_id, rel_type="parent-child"):
    return Relation(id=rid, from_id=from_id, to_id=to_id, type=rel_type)


@pytest.fixture
def couple_with_child():
    """A(1) married to B(2), with child C(3) recorded from A."""
    persons = [
        make_person(1, "A", "male", 1),
        make_person(2, "B", "female", 1),
        make_person(3, "C", "male", 2),
    ]
    relations = [
        make_relation(10, 1, 2, "spouse"),
        make_relation(11, 1, 3, "parent-child"),
    ]
    return persons, relations


# ── Database fixtures ──

@pytest.fixture
def db_path(tmp_path):
    """Temp directory for a fresh KuzuDB."""
    return tmp_path / "test_db"


@pytest.fixture
def db(db_path):
    """Initialized KuzuDB with full schema."""
    database = kuzu.Database(str(db_path))
    _init_schema(database)
    yield database
    database.close()


@pytest.fixture
def conn(db):
    """KuzuDB connection for unit tests."""
    connection = kuzu.Connection(db)
    yield connection
    connection.close()


# ── Family fixtures ──

@pytest.fixture
def family_zhang(conn):
    return families.create_family(conn, "张氏", "Zhang lineage")


@pytest.fixture
def family_li(conn):
    return families.create_family(conn, "李氏")


@pytest.fixture
def family_graph(conn, family_zhang):
    """grandpa -> dad -> child, dad spouse mom, plus an adopted child of mom."""
    fid = family_zhang["id"]
    grandpa = crud.create_person(conn, "张大", "male", 1, family_id=fid)
    dad = crud.create_person(conn, "张二", "male", 2, family_id=fid)
    mom = crud.create_person(conn, "王芳", "female", 2, family_id=fid)
    child = crud.create_person(conn, "张三", "male", 3, family_id=fid)
    adopted = crud.create_person(conn, "张四", "female", 3, family_id=fid)
    crud.create_relation(conn, grandpa["id"], dad["id"], "parent-child")
    crud.create_relation(conn, dad["id"], mom["id"], "spouse")
    crud.create_relation(conn, dad["id"], child["id"], "parent-child")
    crud.create_relation(conn, mom["id"], adopted["id"], "adopted")
    return {
        "grandpa": grandpa,
        "dad": dad,
        "mom": mom,
        "child": child,
        "adopted": adopted,
        "family": family_zhang,
    }


# ── FastAPI app fixtures ──

@pytest.fixture
def app_with_db(db):
    """FastAPI app with dependency override pointing at test DB."""
    from genealogy.main import app

    def override_get_conn():
        c = kuzu.Connection(db)
        try:
            yield c
        finally:
            c.close()

    app.dependency_overrides[get_conn] = override_get_conn
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app_with_db):
    return TestClient(app_with_db, raise_server_exceptions=False)

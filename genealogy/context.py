"""
FamilyContext: one immutable snapshot of persons + relations.

Every view is recomputed from the snapshot on each call; nothing is cached
between calls and the snapshot is never mutated. A change in the store means
loading (or replacing into) a new context.
"""
from __future__ import annotations

from dataclasses import dataclass, replace as dc_replace
from typing import Dict, Iterable, List, Optional, Tuple

import kuzu

from . import crud
from .hierarchy import Root, build_hierarchy
from .lineage import find_ancestors, find_descendants
from .schemas import Person, PersonId, Relation
from .stats import family_stats
from .summaries import RelationSummary, build_relation_summaries, describe_person_relations


@dataclass(frozen=True)
class FamilyContext:
    persons: Tuple[Person, ...] = ()
    relations: Tuple[Relation, ...] = ()

    @classmethod
    def from_records(cls, persons: Iterable[dict], relations: Iterable[dict]) -> "FamilyContext":
        return cls(
            persons=tuple(Person(**p) for p in persons),
            relations=tuple(Relation(**r) for r in relations),
        )

    @classmethod
    def load(cls, conn: kuzu.Connection, family_id: str | None = None) -> "FamilyContext":
        """Snapshot the store, persons in list order and relations in creation order."""
        return cls.from_records(
            crud.list_people(conn, family_id=family_id),
            crud.list_relations(conn, family_id=family_id),
        )

    def replace(self, persons: Optional[Iterable[Person]] = None,
                relations: Optional[Iterable[Relation]] = None) -> "FamilyContext":
        changes = {}
        if persons is not None:
            changes["persons"] = tuple(persons)
        if relations is not None:
            changes["relations"] = tuple(relations)
        return dc_replace(self, **changes)

    def reindex(self) -> Dict[PersonId, RelationSummary]:
        return build_relation_summaries(self.persons, self.relations)

    def synthesize(self) -> Optional[Root]:
        return build_hierarchy(self.persons, self.relations)

    def stats(self) -> dict:
        return family_stats(self.persons, self.relations)

    def relations_of(self, person_id: PersonId) -> List[dict]:
        return describe_person_relations(person_id, self.persons, self.relations)

    def ancestors(self, person_id: PersonId) -> List[PersonId]:
        return find_ancestors(person_id, self.relations)

    def descendants(self, person_id: PersonId) -> List[PersonId]:
        return find_descendants(person_id, self.relations)

"""Adjacency index over one persons/relations snapshot."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .schemas import PARENT_TYPES, Person, PersonId, Relation


@dataclass
class RelationIndex:
    persons: Dict[PersonId, Person] = field(default_factory=dict)
    relations: List[Relation] = field(default_factory=list)
    outgoing: Dict[PersonId, List[Relation]] = field(default_factory=lambda: defaultdict(list))
    incoming: Dict[PersonId, List[Relation]] = field(default_factory=lambda: defaultdict(list))

    @classmethod
    def build(cls, persons: Iterable[Person], relations: Iterable[Relation]) -> "RelationIndex":
        """Index persons by id and relations by endpoint, keeping list order.

        A duplicated person id keeps its first record.
        """
        index = cls()
        for p in persons:
            index.persons.setdefault(p.id, p)
        for r in relations:
            index.relations.append(r)
            index.outgoing[r.from_id].append(r)
            index.incoming[r.to_id].append(r)
        return index

    def person(self, person_id: PersonId) -> Optional[Person]:
        return self.persons.get(person_id)

    def parents_of(self, person_id: PersonId) -> List[PersonId]:
        return [r.from_id for r in self.incoming.get(person_id, []) if r.type in PARENT_TYPES]

    def children_of(self, person_id: PersonId) -> List[PersonId]:
        return [r.to_id for r in self.outgoing.get(person_id, []) if r.type in PARENT_TYPES]

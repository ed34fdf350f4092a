"""Ancestor/descendant lookup for path highlighting."""
from __future__ import annotations

from typing import List, Sequence

from .relation_index import RelationIndex
from .schemas import PersonId, Relation


def _walk(start: PersonId, index: RelationIndex, upward: bool) -> List[PersonId]:
    step = index.parents_of if upward else index.children_of
    found: List[PersonId] = []
    visited = {start}
    frontier = [start]
    while frontier:
        next_frontier = []
        for pid in frontier:
            for other in step(pid):
                if other in visited:
                    continue
                visited.add(other)
                found.append(other)
                next_frontier.append(other)
        frontier = next_frontier
    return found


def find_ancestors(person_id: PersonId, relations: Sequence[Relation]) -> List[PersonId]:
    """All recorded parents, grandparents, ... nearest generation first. Cycle-safe."""
    return _walk(person_id, RelationIndex.build([], relations), upward=True)


def find_descendants(person_id: PersonId, relations: Sequence[Relation]) -> List[PersonId]:
    return _walk(person_id, RelationIndex.build([], relations), upward=False)

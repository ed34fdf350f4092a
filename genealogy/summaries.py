"""Per-person relationship summaries used by list and detail views."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Sequence

from .relation_index import RelationIndex
from .schemas import PARENT_TYPES, Person, PersonId, Relation

logger = logging.getLogger(__name__)

HUSBAND_LABEL = "之夫"
WIFE_LABEL = "之妻"
FATHER_LABEL = "父"
MOTHER_LABEL = "母"


@dataclass
class RelationSummary:
    spouse_name: Optional[str] = None
    spouse_label: str = ""
    child_count: int = 0
    parent_descriptions: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def _spouse_label(other: Person) -> str:
    return HUSBAND_LABEL if other.gender == "male" else WIFE_LABEL


def _parent_label(parent: Person) -> str:
    return FATHER_LABEL if parent.gender == "male" else MOTHER_LABEL


def build_relation_summaries(
    persons: Sequence[Person],
    relations: Sequence[Relation],
) -> Dict[PersonId, RelationSummary]:
    """
    Build summary[person_id] = spouse name/label, child count, parent descriptions.

    - Only one spouse is visible per person: later spouse relations overwrite.
    - child_count counts every parent-child/adopted relation from the person,
      even when the child id does not resolve.
    - parent_descriptions follow relation-list order, e.g. ["张三父", "李四母"].
    """
    index = RelationIndex.build(persons, relations)
    summaries: Dict[PersonId, RelationSummary] = {pid: RelationSummary() for pid in index.persons}

    for r in index.relations:
        if r.type == "spouse":
            a = index.person(r.from_id)
            b = index.person(r.to_id)
            if a is None or b is None:
                logger.debug("Spouse relation %s has an unknown endpoint", r.id)
                continue
            summaries[a.id].spouse_name = b.name
            summaries[a.id].spouse_label = _spouse_label(b)
            summaries[b.id].spouse_name = a.name
            summaries[b.id].spouse_label = _spouse_label(a)

        elif r.type in PARENT_TYPES:
            if r.from_id in summaries:
                summaries[r.from_id].child_count += 1
            parent = index.person(r.from_id)
            if r.to_id in summaries and parent is not None:
                summaries[r.to_id].parent_descriptions.append(parent.name + _parent_label(parent))
            else:
                logger.debug("Parent relation %s has an unknown endpoint", r.id)

    return summaries


def _relation_label(r: Relation, person_is_from: bool) -> str:
    if r.type == "spouse":
        return "配偶"
    if person_is_from:
        return "养子女" if r.type == "adopted" else "子女"
    return "养父母" if r.type == "adopted" else "父/母"


def describe_person_relations(
    person_id: PersonId,
    persons: Sequence[Person],
    relations: Sequence[Relation],
) -> List[dict]:
    """List every relation touching person_id, labelled from that person's side."""
    index = RelationIndex.build(persons, relations)
    out = []
    for r in index.relations:
        if r.from_id == person_id:
            other_id, person_is_from = r.to_id, True
        elif r.to_id == person_id:
            other_id, person_is_from = r.from_id, False
        else:
            continue
        other = index.person(other_id)
        out.append({
            "relation_id": r.id,
            "other_id": other_id,
            "other_name": other.name if other else None,
            "label": _relation_label(r, person_is_from),
        })
    return out

from __future__ import annotations

from collections import Counter
from typing import Sequence

from .schemas import Person, Relation


def family_stats(persons: Sequence[Person], relations: Sequence[Relation]) -> dict:
    """Headline counts for the statistics page."""
    person_ids = {p.id for p in persons}
    generations = Counter(p.generation for p in persons)
    return {
        "total": len(persons),
        "max_generation": max(generations, default=0),
        "male_count": sum(1 for p in persons if p.gender == "male"),
        "female_count": sum(1 for p in persons if p.gender == "female"),
        "starred_count": sum(1 for p in persons if p.is_starred),
        # a couple counts once, from the side it was recorded on
        "spouse_count": sum(1 for r in relations if r.type == "spouse" and r.from_id in person_ids),
        "generation_distribution": dict(sorted(generations.items())),
    }

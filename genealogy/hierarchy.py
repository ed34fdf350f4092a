"""
Hierarchy synthesis: persons + relations -> one rooted tree for layered rendering.

Spouses recorded from a person are merged into that person's node instead of
becoming separate branches. Several disjoint lineages are gathered under a
VirtualRoot, which is not a person and has no addressable id.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Set, Union

from .schemas import PARENT_TYPES, Person, PersonId, Relation

logger = logging.getLogger(__name__)

VIRTUAL_ROOT_LABEL = "家族"


@dataclass(eq=False)
class HierarchyNode:
    person: Person
    spouses: List["HierarchyNode"] = field(default_factory=list)
    children: List["HierarchyNode"] = field(default_factory=list)
    is_virtual = False

    @property
    def id(self) -> PersonId:
        return self.person.id

    @property
    def name(self) -> str:
        return self.person.name

    @property
    def primary_spouse(self) -> Optional["HierarchyNode"]:
        return self.spouses[0] if self.spouses else None

    def __repr__(self):
        return f"HierarchyNode(id={self.id!r}, spouses={len(self.spouses)}, children={len(self.children)})"


@dataclass(eq=False)
class VirtualRoot:
    children: List[HierarchyNode] = field(default_factory=list)
    is_virtual = True
    name = VIRTUAL_ROOT_LABEL
    generation = 0

    @property
    def spouses(self) -> List[HierarchyNode]:
        return []


Root = Union[HierarchyNode, VirtualRoot]


def _reachable(starts: Sequence[HierarchyNode], seen: Set[int]) -> None:
    """Mark every node reachable from starts via children/spouses (by object id)."""
    stack = list(starts)
    while stack:
        node = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        stack.extend(node.spouses)
        stack.extend(node.children)


def build_hierarchy(persons: Sequence[Person], relations: Sequence[Relation]) -> Optional[Root]:
    """
    Build the display tree.

    - child_of[child] = parent; the last parent-child/adopted relation wins.
    - A spouse relation appends the to_id node to the from_id node's spouses.
    - Roots are persons with no recorded parent who are not anyone's
      recorded (to_id side) spouse.
    - Returns the single root node directly, or a VirtualRoot when there are
      several roots. Returns None for an empty person list.
    """
    nodes: Dict[PersonId, HierarchyNode] = {}
    order: List[HierarchyNode] = []
    for p in persons:
        if p.id in nodes:
            logger.debug("Duplicate person id %r ignored", p.id)
            continue
        node = HierarchyNode(person=p)
        nodes[p.id] = node
        order.append(node)

    if not order:
        return None

    child_of: Dict[PersonId, PersonId] = {}
    spouse_inbound: Set[PersonId] = set()

    for r in relations:
        if r.type == "spouse":
            a, b = nodes.get(r.from_id), nodes.get(r.to_id)
            if a is None or b is None:
                logger.debug("Spouse relation %s skipped: unknown endpoint", r.id)
                continue
            a.spouses.append(b)
            spouse_inbound.add(r.to_id)
        elif r.type in PARENT_TYPES:
            child_of[r.to_id] = r.from_id

    parent_of_node: Dict[PersonId, HierarchyNode] = {}
    for node in order:
        parent = nodes.get(child_of.get(node.id))
        if parent is not None:
            parent.children.append(node)
            parent_of_node[node.id] = parent

    roots = [n for n in order if n.id not in parent_of_node and n.id not in spouse_inbound]
    wrap = len(roots) > 1
    if not roots:
        roots = [n for n in order if n.id not in parent_of_node] or list(order)
        wrap = True

    # Each root-level node keeps exactly one place in the tree.
    for node in roots:
        parent = parent_of_node.pop(node.id, None)
        if parent is not None:
            parent.children.remove(node)

    # Promote anything left unreachable (e.g. members of a parent cycle).
    seen: Set[int] = set()
    _reachable(roots, seen)
    for node in order:
        if id(node) in seen:
            continue
        parent = parent_of_node.pop(node.id, None)
        if parent is not None:
            parent.children.remove(node)
        logger.debug("Person %r unreachable from roots; promoted to root level", node.id)
        roots.append(node)
        wrap = True
        _reachable([node], seen)

    if not wrap:
        return roots[0]
    return VirtualRoot(children=roots)


def iter_hierarchy(root: Optional[Root]) -> Iterator[HierarchyNode]:
    """Pre-order walk yielding each person node once; spouses follow their partner."""
    if root is None:
        return
    seen: Set[int] = set()
    stack: List[HierarchyNode] = list(reversed(root.children)) if root.is_virtual else [root]
    while stack:
        node = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        yield node
        # children pushed first so spouses pop next
        stack.extend(reversed(node.children))
        stack.extend(reversed(node.spouses))


def _person_fields(person: Person) -> dict:
    return person.model_dump()


def hierarchy_to_dict(root: Optional[Root]) -> Optional[dict]:
    """
    Renderer payload. A node already emitted elsewhere (e.g. a spouse who is
    also someone's child) is repeated as a shallow reference.

    Dicts are filled from an explicit stack in pre-order (spouses before
    children), so deep lineages do not hit the recursion limit.
    """
    if root is None:
        return None
    emitted: Set[int] = set()
    starts = root.children if root.is_virtual else [root]
    top: List[Optional[dict]] = [None] * len(starts)
    stack = [(node, top, i) for i, node in reversed(list(enumerate(starts)))]
    while stack:
        node, slots, i = stack.pop()
        data = _person_fields(node.person)
        data["is_virtual"] = False
        slots[i] = data
        if id(node) in emitted:
            data["is_reference"] = True
            continue
        emitted.add(id(node))
        data["is_reference"] = False
        data["spouses"] = [None] * len(node.spouses)
        data["children"] = [None] * len(node.children)
        pending = [(s, data["spouses"], k) for k, s in enumerate(node.spouses)]
        pending += [(c, data["children"], k) for k, c in enumerate(node.children)]
        stack.extend(reversed(pending))

    if root.is_virtual:
        return {
            "name": root.name,
            "generation": root.generation,
            "is_virtual": True,
            "spouses": [],
            "children": top,
        }
    return top[0]

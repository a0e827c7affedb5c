from collections.abc import Iterable
from dataclasses import dataclass, field
from uuid import UUID

from newsdesk.domain.entities import Category


@dataclass
class CategoryNode:
    category: Category
    children: list["CategoryNode"] = field(default_factory=list)

    @property
    def id(self) -> UUID:
        return self.category.id


def build_tree(categories: Iterable[Category]) -> list[CategoryNode]:
    """
    Assemble a forest from a flat list of categories.

    Sibling order is the input order. A category whose parent is missing
    from the input becomes a root. Each category is placed exactly once, so
    a (corrupt) cyclic parent chain leaves its members unreachable instead
    of looping.
    """
    items = list(categories)
    nodes: dict[UUID, CategoryNode] = {c.id: CategoryNode(category=c) for c in items}
    roots: list[CategoryNode] = []

    for cat in items:
        node = nodes[cat.id]
        if cat.parent_id is not None and cat.parent_id in nodes:
            nodes[cat.parent_id].children.append(node)
        else:
            roots.append(node)

    return roots

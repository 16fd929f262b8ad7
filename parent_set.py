from __future__ import annotations
from typing import Dict, Iterator, List, Sequence, Tuple

from arc_legality import topological_order
from discrete_data import DiscreteData


class ParentSet:
    """
    Ordered parents of one node: each entry p stands for the arc p -> node.

    add_parent does not validate. Callers check legality first and keep the
    set free of duplicates and of the owning node itself.
    """

    def __init__(self, cardinalities: Sequence[int]):
        self._cardinalities = cardinalities
        self._parents: List[int] = []
        self._cardinality_of_parents = 1

    def add_parent(self, parent: int) -> None:
        self._parents.append(parent)
        self._cardinality_of_parents *= self._cardinalities[parent]

    def delete_last_parent(self) -> int:
        parent = self._parents.pop()
        self._cardinality_of_parents //= self._cardinalities[parent]
        return parent

    def delete_parent(self, parent: int) -> None:
        self._parents.remove(parent)
        self._cardinality_of_parents //= self._cardinalities[parent]

    def contains(self, node: int) -> bool:
        return node in self._parents

    __contains__ = contains

    def get_parent(self, i: int) -> int:
        return self._parents[i]

    @property
    def nr_of_parents(self) -> int:
        return len(self._parents)

    @property
    def cardinality_of_parents(self) -> int:
        return self._cardinality_of_parents

    @property
    def parents(self) -> Tuple[int, ...]:
        return tuple(self._parents)

    def copy(self) -> ParentSet:
        other = ParentSet(self._cardinalities)
        other._parents = list(self._parents)
        other._cardinality_of_parents = self._cardinality_of_parents
        return other

    def __iter__(self) -> Iterator[int]:
        return iter(self._parents)

    def __len__(self) -> int:
        return len(self._parents)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParentSet):
            return NotImplemented
        return self._parents == other._parents

    def __repr__(self) -> str:
        return f"ParentSet({self._parents})"


class BayesNetwork:
    """
    Graph of a discrete Bayes net: one ParentSet per attribute.

    The structure must stay acyclic; the search algorithms only commit
    edits that passed the checks in `arc_legality`.
    """

    def __init__(self, names: Sequence[str], cardinalities: Sequence[int]):
        if len(names) != len(cardinalities):
            raise ValueError(f"Got {len(names)} names but {len(cardinalities)} cardinalities")
        self.names: Tuple[str, ...] = tuple(names)
        self.cardinalities: Tuple[int, ...] = tuple(int(c) for c in cardinalities)
        self._parent_sets = [ParentSet(self.cardinalities) for _ in self.names]

    @classmethod
    def from_data(cls, data: DiscreteData) -> BayesNetwork:
        return cls(data.names, data.cardinalities)

    @property
    def num_nodes(self) -> int:
        return len(self.names)

    @property
    def num_arcs(self) -> int:
        return sum(len(ps) for ps in self._parent_sets)

    def parent_set(self, node: int) -> ParentSet:
        return self._parent_sets[node]

    def add_arc(self, head: int, tail: int) -> None:
        """Add tail -> head."""
        self._parent_sets[head].add_parent(tail)

    def delete_arc(self, head: int, tail: int) -> None:
        self._parent_sets[head].delete_parent(tail)

    def reverse_arc(self, head: int, tail: int) -> None:
        """Turn tail -> head into head -> tail."""
        self._parent_sets[head].delete_parent(tail)
        self._parent_sets[tail].add_parent(head)

    def arcs(self) -> List[Tuple[int, int]]:
        """All arcs as (tail, head) pairs, i.e. parent first."""
        return [(p, child) for child, ps in enumerate(self._parent_sets) for p in ps]

    def topological_order(self) -> List[int]:
        order = topological_order(self)
        if order is None:
            raise ValueError("Network structure contains a cycle")
        return order

    def is_acyclic(self) -> bool:
        return topological_order(self) is not None

    def copy(self) -> BayesNetwork:
        other = BayesNetwork(self.names, self.cardinalities)
        other._parent_sets = [ps.copy() for ps in self._parent_sets]
        return other

    def to_parent_map(self) -> Dict[str, List[str]]:
        return {self.names[child]: [self.names[p] for p in ps]
                for child, ps in enumerate(self._parent_sets)}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BayesNetwork):
            return NotImplemented
        return (self.names == other.names
                and self.cardinalities == other.cardinalities
                and self._parent_sets == other._parent_sets)

    def __str__(self) -> str:
        lines = []
        for child, ps in enumerate(self._parent_sets):
            parents = ", ".join(self.names[p] for p in ps)
            lines.append(f"{self.names[child]} <- [{parents}]")
        return "\n".join(lines)

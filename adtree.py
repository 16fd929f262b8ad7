from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
import logging
import numpy as np

from discrete_data import DiscreteData

logger = logging.getLogger(__name__)

# Partitions with at most this many records are stored as leaves.
LEAF_THRESHOLD = 4


# ---------- Nodes ----------
@dataclass
class VaryNode:
    attribute: int
    mcv: int
    children: List[Optional["ADNode"]] = field(default_factory=list)   # None for the MCV and empty values

    def get_counts(self,
                   counts: np.ndarray,
                   nodes: Sequence[int],
                   offsets: Sequence[int],
                   pos: int,
                   offset: int,
                   parent: "ADNode",
                   subtract: bool) -> None:
        for value, child in enumerate(self.children):
            if value == self.mcv:
                # MCV cell = parent partition minus every other value
                parent.get_counts(counts, nodes, offsets, pos + 1, offset + offsets[pos] * value, subtract)
                for other, other_child in enumerate(self.children):
                    if other != self.mcv and other_child is not None:
                        other_child.get_counts(counts, nodes, offsets, pos + 1,
                                               offset + offsets[pos] * self.mcv, not subtract)
            elif child is not None:
                child.get_counts(counts, nodes, offsets, pos + 1, offset + offsets[pos] * value, subtract)


@dataclass
class ADNode:
    count: float
    start_node: int
    vary_nodes: Optional[List[VaryNode]] = None      # internal node
    rows: Optional[np.ndarray] = None                # leaf: raw value rows
    weights: Optional[np.ndarray] = None             # leaf: weights of `rows`

    @property
    def is_leaf(self) -> bool:
        return self.vary_nodes is None

    def get_counts(self,
                   counts: np.ndarray,
                   nodes: Sequence[int],
                   offsets: Sequence[int],
                   pos: int,
                   offset: int,
                   subtract: bool) -> None:
        sign = -1.0 if subtract else 1.0
        if pos >= len(nodes):
            counts[offset] += sign * self.count
        elif self.vary_nodes is not None:
            self.vary_nodes[nodes[pos] - self.start_node].get_counts(
                counts, nodes, offsets, pos, offset, self, subtract)
        elif len(self.rows):
            cells = offset + self.rows[:, list(nodes[pos:])] @ np.asarray(offsets[pos:], dtype=np.int64)
            np.add.at(counts, cells, sign * self.weights)


# ---------- AD-Tree ----------
class ADTree:
    """
    AD-Tree with MCV compression (MCV subtree omitted), after Moore & Lee (1998).

    Public:
      - get_counts(counts, nodes, offsets, subtract=False)   # raw accumulation
      - contingency(nodes) -> np.ndarray                     # table in caller's node order
      - count(query: Dict[int, int]) -> float
    Build knobs:
      - leaf_threshold: int = 4   # partitions of <= leaf_threshold records become leaves
    """
    def __init__(self, data: DiscreteData, *, leaf_threshold: int = LEAF_THRESHOLD) -> None:
        if leaf_threshold < 0:
            raise ValueError(f"leaf_threshold must be non-negative. Got {leaf_threshold}")

        self.leaf_threshold = int(leaf_threshold)
        self.cardinalities = data.cardinalities
        self._values = data.values
        self._weights = data.weights
        self.num_nodes = data.num_attributes

        # record index arena: every recursive call owns order[lo:hi] and only reorders that slice
        self._order = np.arange(data.num_instances)
        self.root = self._make_ad_node(0, 0, data.num_instances)

        # the tree keeps copies of leaf rows only
        del self._order, self._values, self._weights
        logger.info("ADTree built over %d records, %d attributes", data.num_instances, self.num_nodes)

    def _make_ad_node(self, start: int, lo: int, hi: int) -> ADNode:
        records = self._order[lo:hi]
        node = ADNode(count=float(self._weights[records].sum()), start_node=start)

        if hi - lo <= self.leaf_threshold:
            node.rows = self._values[records].copy()
            node.weights = self._weights[records].copy()
            return node

        node.vary_nodes = [self._make_vary_node(attr, lo, hi) for attr in range(start, self.num_nodes)]
        return node

    def _make_vary_node(self, attribute: int, lo: int, hi: int) -> VaryNode:
        n_values = self.cardinalities[attribute]
        segment = self._order[lo:hi]
        column = self._values[segment, attribute]

        # group the slice by value, then each child gets a contiguous sub-range
        self._order[lo:hi] = segment[np.argsort(column, kind="stable")]
        sizes = np.bincount(column, minlength=n_values)
        bounds = lo + np.concatenate(([0], np.cumsum(sizes)))

        # argmax picks the lowest value on ties
        mcv = int(np.argmax(sizes))
        vnode = VaryNode(attribute=attribute, mcv=mcv)
        for value in range(n_values):
            if value == mcv or sizes[value] == 0:
                vnode.children.append(None)
            else:
                vnode.children.append(self._make_ad_node(attribute + 1, int(bounds[value]), int(bounds[value + 1])))
        return vnode

    def _check_nodes(self, nodes: Sequence[int]) -> None:
        for i, node in enumerate(nodes):
            if not 0 <= node < self.num_nodes:
                raise ValueError(f"Attribute index {node} out of range for {self.num_nodes} attributes")
            if i and nodes[i - 1] >= node:
                raise ValueError(f"Attribute indices must be strictly increasing. Got {list(nodes)}")

    def get_counts(self,
                   counts: np.ndarray,
                   nodes: Sequence[int],
                   offsets: Sequence[int],
                   subtract: bool = False) -> None:
        """
        Add (or subtract) the joint counts of `nodes` into the flat array `counts`.

        Parameters
        ----------
        counts : np.ndarray
            Float accumulator; cell sum_i offsets[i] * value_i receives the count.
        nodes : sequence of int
            Strictly increasing attribute indices.
        offsets : sequence of int
            Stride of each node in `counts`.
        subtract : bool
            Subtract instead of add, so a caller can form count deltas in place.
        """
        if len(nodes) != len(offsets):
            raise ValueError(f"Got {len(nodes)} nodes but {len(offsets)} offsets")
        self._check_nodes(nodes)
        self.root.get_counts(counts, list(nodes), list(offsets), 0, 0, subtract)

    def contingency(self, nodes: Sequence[int]) -> np.ndarray:
        """
        Joint count table of `nodes`, one axis per node in the given order.
        """
        nodes = list(nodes)
        if len(set(nodes)) != len(nodes):
            raise ValueError(f"Duplicate attribute in {nodes}")
        ordered = sorted(nodes)
        self._check_nodes(ordered)

        shape = [self.cardinalities[n] for n in ordered]
        offsets = [int(np.prod(shape[i + 1:], dtype=np.int64)) for i in range(len(ordered))]
        counts = np.zeros(int(np.prod(shape, dtype=np.int64)), dtype=float)
        self.root.get_counts(counts, ordered, offsets, 0, 0, False)

        # derived MCV cells carry rounding leftovers with fractional weights
        counts[counts <= 1e-9 * max(1.0, self.root.count)] = 0.0

        table = counts.reshape(shape)
        return np.transpose(table, [ordered.index(n) for n in nodes])

    def count(self, query: Dict[int, int]) -> float:
        if not query:
            return self.root.count
        nodes = sorted(query)
        self._check_nodes(nodes)
        for node in nodes:
            if not 0 <= query[node] < self.cardinalities[node]:
                raise ValueError(f"Value {query[node]} out of range for attribute {node}")
        return float(self.contingency(nodes)[tuple(query[n] for n in nodes)])

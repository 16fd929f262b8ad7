from __future__ import annotations
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Tuple, Union
import logging
import pandas as pd

from discrete_data import DiscreteData
from parent_set import BayesNetwork
from search_algorithm import SearchAlgorithm, SearchConfig, SearchState

logger = logging.getLogger(__name__)

Structure = Union[str, Path, Mapping[str, Sequence[str]]]


class StructureFileError(ValueError):
    """A fixed structure that cannot be applied to the data."""


def read_edge_list(path: Union[str, Path]) -> List[Tuple[str, str]]:
    """
    Read a `parent, child` per line edge list (.gph). Blank lines are ignored.
    """
    try:
        edges = pd.read_csv(path, header=None, names=["parent", "child"], dtype=str,
                            skipinitialspace=True, skip_blank_lines=True)
    except pd.errors.EmptyDataError:
        return []
    if edges.isna().any().any():
        raise StructureFileError(f"Malformed edge list {path}: every line needs 'parent, child'")
    return [(p.strip(), c.strip()) for p, c in edges.itertuples(index=False)]


class FromFile(SearchAlgorithm):
    """
    Fixed structure from an edge-list file or a {child: [parents]} mapping.

    Every name must resolve to an attribute of the data; otherwise nothing is
    built and StructureFileError is raised.
    """

    name = "from_file"

    def __init__(self, structure: Structure, config: Optional[SearchConfig] = None):
        super().__init__(None, config)
        self.structure = structure

    def _edges(self) -> List[Tuple[str, str]]:
        if isinstance(self.structure, (str, Path)):
            return read_edge_list(self.structure)
        return [(str(p), str(child)) for child, parents in self.structure.items() for p in parents]

    def build_structure(self, network: BayesNetwork, data: DiscreteData) -> BayesNetwork:
        self.state = SearchState.UNBUILT
        edges = self._edges()

        arcs = []
        for parent, child in edges:
            for name in (parent, child):
                if name not in data.names:
                    raise StructureFileError(f"Could not find attribute {name} from structure file in data")
            arcs.append((data.names.index(child), data.names.index(parent)))

        candidate = network.copy()
        for head, tail in arcs:
            if head == tail or candidate.parent_set(head).contains(tail):
                raise StructureFileError(f"Duplicate arc or self-loop {data.names[tail]} -> {data.names[head]}")
            candidate.add_arc(head, tail)
        if not candidate.is_acyclic():
            raise StructureFileError("Fixed structure contains a cycle")

        self._set_state(SearchState.INITIALIZED)
        self._set_state(SearchState.SEARCHING)
        for head, tail in arcs:
            network.add_arc(head, tail)
        logger.info("%s: %d arcs read", self.name, len(arcs))
        self._set_state(SearchState.BUILT)
        return network

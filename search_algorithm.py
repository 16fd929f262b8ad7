from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Set
import heapq
import logging
from sklearn.metrics import mutual_info_score

from arc_legality import can_add_arc, can_reverse_arc, is_arc
from discrete_data import DiscreteData
from local_score import LocalScorer
from parent_set import BayesNetwork

logger = logging.getLogger(__name__)

CARDINALITY_CAP = 1024


@dataclass(frozen=True, slots=True)
class SearchConfig:
    max_parents: int = 1
    init_as_naive_bayes: bool = True
    markov_blanket_classifier: bool = False
    cardinality_cap: int = CARDINALITY_CAP
    candidate_limit: Optional[int] = None      # per-node top-k mutual information partners
    random_state: Optional[int] = None

    def __post_init__(self):
        if self.max_parents < 1:
            raise ValueError(f"max_parents must be a positive integer. Got {self.max_parents}")
        if self.cardinality_cap < 1:
            raise ValueError(f"cardinality_cap must be a positive integer. Got {self.cardinality_cap}")
        if self.candidate_limit is not None and self.candidate_limit < 1:
            raise ValueError(f"candidate_limit must be None or a positive integer. Got {self.candidate_limit}")


class SearchState(Enum):
    UNBUILT = "unbuilt"
    INITIALIZED = "initialized"
    SEARCHING = "searching"
    MARKOV_CORRECTING = "markov_correcting"
    BUILT = "built"


def top_k_mutual_info_per_node(data: DiscreteData, k: int) -> Dict[int, Set[int]]:
    """
    Per-node top-k MI candidates (Teyssier & Koller, 2005).
    Returns: node -> set of the k other nodes it shares the most information with.
    """
    values = data.values
    mi_cache: Dict[frozenset[int], float] = {}
    allowed: Dict[int, Set[int]] = {}

    for i in range(data.num_attributes):
        scores = []
        for j in range(data.num_attributes):
            if j == i:
                continue
            key = frozenset((i, j))
            if key not in mi_cache:
                mi_cache[key] = mutual_info_score(values[:, i], values[:, j])
            scores.append((j, mi_cache[key]))
        allowed[i] = {j for (j, _) in heapq.nlargest(k, scores, key=lambda t: t[1])}

    return allowed


class SearchAlgorithm:
    """
    Base class for Bayes network structure search.

    build_structure seeds the network, hands it to `search` and optionally
    applies the Markov blanket correction. Subclasses override `search`;
    the base implementation leaves the seeded network untouched.
    """

    name = "search_algorithm"

    def __init__(self, scorer: Optional[LocalScorer] = None, config: Optional[SearchConfig] = None):
        if scorer is not None and not isinstance(scorer, LocalScorer):
            raise ValueError(f"scorer must implement local_score and score, got {type(scorer)}")
        self.scorer = scorer
        self.config = config if config is not None else SearchConfig()
        self.state = SearchState.UNBUILT

    def _set_state(self, state: SearchState) -> None:
        logger.info("%s: %s -> %s", self.name, self.state.value, state.value)
        self.state = state

    # ---------------------------- arc checks -----------------------------
    def is_arc(self, network: BayesNetwork, head: int, tail: int) -> bool:
        return is_arc(network, head, tail)

    def can_add_arc(self, network: BayesNetwork, head: int, tail: int) -> bool:
        return can_add_arc(network, head, tail)

    def can_reverse_arc(self, network: BayesNetwork, head: int, tail: int) -> bool:
        return can_reverse_arc(network, head, tail)

    def allowed_parents(self, data: DiscreteData) -> Dict[int, Set[int]]:
        if self.config.candidate_limit is None:
            nodes = range(data.num_attributes)
            return {i: {j for j in nodes if j != i} for i in nodes}
        return top_k_mutual_info_per_node(data, self.config.candidate_limit)

    # ---------------------------- driver ---------------------------------
    def build_structure(self, network: BayesNetwork, data: DiscreteData) -> BayesNetwork:
        self.state = SearchState.UNBUILT
        if self.config.init_as_naive_bayes:
            class_index = data.class_index
            for attribute in range(data.num_attributes):
                if attribute != class_index and not network.parent_set(attribute).contains(class_index):
                    network.add_arc(attribute, class_index)
        self._set_state(SearchState.INITIALIZED)

        self._set_state(SearchState.SEARCHING)
        self.search(network, data)

        if self.config.markov_blanket_classifier:
            self._set_state(SearchState.MARKOV_CORRECTING)
            self.do_markov_blanket_correction(network, data)

        self._set_state(SearchState.BUILT)
        return network

    def search(self, network: BayesNetwork, data: DiscreteData) -> None:
        pass

    def _require_scorer(self) -> LocalScorer:
        if self.scorer is None:
            raise ValueError(f"{self.name} needs a scorer to compare candidate networks")
        return self.scorer

    # ---------------------------- Markov blanket -------------------------
    def do_markov_blanket_correction(self, network: BayesNetwork, data: DiscreteData) -> None:
        """
        Make every node part of the class node's Markov blanket.

        A node outside the blanket becomes a parent of the class if it is one
        of its ancestors and the class's parent cardinality is below the cap;
        otherwise the class becomes its parent.
        """
        class_index = data.class_index
        class_parents = network.parent_set(class_index)

        ancestors: List[int] = [class_index]
        old_size = 0
        while old_size != len(ancestors):
            old_size = len(ancestors)
            for current in ancestors[:old_size]:
                for parent in network.parent_set(current):
                    if parent not in ancestors:
                        ancestors.append(parent)

        for attribute in range(data.num_attributes):
            in_blanket = (attribute == class_index
                          or network.parent_set(attribute).contains(class_index)
                          or class_parents.contains(attribute))
            for other in range(data.num_attributes):
                if in_blanket:
                    break
                other_parents = network.parent_set(other)
                in_blanket = other_parents.contains(attribute) and other_parents.contains(class_index)

            if in_blanket:
                continue

            if attribute in ancestors and class_parents.cardinality_of_parents < self.config.cardinality_cap:
                network.add_arc(class_index, attribute)
                logger.info("Markov blanket: %s -> %s", data.names[attribute], data.names[class_index])
            else:
                # TODO: an ancestor over the cap gets class -> attribute, which closes a cycle
                if attribute in ancestors:
                    logger.warning("Markov blanket: cardinality cap %d reached, %s -> %s makes a cycle",
                                   self.config.cardinality_cap, data.names[class_index], data.names[attribute])
                network.add_arc(attribute, class_index)
                logger.info("Markov blanket: %s -> %s", data.names[class_index], data.names[attribute])

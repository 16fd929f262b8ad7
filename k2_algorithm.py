from __future__ import annotations
from typing import List, Optional
import logging
import numpy as np

from discrete_data import DiscreteData
from local_score import LocalScorer
from parent_set import BayesNetwork
from search_algorithm import SearchAlgorithm, SearchConfig

logger = logging.getLogger(__name__)


class K2(SearchAlgorithm):
    """
    K2 (Cooper & Herskovits, 1992): nodes are visited in a fixed order and
    each one greedily takes the predecessor that most improves its local
    score, until nothing improves or max_parents is reached.

    The order is the column order, or a shuffle when `random_order` is set.
    When the network is seeded as naive Bayes the class node goes first.
    """

    name = "k2"

    def __init__(self,
                 scorer: Optional[LocalScorer] = None,
                 config: Optional[SearchConfig] = None,
                 *,
                 random_order: bool = False):
        super().__init__(scorer, config)
        self.random_order = random_order

    def node_order(self, data: DiscreteData) -> List[int]:
        order = list(range(data.num_attributes))
        if self.random_order:
            rng = np.random.default_rng(seed=self.config.random_state)
            rng.shuffle(order)
        if self.config.init_as_naive_bayes:
            order.remove(data.class_index)
            order.insert(0, data.class_index)
        return order

    def search(self, network: BayesNetwork, data: DiscreteData) -> None:
        scorer = self._require_scorer()
        allowed = self.allowed_parents(data)
        order = self.node_order(data)

        for pos, node in enumerate(order):
            parent_set = network.parent_set(node)
            best_score = scorer.local_score(node, parent_set)

            while parent_set.nr_of_parents < self.config.max_parents:
                best_parent = None
                for candidate in order[:pos]:
                    if candidate in parent_set or candidate not in allowed[node]:
                        continue
                    s = scorer.local_score(node, set(parent_set) | {candidate})
                    if s > best_score:
                        best_score, best_parent = s, candidate

                if best_parent is None:
                    break
                # predecessors in the order never close a cycle
                network.add_arc(node, best_parent)
                logger.info("Add %s -> %s  local=%.4f", data.names[best_parent], data.names[node], best_score)

from __future__ import annotations
from typing import Optional
import logging
import numpy as np

from discrete_data import DiscreteData
from local_score import LocalScorer
from parent_set import BayesNetwork
from search_algorithm import SearchAlgorithm, SearchConfig

logger = logging.getLogger(__name__)


class SimulatedAnnealing(SearchAlgorithm):
    """
    Simulated annealing over random arc additions and deletions.

    A proposal with score change d is accepted when d > T * log(u), u ~ U(0, 1),
    so improvements always pass. T starts at `t_start` and is multiplied by
    `delta` after every run. The best network seen is written back.
    """

    name = "simulated_annealing"

    def __init__(self,
                 scorer: Optional[LocalScorer] = None,
                 config: Optional[SearchConfig] = None,
                 *,
                 t_start: float = 10.0,
                 delta: float = 0.999,
                 runs: int = 10_000):
        super().__init__(scorer, config)
        if t_start <= 0:
            raise ValueError(f"t_start must be positive. Got {t_start}")
        if not 0 < delta <= 1:
            raise ValueError(f"delta must be in (0, 1]. Got {delta}")
        if runs < 0:
            raise ValueError(f"runs must be non-negative. Got {runs}")
        self.t_start = t_start
        self.delta = delta
        self.runs = runs

    def search(self, network: BayesNetwork, data: DiscreteData) -> None:
        scorer = self._require_scorer()
        n_nodes = network.num_nodes
        if n_nodes < 2:
            return

        rng = np.random.default_rng(seed=self.config.random_state)
        allowed = self.allowed_parents(data)

        current = network.copy()
        score = scorer.score(current)
        best, best_score = current.copy(), score
        temperature = self.t_start

        for _ in range(self.runs):
            head, tail = rng.choice(n_nodes, size=2, replace=False).tolist()
            parents = set(current.parent_set(head))
            old_local = scorer.local_score(head, parents)

            if self.is_arc(current, head, tail):
                d = scorer.local_score(head, parents - {tail}) - old_local
                if d > temperature * np.log(rng.random() + 1e-100):
                    current.delete_arc(head, tail)
                    score += d
            elif (tail in allowed[head]
                  and current.parent_set(head).nr_of_parents < self.config.max_parents
                  and self.can_add_arc(current, head, tail)):
                d = scorer.local_score(head, parents | {tail}) - old_local
                if d > temperature * np.log(rng.random() + 1e-100):
                    current.add_arc(head, tail)
                    score += d

            if score > best_score:
                best, best_score = current.copy(), score
            temperature *= self.delta

        logger.info("%s: best score %.4f after %d runs", self.name, best_score, self.runs)

        # write the best structure back into the caller's network
        for node in range(n_nodes):
            parent_set = network.parent_set(node)
            while parent_set.nr_of_parents:
                parent_set.delete_last_parent()
            for parent in best.parent_set(node):
                parent_set.add_parent(parent)

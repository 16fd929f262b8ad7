from __future__ import annotations
from typing import Dict, List, Literal, Optional, Set, Tuple
import logging
from heapdict import heapdict

from discrete_data import DiscreteData
from local_score import LocalScorer
from parent_set import BayesNetwork
from search_algorithm import SearchAlgorithm, SearchConfig

logger = logging.getLogger(__name__)

Operation = Tuple[Literal["add", "delete", "reverse"], int, int]    # (kind, head, tail)


class HillClimber(SearchAlgorithm):
    """
    Greedy hill climbing over arc additions, deletions and reversals.

    Every candidate operation sits in a heapdict keyed by (kind, head, tail)
    with priority -delta. The score is decomposable, so after an edit only
    the operations touching the changed parent sets are re-scored. Acyclicity
    depends on the whole graph and is checked when an operation is popped.
    """

    name = "hill_climber"

    def __init__(self,
                 scorer: Optional[LocalScorer] = None,
                 config: Optional[SearchConfig] = None,
                 *,
                 use_arc_reversal: bool = False):
        super().__init__(scorer, config)
        self.use_arc_reversal = use_arc_reversal

    # ---------- deltas ----------
    def _delta(self, network: BayesNetwork, op: Operation) -> float:
        scorer = self.scorer
        kind, head, tail = op
        head_parents = set(network.parent_set(head))
        old_head = scorer.local_score(head, head_parents)

        if kind == "add":
            return scorer.local_score(head, head_parents | {tail}) - old_head
        if kind == "delete":
            return scorer.local_score(head, head_parents - {tail}) - old_head

        tail_parents = set(network.parent_set(tail))
        return (scorer.local_score(head, head_parents - {tail}) - old_head
                + scorer.local_score(tail, tail_parents | {head}) - scorer.local_score(tail, tail_parents))

    def _is_legal(self, network: BayesNetwork, op: Operation) -> bool:
        kind, head, tail = op
        max_parents = self.config.max_parents
        if kind == "add":
            return (network.parent_set(head).nr_of_parents < max_parents
                    and self.can_add_arc(network, head, tail))
        if kind == "delete":
            return self.is_arc(network, head, tail)
        return (network.parent_set(tail).nr_of_parents < max_parents
                and self.can_reverse_arc(network, head, tail))

    # ---------- queue maintenance ----------
    def _refresh_head(self,
                      queue: heapdict,
                      network: BayesNetwork,
                      head: int,
                      allowed: Dict[int, Set[int]]) -> None:
        """Re-score every operation whose delta depends on `head`'s parent set."""
        for tail in range(network.num_nodes):
            if tail == head:
                continue
            if network.parent_set(head).contains(tail):
                queue.pop(("add", head, tail), None)
                queue[("delete", head, tail)] = -self._delta(network, ("delete", head, tail))
                if self.use_arc_reversal and head in allowed[tail]:
                    queue[("reverse", head, tail)] = -self._delta(network, ("reverse", head, tail))
            else:
                queue.pop(("delete", head, tail), None)
                queue.pop(("reverse", head, tail), None)
                if tail in allowed[head]:
                    queue[("add", head, tail)] = -self._delta(network, ("add", head, tail))

            # reversal of head -> tail also reads head's parent set
            if (self.use_arc_reversal and network.parent_set(tail).contains(head)
                    and tail in allowed[head]):
                queue[("reverse", tail, head)] = -self._delta(network, ("reverse", tail, head))

    def _pop_best_legal(self, queue: heapdict, network: BayesNetwork) -> Optional[Tuple[Operation, float]]:
        """Pop operations best-first until one is legal and improving; push back the rest."""
        skipped: List[Tuple[Operation, float]] = []
        found = None
        while queue:
            op, priority = queue.popitem()
            if -priority <= 0:
                skipped.append((op, priority))
                break
            if self._is_legal(network, op):
                found = (op, -priority)
                break
            skipped.append((op, priority))

        for op, priority in skipped:
            queue[op] = priority
        return found

    # ---------- search ----------
    def search(self, network: BayesNetwork, data: DiscreteData) -> None:
        scorer = self._require_scorer()
        allowed = self.allowed_parents(data)

        queue = heapdict()
        for head in range(network.num_nodes):
            self._refresh_head(queue, network, head, allowed)

        score = scorer.score(network)
        logger.info("%s: initial score %.4f", self.name, score)

        while True:
            best = self._pop_best_legal(queue, network)
            if best is None:
                break

            (kind, head, tail), delta = best
            if kind == "add":
                network.add_arc(head, tail)
                changed = (head,)
            elif kind == "delete":
                network.delete_arc(head, tail)
                changed = (head,)
            else:
                network.reverse_arc(head, tail)
                changed = (head, tail)

            score += delta
            logger.info("%s %s -> %s  delta=%.4f  score=%.4f",
                        kind.capitalize(), data.names[tail], data.names[head], delta, score)

            for node in changed:
                self._refresh_head(queue, network, node, allowed)

        logger.info("%s: local optimum, score %.4f, %d arcs", self.name, score, network.num_arcs)

from __future__ import annotations
from functools import lru_cache
from typing import Callable, ClassVar, Dict, Iterable, Literal, Optional, Protocol, get_args, runtime_checkable
import logging
import numpy as np
from scipy.special import gammaln

from adtree import ADTree, LEAF_THRESHOLD
from discrete_data import DiscreteData
from parent_set import BayesNetwork

logger = logging.getLogger(__name__)

ScoreType = Literal["bayes", "bdeu", "mdl", "aic", "entropy"]


@runtime_checkable
class LocalScorer(Protocol):

    def local_score(self, child: int, parents: Iterable[int]) -> float:
        pass

    def score(self, network: BayesNetwork) -> float:
        pass


# --------------------- metrics over a (q, r) count table ---------------------
# rows = parent configurations, columns = child values

def bayes_score(counts: np.ndarray, *, alpha: float = 0.5, **_) -> float:
    """Cooper-Herskovits score with a Dirichlet prior of `alpha` per cell."""
    r = counts.shape[1]
    n_j = counts.sum(axis=1)
    return float(np.sum(gammaln(r * alpha) - gammaln(r * alpha + n_j))
                 + np.sum(gammaln(alpha + counts) - gammaln(alpha)))


def bdeu_score(counts: np.ndarray, *, ess: float = 1.0, **_) -> float:
    q, r = counts.shape
    alpha_j = ess / q
    alpha_jk = ess / (q * r)
    n_j = counts.sum(axis=1)
    return float(np.sum(gammaln(alpha_j) - gammaln(alpha_j + n_j))
                 + np.sum(gammaln(alpha_jk + counts) - gammaln(alpha_jk)))


def log_likelihood(counts: np.ndarray) -> float:
    """Sum of N_jk * log(N_jk / N_j) over the non-empty cells."""
    n_j = np.broadcast_to(counts.sum(axis=1, keepdims=True), counts.shape)
    mask = counts > 0
    return float(np.sum(counts[mask] * np.log(counts[mask] / n_j[mask])))


def entropy_score(counts: np.ndarray, **_) -> float:
    return log_likelihood(counts)


def mdl_score(counts: np.ndarray, *, total_weight: float, **_) -> float:
    q, r = counts.shape
    penalty = 0.5 * np.log(total_weight) * q * (r - 1) if total_weight > 0 else 0.0
    return log_likelihood(counts) - penalty


def aic_score(counts: np.ndarray, **_) -> float:
    q, r = counts.shape
    return log_likelihood(counts) - q * (r - 1)


class LocalScore:
    """
    Decomposable network score, memoised per (child, parent set).

    Counts come from a weighted bincount over the encoded data, or from an
    ADTree when `use_ad_tree` is set; both yield the same table.
    """

    _metrics: ClassVar[Dict[ScoreType, Callable[..., float]]] = {
        "bayes": bayes_score,
        "bdeu": bdeu_score,
        "mdl": mdl_score,
        "aic": aic_score,
        "entropy": entropy_score,
    }

    def __init__(self,
                 data: DiscreteData,
                 metric: ScoreType = "bayes",
                 *,
                 use_ad_tree: bool = False,
                 adtree: Optional[ADTree] = None,
                 leaf_threshold: int = LEAF_THRESHOLD,
                 alpha: float = 0.5,
                 ess: float = 1.0):
        if metric not in get_args(ScoreType):
            raise ValueError(f"{metric} is not recognized, must be one of {get_args(ScoreType)}")
        if alpha <= 0 or ess <= 0:
            raise ValueError(f"alpha and ess must be positive. Got alpha={alpha}, ess={ess}")

        self.data = data
        self.metric = metric
        self.alpha = alpha
        self.ess = ess
        if adtree is None and use_ad_tree:
            adtree = ADTree(data, leaf_threshold=leaf_threshold)
        self.adtree = adtree

        # bound per instance so each scorer has its own cache
        self._cached_score = lru_cache(maxsize=None)(self._compute)

    def counts(self, child: int, parents: Iterable[int]) -> np.ndarray:
        """Weighted count table of shape (q, r_child); parent axes in ascending index order."""
        parents = sorted(set(parents))
        cards = self.data.cardinalities
        r = cards[child]

        if self.adtree is not None:
            table = self.adtree.contingency(parents + [child])
            return table.reshape(-1, r)

        q = int(np.prod([cards[p] for p in parents], dtype=np.int64))
        config = np.zeros(self.data.num_instances, dtype=np.int64)
        for p in parents:
            config = config * cards[p] + self.data.values[:, p]
        cells = config * r + self.data.values[:, child]
        flat = np.bincount(cells, weights=self.data.weights, minlength=q * r)
        return flat.reshape(q, r)

    def _compute(self, child: int, parents: frozenset[int]) -> float:
        table = self.counts(child, parents)
        return self._metrics[self.metric](table,
                                          alpha=self.alpha,
                                          ess=self.ess,
                                          total_weight=self.data.total_weight)

    def local_score(self, child: int, parents: Iterable[int]) -> float:
        return self._cached_score(child, frozenset(parents))

    def score(self, network: BayesNetwork) -> float:
        return sum(self.local_score(node, network.parent_set(node)) for node in range(network.num_nodes))

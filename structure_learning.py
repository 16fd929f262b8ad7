from __future__ import annotations
from typing import Any, Dict, Optional, Tuple, Type, Union
import logging
import pandas as pd

from discrete_data import DiscreteData
from from_file_algorithm import FromFile
from hill_climber_algorithm import HillClimber
from k2_algorithm import K2
from local_score import LocalScore, ScoreType
from logger_setup import configure_logging
from parent_set import BayesNetwork
from search_algorithm import SearchAlgorithm, SearchConfig
from simulated_annealing_algorithm import SimulatedAnnealing

logger = logging.getLogger(__name__)

SEARCH_ALGORITHMS: Dict[str, Type[SearchAlgorithm]] = {
    "hill_climber": HillClimber,
    "k2": K2,
    "simulated_annealing": SimulatedAnnealing,
    "from_file": FromFile,
}


def make_search_algorithm(method: str,
                          scorer: Optional[LocalScore] = None,
                          config: Optional[SearchConfig] = None,
                          **options: Any) -> SearchAlgorithm:
    if method not in SEARCH_ALGORITHMS:
        raise ValueError(f"Unknown search method {method!r}, must be one of {sorted(SEARCH_ALGORITHMS)}")
    algorithm = SEARCH_ALGORITHMS[method]
    if algorithm is FromFile:
        return FromFile(config=config, **options)
    return algorithm(scorer, config, **options)


def learn_structure(frame: pd.DataFrame,
                    *,
                    class_column: Optional[Union[str, int]] = None,
                    method: str = "hill_climber",
                    score: ScoreType = "bayes",
                    use_ad_tree: bool = False,
                    config: Optional[SearchConfig] = None,
                    weights: Optional[str] = None,
                    log_file: Optional[str] = None,
                    **options: Any) -> Tuple[BayesNetwork, float]:
    """
    Learn a Bayes network structure from a fully observed discrete DataFrame.

    Parameters
    ----------
    frame : pd.DataFrame
        One column per attribute; every value is treated as a category.
    class_column : str or int, optional
        Class (target) attribute, last column by default.
    method : str
        Key of SEARCH_ALGORITHMS.
    score : {"bayes", "bdeu", "mdl", "aic", "entropy"}
        Local score used by the search and for the returned total.
    use_ad_tree : bool
        Count through an ADTree instead of scanning the data.
    config : SearchConfig, optional
        Shared search settings (max parents, naive Bayes seeding, ...).
    weights : str, optional
        Name of a column holding instance weights.
    log_file : str, optional
        Attach a rotating log file before searching.
    **options
        Strategy specific keywords, e.g. use_arc_reversal, random_order,
        t_start, runs, structure.

    Returns
    -------
    (BayesNetwork, float)
        The learned network and its total score.
    """
    if log_file is not None:
        configure_logging(log_file)

    data = DiscreteData.from_frame(frame, class_column, weights=weights)
    scorer = LocalScore(data, score, use_ad_tree=use_ad_tree)
    algorithm = make_search_algorithm(method, scorer, config, **options)

    network = BayesNetwork.from_data(data)
    algorithm.build_structure(network, data)
    total = scorer.score(network)
    logger.info("Learned %d arcs with %s, %s score %.4f", network.num_arcs, method, score, total)
    return network, total

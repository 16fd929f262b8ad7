import itertools

import pytest

from arc_legality import can_add_arc, can_reverse_arc
from discrete_data import DiscreteData
from hill_climber_algorithm import HillClimber
from local_score import LocalScore
from parent_set import BayesNetwork
from search_algorithm import SearchConfig


def assert_local_optimum(network, scorer, max_parents, use_arc_reversal):
    """No single legal edit improves the score."""
    for head, tail in itertools.permutations(range(network.num_nodes), 2):
        head_parents = set(network.parent_set(head))
        old = scorer.local_score(head, head_parents)
        if tail in head_parents:
            assert scorer.local_score(head, head_parents - {tail}) - old <= 1e-9
            if use_arc_reversal and can_reverse_arc(network, head, tail) \
                    and network.parent_set(tail).nr_of_parents < max_parents:
                tail_parents = set(network.parent_set(tail))
                delta = (scorer.local_score(head, head_parents - {tail}) - old
                         + scorer.local_score(tail, tail_parents | {head}) - scorer.local_score(tail, tail_parents))
                assert delta <= 1e-9
        elif len(head_parents) < max_parents and can_add_arc(network, head, tail):
            assert scorer.local_score(head, head_parents | {tail}) - old <= 1e-9


@pytest.mark.parametrize("use_arc_reversal", [False, True])
@pytest.mark.parametrize("metric", ["bayes", "mdl"])
def test_hill_climber_reaches_acyclic_local_optimum(dependent_frame, metric, use_arc_reversal):
    data = DiscreteData.from_frame(dependent_frame)
    scorer = LocalScore(data, metric)
    config = SearchConfig(max_parents=2, init_as_naive_bayes=False)
    network = BayesNetwork.from_data(data)
    initial = scorer.score(network)

    HillClimber(scorer, config, use_arc_reversal=use_arc_reversal).build_structure(network, data)

    assert network.is_acyclic()
    assert all(network.parent_set(n).nr_of_parents <= 2 for n in range(network.num_nodes))
    assert scorer.score(network) > initial
    # A and B are strongly dependent
    assert network.parent_set(0).contains(1) or network.parent_set(1).contains(0)
    assert_local_optimum(network, scorer, 2, use_arc_reversal)


def test_naive_bayes_seed_with_one_parent_only_deletes(dependent_frame):
    data = DiscreteData.from_frame(dependent_frame)
    scorer = LocalScore(data, "mdl")
    network = HillClimber(scorer, SearchConfig(max_parents=1)).build_structure(BayesNetwork.from_data(data), data)

    assert network.is_acyclic()
    # Class already has A, B and C as children, so nothing can be added anywhere
    assert network.parent_set(data.class_index).nr_of_parents == 0
    for node in range(3):
        assert set(network.parent_set(node)) <= {data.class_index}
    # A depends on the class and keeps its arc; C is noise and loses it
    assert network.parent_set(0).contains(data.class_index)
    assert not network.parent_set(2).contains(data.class_index)


def test_ad_tree_counts_give_the_same_network(dependent_frame):
    data = DiscreteData.from_frame(dependent_frame)
    config = SearchConfig(max_parents=3, init_as_naive_bayes=False)
    results = []
    for use_ad_tree in (False, True):
        network = BayesNetwork.from_data(data)
        HillClimber(LocalScore(data, "bdeu", use_ad_tree=use_ad_tree), config,
                    use_arc_reversal=True).build_structure(network, data)
        results.append(network)
    assert results[0] == results[1]


def test_candidate_limit_restricts_parents(dependent_frame):
    data = DiscreteData.from_frame(dependent_frame)
    config = SearchConfig(max_parents=3, init_as_naive_bayes=False, candidate_limit=1)
    algorithm = HillClimber(LocalScore(data, "bayes"), config, use_arc_reversal=True)
    network = algorithm.build_structure(BayesNetwork.from_data(data), data)

    allowed = algorithm.allowed_parents(data)
    for node in range(network.num_nodes):
        assert set(network.parent_set(node)) <= allowed[node]


def test_hill_climber_needs_a_scorer(dependent_frame):
    data = DiscreteData.from_frame(dependent_frame)
    with pytest.raises(ValueError):
        HillClimber().build_structure(BayesNetwork.from_data(data), data)

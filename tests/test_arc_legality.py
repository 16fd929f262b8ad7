import itertools

import numpy as np
import pandas as pd

from arc_legality import can_add_arc, can_reverse_arc, is_arc, topological_order
from discrete_data import DiscreteData
from parent_set import BayesNetwork
from search_algorithm import SearchAlgorithm, SearchConfig

A, B, CLASS = 0, 1, 2


def naive_bayes_abc() -> BayesNetwork:
    frame = pd.DataFrame({"A": [0, 1, 0, 1], "B": [1, 1, 0, 0], "Class": [0, 1, 1, 0]})
    data = DiscreteData.from_frame(frame, "Class")
    network = BayesNetwork.from_data(data)
    return SearchAlgorithm(config=SearchConfig(init_as_naive_bayes=True)).build_structure(network, data)


def chain(n: int) -> BayesNetwork:
    network = BayesNetwork([f"X{i}" for i in range(n)], [2] * n)
    for i in range(1, n):
        network.add_arc(i, i - 1)
    return network


def test_naive_bayes_scenario():
    network = naive_bayes_abc()
    assert network.to_parent_map() == {"A": ["Class"], "B": ["Class"], "Class": []}
    assert topological_order(network) == [CLASS, A, B]

    # B -> A next to Class -> A and Class -> B is still acyclic
    assert can_add_arc(network, A, B)
    network.add_arc(A, B)
    assert topological_order(network) == [CLASS, B, A]

    # A -> B would close A -> B -> A
    assert not can_add_arc(network, B, A)
    # turning B -> A into A -> B is fine
    assert can_reverse_arc(network, A, B)
    # turning Class -> A into A -> Class closes A -> Class -> B -> A
    assert not can_reverse_arc(network, A, CLASS)
    # there is no A -> B to reverse
    assert not can_reverse_arc(network, B, A)


def test_self_loops_and_duplicates_are_rejected():
    network = naive_bayes_abc()
    for node in range(3):
        assert not can_add_arc(network, node, node)
        assert not can_reverse_arc(network, node, node)
    assert is_arc(network, A, CLASS)
    assert not can_add_arc(network, A, CLASS)


def test_reverse_requires_existing_arc():
    network = chain(3)
    for head, tail in itertools.permutations(range(3), 2):
        if not is_arc(network, head, tail):
            assert not can_reverse_arc(network, head, tail)


def test_longer_cycles_are_detected():
    network = chain(4)
    # X3 -> X0 closes X0 -> X1 -> X2 -> X3 -> X0
    assert not can_add_arc(network, 0, 3)
    assert can_add_arc(network, 3, 0)
    # turning X2 -> X3 around leaves X0 -> X1 -> X2 <- X3
    assert can_reverse_arc(network, 3, 2)
    network.add_arc(3, 0)
    # X0 -> X3 and X2 -> X3: reversing X2 -> X3 gives X3 -> X2 with X0 -> X1 -> X2, still acyclic
    assert can_reverse_arc(network, 3, 2)
    # reversing X0 -> X1 gives X1 -> X0 while X1 -> X2 -> X3 and X0 -> X3: acyclic
    assert can_reverse_arc(network, 1, 0)
    # reversing X0 -> X3 gives X3 -> X0 while X0 -> X1 -> X2 -> X3: cycle
    assert not can_reverse_arc(network, 3, 0)


def test_checks_never_mutate_and_speculative_edit_round_trips():
    rng = np.random.default_rng(3)
    network = chain(5)
    network.add_arc(4, 1)
    for head, tail in itertools.product(range(5), repeat=2):
        before = network.copy()
        legal = can_add_arc(network, head, tail)
        can_reverse_arc(network, head, tail)
        assert network == before

        if legal:
            network.parent_set(head).add_parent(tail)
            assert network.is_acyclic()
            network.parent_set(head).delete_last_parent()
            assert network == before
            assert network.parent_set(head).cardinality_of_parents == before.parent_set(head).cardinality_of_parents

    # every legal add keeps a random walk acyclic
    for _ in range(50):
        head, tail = rng.integers(0, 5, 2).tolist()
        if can_add_arc(network, head, tail):
            network.add_arc(head, tail)
        assert network.is_acyclic()


def test_search_algorithm_methods_delegate():
    network = naive_bayes_abc()
    algorithm = SearchAlgorithm()
    assert algorithm.is_arc(network, A, CLASS)
    assert algorithm.can_add_arc(network, A, B)
    assert algorithm.can_reverse_arc(network, A, CLASS)

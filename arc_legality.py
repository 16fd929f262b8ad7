from __future__ import annotations
from typing import TYPE_CHECKING, List, Optional, Tuple

if TYPE_CHECKING:
    from parent_set import BayesNetwork


def is_arc(network: BayesNetwork, head: int, tail: int) -> bool:
    """True if tail -> head is in the network."""
    parent_set = network.parent_set(head)
    for i in range(parent_set.nr_of_parents):
        if parent_set.get_parent(i) == tail:
            return True
    return False


def topological_order(network: BayesNetwork,
                      extra_arc: Optional[Tuple[int, int]] = None,
                      ignored_arc: Optional[Tuple[int, int]] = None) -> Optional[List[int]]:
    """
    Constructive topological sort over the whole network.

    Repeatedly marks the first unordered node whose parents are all ordered.
    A pass that finds no such node means a cycle and returns None.

    Parameters
    ----------
    extra_arc : (head, tail), optional
        Arc tail -> head to consider present without touching the network.
    ignored_arc : (head, tail), optional
        Existing arc tail -> head whose parent is treated as already ordered.
    """
    n_nodes = network.num_nodes
    done = [False] * n_nodes
    order: List[int] = []

    for _ in range(n_nodes):
        found = False
        for node in range(n_nodes):
            if done[node]:
                continue
            parents = list(network.parent_set(node))
            if extra_arc is not None and extra_arc[0] == node:
                parents.append(extra_arc[1])

            if all(done[p] or (node, p) == ignored_arc for p in parents):
                done[node] = True
                order.append(node)
                found = True
                break

        if not found:
            return None

    return order


def can_add_arc(network: BayesNetwork, head: int, tail: int) -> bool:
    """
    Check that tail -> head is new and does not close a cycle.

    Self-loops and duplicate arcs are rejected without raising.
    """
    if head == tail:
        return False
    if is_arc(network, head, tail):
        return False
    return topological_order(network, extra_arc=(head, tail)) is not None


def can_reverse_arc(network: BayesNetwork, head: int, tail: int) -> bool:
    """
    Check that tail -> head exists and that head -> tail in its place stays acyclic.
    """
    if head == tail:
        return False
    if not is_arc(network, head, tail):
        return False
    return topological_order(network, extra_arc=(tail, head), ignored_arc=(head, tail)) is not None

"""Turning pairwise similarity into clusters."""

from collections.abc import Callable, Hashable, Sequence
from typing import TypeVar

from .models import ClusteringMode

T = TypeVar("T")


class UnionFind:
    """Disjoint-set forest over item indices."""

    def __init__(self, size: int):
        self.parent = list(range(size))

    def find(self, item: int) -> int:
        while self.parent[item] != item:
            self.parent[item] = self.parent[self.parent[item]]
            item = self.parent[item]
        return item

    def union(self, item1: int, item2: int) -> None:
        root1 = self.find(item1)
        root2 = self.find(item2)
        if root1 != root2:
            # Lower index stays root so components keep input order
            if root1 < root2:
                self.parent[root2] = root1
            else:
                self.parent[root1] = root2


def greedy_clusters(items: Sequence[T], is_similar: Callable[[T, T], bool]) -> list[list[T]]:
    """
    Single-pass greedy clustering seeded by input order.

    Each unclaimed item claims every later unclaimed item similar to it.
    Chains are not followed: if A~B and B~C but not A~C, C is only grouped
    with A when it is similar to A directly.

    Args:
        items: Items in the order they should seed clusters
        is_similar: Symmetric similarity predicate

    Returns:
        Clusters with at least two members, in seed order
    """
    clusters: list[list[T]] = []
    claimed: set[int] = set()

    for i, seed in enumerate(items):
        if i in claimed:
            continue

        cluster = [seed]
        for j in range(i + 1, len(items)):
            if j in claimed:
                continue
            if is_similar(seed, items[j]):
                cluster.append(items[j])
                claimed.add(j)

        if len(cluster) > 1:
            claimed.add(i)
            clusters.append(cluster)

    return clusters


def connected_clusters(items: Sequence[T], is_similar: Callable[[T, T], bool]) -> list[list[T]]:
    """
    Connected components of the similarity graph.

    Returns:
        Components with at least two members, ordered by their first item,
        each preserving input order
    """
    forest = UnionFind(len(items))
    for i in range(len(items)):
        for j in range(i + 1, len(items)):
            if forest.find(i) == forest.find(j):
                continue
            if is_similar(items[i], items[j]):
                forest.union(i, j)

    components: dict[Hashable, list[T]] = {}
    for i, item in enumerate(items):
        components.setdefault(forest.find(i), []).append(item)

    return [members for members in components.values() if len(members) > 1]


def cluster(
    items: Sequence[T], is_similar: Callable[[T, T], bool], mode: ClusteringMode
) -> list[list[T]]:
    """Cluster items with the given mode."""
    if mode is ClusteringMode.CONNECTED:
        return connected_clusters(items, is_similar)
    return greedy_clusters(items, is_similar)

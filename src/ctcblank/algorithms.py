#!/usr/bin/env python

"""Defines common algorithms over lattices"""
import heapq
import itertools
from collections import deque
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .lattice import Lattice


def scc(lattice: 'Lattice') -> set:
    """Calculate the strongly connected components of a lattice.

       This is a basic implementation of Tarjan's (1972) algorithm.
       Tarjan, R. E. (1972), "Depth-first search and linear graph algorithms",
       SIAM Journal on Computing, 1 (2): 146–160.

       Returns a set of frozensets of state ids, one frozenset for each SCC.
       The DFS keeps its own stack of target iterators instead of recursing."""

    index = 0
    S = deque([])
    sccs, indices, lowlink, onstack = set(), {}, {}, set()

    def _visit(state):
        nonlocal index
        indices[state] = index
        lowlink[state] = index
        index += 1
        S.append(state)
        onstack.add(state)
        return state, iter(lattice.states[state].all_targets())

    for s in range(len(lattice.states)):
        if s in indices:
            continue
        work = [_visit(s)]
        while work:
            state, targets = work[-1]
            for target in targets:
                if target not in indices:
                    work.append(_visit(target))
                    break
                elif target in onstack:
                    lowlink[state] = min(lowlink[state], indices[target])
            else:
                # All targets done: return to the caller's frame
                work.pop()
                if work:
                    caller = work[-1][0]
                    lowlink[caller] = min(lowlink[caller], lowlink[state])
                if lowlink[state] == indices[state]:
                    currscc = set()
                    while True:
                        target = S.pop()
                        onstack.remove(target)
                        currscc.add(target)
                        if state == target:
                            break
                    sccs.add(frozenset(currscc))

    return sccs


def topological_order(lattice: 'Lattice') -> Optional[List[int]]:
    """Topologically sorted ids of the states reachable from the start state,
       or None if a cycle is reachable. Iterative DFS, so deep lattices do not
       hit the recursion limit."""
    if lattice.initialstate is None:
        return []

    WHITE, GRAY, BLACK = 0, 1, 2
    color = {}           # state -> WHITE/GRAY/BLACK (default WHITE)
    topo_rev = []        # reverse topological order

    def child_iter(s):
        return iter(lattice.states[s].all_targets())

    stack = [(lattice.initialstate, child_iter(lattice.initialstate))]
    color[lattice.initialstate] = GRAY
    while stack:
        u, it = stack[-1]
        v = next(it, None)
        if v is None:
            stack.pop()
            color[u] = BLACK
            topo_rev.append(u)
            continue
        c = color.get(v, WHITE)
        if c == WHITE:
            color[v] = GRAY
            stack.append((v, child_iter(v)))
        elif c == GRAY:
            # back edge => cycle
            return None
    return topo_rev[::-1]


def is_acyclic(lattice: 'Lattice') -> bool:
    """True if no cycle (self-loops included) is reachable from the start state."""
    return topological_order(lattice) is not None


def dijkstra(lattice: 'Lattice', state: int) -> float:
    """The cost of the cheapest path from state to a final state. Go Edsger!"""
    explored, cntr = {state}, itertools.count()  # decrease-key is for wusses
    Q = [(0.0, next(cntr), state)] # Middle is dummy cntr to avoid key ties
    while Q:
        w, _ , s = heapq.heappop(Q)
        if s is None:       # First None we pull out is the lowest-cost exit
            return w
        explored.add(s)
        if lattice.states[s].is_final:
            # now we push a None state to signal the exit from a final
            heapq.heappush(Q, (w + lattice.states[s].finalweight, next(cntr), None))
        for trgt, cost in lattice.states[s].all_targets_cheapest().items():
            if trgt not in explored:
                heapq.heappush(Q, (cost + w, next(cntr), trgt))
    return float("inf")


def shortest_distance(lattice: 'Lattice') -> float:
    """Tropical sum over all accepting paths, i.e. the weight of the best path.
       Infinity for an empty lattice or one without accepting paths."""
    if lattice.initialstate is None:
        return float("inf")
    return dijkstra(lattice, lattice.initialstate)

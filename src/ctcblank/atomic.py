from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple


EPSILON = 0


class Transition:
    __slots__ = ['targetstate', 'label', 'weight']
    def __init__(self, targetstate: int, label: Tuple[int, ...], weight: float):
        self.targetstate = targetstate
        self.label = label
        self.weight = weight

    @property
    def ilabel(self) -> int:
        return self.label[0]

    @property
    def olabel(self) -> int:
        return self.label[-1]

    def __repr__(self):
        return f"Transition({self.targetstate}, {self.label}, {self.weight})"


class State:
    __slots__ = 'transitions', 'finalweight', 'name'

    def __init__(self, finalweight: Optional[float] = None, name: Optional[str] = None):
        self.transitions: Dict[Tuple[int, ...], List[Transition]] = dict()  # (i,) or (i, o):[transition1, transition2, ...]
        if finalweight is None:
            finalweight = float("inf")
        self.finalweight = finalweight
        self.name = name

    @property
    def is_final(self) -> bool:
        return self.finalweight != float("inf")

    @property
    def transitionsin(self) -> dict:
        """Returns a dictionary of the transitions from a state, indexed by the input
           label, i.e. the first member of the label tuple."""
        _transitionsin = defaultdict(list)
        for label, newtrans in self.transitions.items():
            for t in newtrans:
                _transitionsin[label[0]].append(t)
        return _transitionsin

    @property
    def transitionsout(self) -> dict:
        """Returns a dictionary of the transitions from a state, indexed by the output
           label, i.e. the last member of the label tuple."""
        _transitionsout = defaultdict(list)
        for label, newtrans in self.transitions.items():
            for t in newtrans:
                _transitionsout[label[-1]].append(t)
        return _transitionsout

    def add_transition(self, other: int, label: Tuple[int, ...], weight=0.0) -> Transition:
        """Add transition from self to state number other with label and weight."""
        newtrans = Transition(other, label, weight)
        self.transitions.setdefault(label, []).append(newtrans)
        return newtrans

    def all_transitions(self):
        """Generator for all transitions out from a given state."""
        for label, transitions in self.transitions.items():
            for t in transitions:
                yield label, t

    def all_targets(self) -> list:
        """Returns the distinct states a state has transitions to, in arc order."""
        return list(dict.fromkeys(t.targetstate for tr in self.transitions.values() for t in tr))

    def all_targets_cheapest(self) -> dict:
        """Returns a dict of states a state transitions to (cheapest)."""
        targets = defaultdict(lambda: float("inf"))
        for tr in self.transitions.values():
            for t in tr:
                targets[t.targetstate] = min(targets[t.targetstate], t.weight)
        return targets


def all_transitions(states: Iterable[Tuple[int, State]]):
    """Enumerate all transitions (state, label, Transition) for an iterable of
       numbered states."""
    for stateid, state in states:
        for label, transitions in state.transitions.items():
            for t in transitions:
                yield stateid, label, t


def mergetuples(x: tuple, y: tuple) -> tuple:
    """Join the labels of two matched transitions, dropping the shared middle tape.
       Identity labels are collapsed back to a 1-tuple."""
    if len(x) == 1:
        t = x + y[1:]
    elif len(y) == 1:
        t = x[:-1] + y
    else:
        t = x[:-1] + y[1:]
    if all(t[i] == t[0] for i in range(len(t))):
        t = (t[0],)
    return t

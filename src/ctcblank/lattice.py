from collections import defaultdict, deque
from typing import Dict, Iterable, List, Optional, Sequence, cast

from ctcblank.atomic import EPSILON, State, Transition, all_transitions, mergetuples
from ctcblank._private import util
from ctcblank import algorithms


class Lattice:
    """A weighted automaton over integer labels in the tropical semiring.

    States are numbered 0..n-1 by their position in `states`. Weights are
    costs: they add along a path, and `inf` marks a non-final state. A lattice
    without states is empty and has no start state.

    Labels are tuples: `(x,)` for an arc that reads and writes `x`, `(i, o)`
    otherwise. Label 0 is epsilon.
    """

    # ==================
    # Initializers
    # ==================

    def __init__(self):
        self.states: List[State] = []
        """All states, indexed by state id"""
        self.initialstate: Optional[int] = None
        """The start state id, None for the empty lattice"""

    def add_state(self, finalweight: Optional[float] = None, name: Optional[str] = None) -> int:
        """Append a new state and return its id."""
        self.states.append(State(finalweight=finalweight, name=name))
        return len(self.states) - 1

    def set_start(self, state: int):
        self._check_state(state)
        self.initialstate = state

    def set_final(self, state: int, weight: float = 0.0):
        self._check_state(state)
        self.states[state].finalweight = weight

    def add_arc(self, source: int, target: int, ilabel: int, olabel: Optional[int] = None,
                weight: float = 0.0) -> Transition:
        """Add an arc. Omitting olabel, or passing olabel == ilabel, gives an
           identity arc with a 1-tuple label."""
        self._check_state(source)
        self._check_state(target)
        label = (ilabel,) if olabel is None or olabel == ilabel else (ilabel, olabel)
        return self.states[source].add_transition(target, label, weight)

    @classmethod
    def from_arcs(cls, arcs: Iterable[Sequence], finals: Dict[int, float],
                  start: int = 0) -> 'Lattice':
        """Build a lattice from (src, dst, ilabel, olabel[, weight]) tuples and a
           {state: finalweight} dict. States are created up to the highest id seen."""
        lattice = cls()
        arcs = list(arcs)
        ids = [start] + list(finals) + [s for arc in arcs for s in arc[:2]]
        for _ in range(max(ids) + 1):
            lattice.add_state()
        lattice.set_start(start)
        for arc in arcs:
            src, dst, ilabel, olabel = arc[:4]
            weight = arc[4] if len(arc) > 4 else 0.0
            lattice.add_arc(src, dst, ilabel, olabel, weight)
        for state, weight in finals.items():
            lattice.set_final(state, weight)
        return lattice

    @classmethod
    def linear(cls, labels: Sequence[int], weights: Optional[Sequence[float]] = None,
               finalweight: float = 0.0) -> 'Lattice':
        """A single-path acceptor reading labels, one arc per label."""
        if weights is None:
            weights = [0.0] * len(labels)
        lattice = cls()
        lattice.set_start(lattice.add_state())
        for label, weight in zip(labels, weights):
            target = lattice.add_state()
            lattice.add_arc(target - 1, target, label, label, weight)
        lattice.set_final(len(lattice.states) - 1, finalweight)
        return lattice

    def _check_state(self, state: int):
        if not 0 <= state < len(self.states):
            raise IndexError(f"No state {state} in lattice with {len(self.states)} states")

    # ==================
    # Inspection
    # ==================

    @property
    def finalstates(self) -> List[int]:
        """Ids of the final states, in id order."""
        return [i for i, s in enumerate(self.states) if s.is_final]

    def is_empty(self) -> bool:
        return self.initialstate is None

    def all_transitions(self):
        """Generator over (source id, label, Transition) for every arc."""
        yield from all_transitions(enumerate(self.states))

    def arccount(self) -> int:
        """Counts number of transitions in the lattice."""
        return sum(len(tr) for s in self.states for tr in s.transitions.values())

    def alphabet(self, dim: int = -1) -> set:
        """Non-epsilon labels on the input (dim = 0) or output (dim = -1) tape."""
        return {lbl[dim] for _, lbl, _ in self.all_transitions()} - {EPSILON}

    def is_acceptor(self) -> bool:
        """True if every arc has the same input and output label."""
        return all(len(lbl) == 1 or lbl[0] == lbl[-1] for s in self.states for lbl in s.transitions)

    def is_acyclic(self) -> bool:
        return algorithms.is_acyclic(self)

    def best_path_weight(self) -> float:
        return algorithms.shortest_distance(self)

    def paths(self):
        """A generator over all accepting paths as (ilabels, olabels, weight) with
           epsilons kept. Only meaningful for acyclic lattices. Yay DFS!"""
        if self.initialstate is None:
            return
        Q = deque([(self.initialstate, 0.0, [])])
        while Q:
            s, cost, seq = Q.pop()
            state = self.states[s]
            if state.is_final:
                yield ([l[0] for l in seq], [l[-1] for l in seq], cost + state.finalweight)
            for label, t in reversed(list(state.all_transitions())):
                Q.append((t.targetstate, cost + t.weight, seq + [label]))

    # ==================
    # Operations
    # ==================

    def copy(self) -> 'Lattice':
        """Deep copy with the same state numbering."""
        new_lattice = Lattice()
        for s in self.states:
            new_lattice.add_state(finalweight=s.finalweight, name=s.name)
        new_lattice.initialstate = self.initialstate
        for src, lbl, t in self.all_transitions():
            new_lattice.states[src].add_transition(t.targetstate, lbl, t.weight)
        return new_lattice

    def connect(self) -> 'Lattice':
        """Remove states that aren't both accessible and coaccessible, renumbering
           the survivors in id order."""
        if self.initialstate is None:
            return Lattice()
        accessible = {self.initialstate}
        stack = [self.initialstate]
        inverse = defaultdict(set)  # store all preceding states here
        while stack:
            source = stack.pop()
            for target in self.states[source].all_targets():
                inverse[target].add(source)
                if target not in accessible:
                    accessible.add(target)
                    stack.append(target)

        coaccessible = {s for s in self.finalstates if s in accessible}
        stack = list(coaccessible)
        while stack:
            source = stack.pop()
            for previous in inverse[source]:
                if previous not in coaccessible:
                    coaccessible.add(previous)
                    stack.append(previous)

        if self.initialstate not in coaccessible:
            return Lattice()
        keep = [s for s in range(len(self.states)) if s in coaccessible]
        renumber = {old: new for new, old in enumerate(keep)}
        new_lattice = Lattice()
        for old in keep:
            new_lattice.add_state(finalweight=self.states[old].finalweight, name=self.states[old].name)
        new_lattice.initialstate = renumber[self.initialstate]
        for old in keep:
            for lbl, t in self.states[old].all_transitions():
                if t.targetstate in renumber:
                    new_lattice.states[renumber[old]].add_transition(renumber[t.targetstate], lbl, t.weight)
        return new_lattice

    def compose(self, other: 'Lattice') -> 'Lattice':
        """Composition of self and other, matching the output tape of self against
           the input tape of other. Weights add. Only states reachable from the
           start pair are built, numbered in discovery order from 0."""

        # Mode 0: allow A=x:0 B=0:y (>0), A=x:y B=y:z (>0), A=x:0 B=wait (>1) A=wait 0:y (>2)
        # Mode 1: x:0 B=wait (>1), x:y y:z (>0)
        # Mode 2: A=wait 0:y (>2), x:y y:z (>0)
        newlattice = Lattice()
        if self.initialstate is None or other.initialstate is None:
            return newlattice
        start = (self.initialstate, other.initialstate, 0)
        S = {start: newlattice.add_state()}
        newlattice.initialstate = S[start]
        Q = deque([start])

        def _target(key) -> int:
            if key not in S:
                S[key] = newlattice.add_state()
                Q.append(key)
            return S[key]

        while Q:
            key = Q.popleft()
            a, b, mode = key
            A, B = self.states[a], other.states[b]
            currentstate = newlattice.states[S[key]]
            currentstate.name = "({},{},{})".format(a, b, mode)
            if A.is_final and B.is_final:
                currentstate.finalweight = A.finalweight + B.finalweight
            Aout, Bin = A.transitionsout, B.transitionsin
            for matchsym, outtransitions in Aout.items():
                if mode == 0 or matchsym != EPSILON: # A=x:y B=y:z, or x:0 0:y (only in mode 0)
                    for outtrans in outtransitions:
                        for intrans in Bin.get(matchsym, ()):
                            target = _target((outtrans.targetstate, intrans.targetstate, 0))
                            newlabel = mergetuples(outtrans.label, intrans.label)
                            currentstate.add_transition(target, newlabel, outtrans.weight + intrans.weight)
            if mode != 2:
                for outtrans in Aout.get(EPSILON, ()): # B waits
                    target = _target((outtrans.targetstate, b, 1))
                    currentstate.add_transition(target, outtrans.label, outtrans.weight)
            if mode != 1:
                for intrans in Bin.get(EPSILON, ()): # A waits
                    target = _target((a, intrans.targetstate, 2))
                    currentstate.add_transition(target, intrans.label, intrans.weight)
        return newlattice

    # ==================
    # Rendering
    # ==================

    def view(self, show_weights=False, symbols: Optional[Dict[int, str]] = None) -> 'graphviz.Digraph':
        """Creates a 'graphviz.Digraph' object to view the lattice. Will automatically display in Jupyter.

            :param show_weights: force display of weights even if 0.0
            :param symbols: optional mapping from label ids to printable symbols
            :return: A Digraph object which will automatically display in Jupyter.

           If you would like to display the lattice from a non-Jupyter environment, please use :code:`Lattice.render`
        """
        import graphviz
        if not util.check_graphviz_installed():
            raise EnvironmentError("Graphviz executable not found. Please install [Graphviz](https://www.graphviz.org/download/). On macOS, use `brew install graphviz`.")

        if show_weights == False:
            if any(t.weight != 0.0 for _, _, t in self.all_transitions()) or \
                    any(self.states[s].finalweight != 0.0 for s in self.finalstates):
                show_weights = True

        def _float_format(num):
            if not show_weights:
                return ""
            s = '{0:.2f}'.format(num).rstrip('0').rstrip('.')
            s = '0' if s == '-0' else s
            return "/" + s

        def _sym(label):  # Use greek lunate epsilon symbol U+03F5
            if label == EPSILON:
                return '&#x03f5;'
            return symbols.get(label, str(label)) if symbols else str(label)

        g = graphviz.Digraph('Lattice', graph_attr={"rankdir": "LR"})
        g.attr(rankdir='LR', size='8,5')
        for sid, s in enumerate(self.states):
            style = 'filled, bold' if sid == self.initialstate else 'filled'
            if s.is_final:
                g.node(str(sid), label=str(sid) + _float_format(s.finalweight), shape='doublecircle', style=style)
            else:
                g.node(str(sid), shape='circle', style=style)
        for sid, s in enumerate(self.states):
            for label, t in s.all_transitions():
                printlabel = ':'.join(_sym(sublabel) for sublabel in label) + _float_format(t.weight)
                g.edge(str(sid), str(t.targetstate), label=graphviz.nohtml(printlabel))
        return g

    def render(self, view=True, filename: str='Lattice', format='pdf', tight=True,
               symbols: Optional[Dict[int, str]] = None) -> str:
        """
        Renders the lattice to a file and optionally opens the file.
        :param view: If True, the rendered file will be opened.
        :param format: The file format for the Digraph. Typically 'pdf', 'png', or 'svg'. View all formats: https://graphviz.org/docs/outputs/
        :param tight: If False, the rendered file will have whitespace margins around the graph.
        :return: the path of the rendered file
        """
        import graphviz
        digraph = cast(graphviz.Digraph, self.view(symbols=symbols))
        digraph.format = format
        if tight:
            digraph.graph_attr['margin'] = '0' # Remove padding
        return digraph.render(view=view, filename=filename, cleanup=True)

    # ==================
    # Magic Methods
    # ==================

    def __copy__(self):
        return self.copy()

    def __len__(self):
        """Return the number of states."""
        return len(self.states)

    def __str__(self):
        """Generate an AT&T string representing the lattice, start state first."""
        if self.initialstate is None:
            return ""
        order = [self.initialstate] + [s for s in range(len(self.states)) if s != self.initialstate]
        st = ""
        for s in order:
            for label, t in self.states[s].all_transitions():
                st += '{}\t{}\t{}\t{}\t{}\n'.format(s, t.targetstate, t.ilabel, t.olabel,
                                                    util.format_weight(t.weight))
            if self.states[s].is_final:
                st += '{}\t{}\n'.format(s, util.format_weight(self.states[s].finalweight))
        return st

    def __repr__(self):
        return f"<Lattice with {len(self)} states, {self.arccount()} arcs>"

    def __eq__(self, other):
        """Structural equality: same numbering, start, final weights and arcs."""
        if not isinstance(other, Lattice):
            return NotImplemented
        if self.initialstate != other.initialstate or len(self) != len(other):
            return False
        for s1, s2 in zip(self.states, other.states):
            if s1.finalweight != s2.finalweight:
                return False
            arcs1 = [(lbl, t.targetstate, t.weight) for lbl, t in s1.all_transitions()]
            arcs2 = [(lbl, t.targetstate, t.weight) for lbl, t in s2.all_transitions()]
            if sorted(arcs1) != sorted(arcs2):
                return False
        return True

    __hash__ = None

import unittest
from ctcblank import algorithms
from ctcblank.lattice import Lattice
from ctcblank._private import util


def branching():
    """0 -1-> 1 -2-> 3, 0 -3-> 2 -4-> 3, 3 final."""
    return Lattice.from_arcs([(0, 1, 1, 1, 0.5), (1, 3, 2, 2, 0.25),
                              (0, 2, 3, 3, 1.0), (2, 3, 4, 4, 0.0)],
                             {3: 0.5})


class TestLattice(unittest.TestCase):
    """Test basic lattice functionality"""

    def test_empty(self):
        lat = Lattice()
        self.assertTrue(lat.is_empty())
        self.assertEqual(len(lat), 0)
        self.assertEqual(list(lat.paths()), [])
        self.assertEqual(str(lat), "")
        self.assertTrue(lat.is_acceptor())
        self.assertTrue(lat.is_acyclic())
        self.assertEqual(lat.best_path_weight(), float("inf"))

    def test_labels(self):
        lat = Lattice()
        s0, s1 = lat.add_state(), lat.add_state()
        t1 = lat.add_arc(s0, s1, 3)
        t2 = lat.add_arc(s0, s1, 3, 3)
        t3 = lat.add_arc(s0, s1, 3, 0)
        self.assertEqual(t1.label, (3,))
        self.assertEqual(t2.label, (3,))
        self.assertEqual(t3.label, (3, 0))
        self.assertEqual((t3.ilabel, t3.olabel), (3, 0))
        self.assertEqual(lat.arccount(), 3)
        with self.assertRaises(IndexError):
            lat.add_arc(0, 7, 1)

    def test_linear(self):
        lat = Lattice.linear([5, 3, 4], [0.5, 0.25, 1.0], finalweight=2.0)
        self.assertEqual(len(lat), 4)
        self.assertEqual(lat.finalstates, [3])
        self.assertEqual(list(lat.paths()), [([5, 3, 4], [5, 3, 4], 3.75)])

    def test_paths(self):
        paths = list(branching().paths())
        self.assertEqual(paths, [([1, 2], [1, 2], 1.25), ([3, 4], [3, 4], 1.5)])

    def test_best_path_weight(self):
        self.assertEqual(branching().best_path_weight(), 1.25)
        self.assertEqual(algorithms.dijkstra(branching(), 2), 0.5)

    def test_acceptor(self):
        lat = branching()
        self.assertTrue(lat.is_acceptor())
        lat.add_arc(0, 3, 7, 8)
        self.assertFalse(lat.is_acceptor())

    def test_acyclic(self):
        lat = branching()
        self.assertTrue(lat.is_acyclic())
        self.assertEqual(algorithms.topological_order(lat)[0], 0)
        self.assertEqual(algorithms.topological_order(lat)[-1], 3)
        lat.add_arc(3, 1, 1)
        self.assertFalse(lat.is_acyclic())
        self.assertIsNone(algorithms.topological_order(lat))

    def test_self_loop_is_cycle(self):
        lat = Lattice.linear([1, 2])
        lat.add_arc(1, 1, 2)
        self.assertFalse(lat.is_acyclic())

    def test_unreachable_cycle(self):
        lat = Lattice.linear([1])
        s = lat.add_state()
        lat.add_arc(s, s, 1)
        self.assertTrue(lat.is_acyclic())

    def test_deep_lattice(self):
        lat = Lattice.linear([1] * 5000)
        self.assertTrue(lat.is_acyclic())

    def test_scc(self):
        lat = Lattice.from_arcs([(0, 1, 1, 1), (1, 2, 1, 1), (2, 1, 1, 1), (2, 3, 1, 1)], {3: 0.0})
        sccs = algorithms.scc(lat)
        self.assertIn(frozenset({1, 2}), sccs)
        self.assertIn(frozenset({0}), sccs)
        self.assertEqual(len(sccs), 3)

    def test_scc_deep_cycle(self):
        lat = Lattice.linear([1] * 5000)
        lat.add_arc(5000, 0, 1)
        lat.add_state()
        self.assertEqual(algorithms.scc(lat), {frozenset(range(5001)), frozenset({5001})})

    def test_copy(self):
        lat = branching()
        cp = lat.copy()
        self.assertEqual(lat, cp)
        cp.add_arc(0, 3, 9)
        self.assertNotEqual(lat, cp)

    def test_connect(self):
        lat = branching()
        dead = lat.add_state()
        lat.add_arc(0, dead, 6)
        unreachable = lat.add_state(finalweight=0.0)
        lat.add_arc(unreachable, 3, 6)
        trimmed = lat.connect()
        self.assertEqual(len(trimmed), 4)
        self.assertEqual(list(trimmed.paths()), list(branching().paths()))

    def test_str(self):
        lat = Lattice.from_arcs([(1, 0, 4, 4, 0.5), (0, 2, 5, 0)], {2: 1.0}, start=1)
        self.assertEqual(str(lat), "1\t0\t4\t4\t0.5\n0\t2\t5\t0\t0\n2\t1\n")


class TestCompose(unittest.TestCase):
    """Composition matches output labels of the first with input labels of the second"""

    def test_relabel(self):
        a = branching()
        b = Lattice.from_arcs([(0, 0, 1, 10), (0, 0, 2, 20), (0, 0, 3, 30)], {0: 0.25})
        out = a.compose(b)
        self.assertEqual(list(out.paths()), [([1, 2], [10, 20], 1.5)])
        self.assertEqual(out.initialstate, 0)

    def test_weights_add(self):
        a = Lattice.linear([1], [0.5])
        b = Lattice.from_arcs([(0, 1, 1, 2, 0.25)], {1: 1.0})
        self.assertEqual(list(a.compose(b).paths()), [([1], [2], 1.75)])

    def test_identity_merge(self):
        a = Lattice.linear([4])
        b = Lattice.linear([4])
        out = a.compose(b)
        self.assertEqual(out.states[0].transitions[(4,)][0].label, (4,))

    def test_epsilon_in_first(self):
        a = Lattice.linear([0, 3])
        b = Lattice.from_arcs([(0, 1, 3, 7)], {1: 0.0})
        self.assertEqual(list(a.compose(b).paths()), [([0, 3], [0, 7], 0.0)])

    def test_epsilon_in_second(self):
        a = Lattice.linear([3])
        b = Lattice.from_arcs([(0, 1, 0, 9, 0.5), (1, 2, 3, 3)], {2: 0.0})
        self.assertEqual(list(a.compose(b).paths()), [([0, 3], [9, 3], 0.5)])

    def test_no_redundant_epsilon_paths(self):
        a = Lattice.from_arcs([(0, 1, 1, 0)], {1: 0.0})
        b = Lattice.from_arcs([(0, 1, 0, 9)], {1: 0.0})
        paths = list(a.compose(b).paths())
        self.assertEqual(paths, [([1], [9], 0.0)])

    def test_empty(self):
        self.assertTrue(Lattice().compose(branching()).is_empty())
        self.assertTrue(branching().compose(Lattice()).is_empty())

    def test_deterministic_numbering(self):
        a, b = branching(), Lattice.from_arcs([(0, 0, s, s) for s in (1, 2, 3, 4)], {0: 0.0})
        self.assertEqual(str(a.compose(b)), str(a.compose(b)))
        self.assertEqual(a.compose(b).states[0].name, "(0,0,0)")


@unittest.skipUnless(util.check_graphviz_installed(), "graphviz executable not found")
class TestView(unittest.TestCase):

    def test_view(self):
        g = Lattice.from_arcs([(0, 1, 5, 0, 1.5)], {1: 0.0}).view(symbols={5: "<b>"})
        self.assertIn("<b>:&#x03f5;/1.5", g.source)
        self.assertIn("doublecircle", g.source)


if __name__ == "__main__":
    unittest.main()

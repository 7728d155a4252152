# ===============================================================================
# Copyright (c) 2007 Jason Evans <jasone@canonware.com>
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
# ===============================================================================
"""
Graph-structured stack (GSS) classes.

Each edge carries the node that was pushed and the extras (whitespace,
comments, recovery ERROR nodes) that preceded it in the input.
"""


class Gss(list):
    """Graph-structured stack."""


class Gsse(object):
    """Graph-structured stack edge."""

    def __init__(self, below, above, value, extras=()):
        self.node = below
        above._edges.append(self)
        self.value = value
        self.extras = extras

    def __repr__(self):
        return "{%r}" % (self.value,)

    def __eq__(self, other):
        return self.node is other.node and self.value is other.value

    def __ne__(self, other):
        return not self == other

    __hash__ = object.__hash__

    @property
    def error_cost(self):
        cost = self.value.error_cost
        for extra in self.extras:
            cost += extra.error_cost
        return cost


class Gssn(object):
    """
    Graph-structured stack node.  `position` is the byte offset just past
    the input this node's stack has consumed; `errorCost` is the lowest
    error cost of any path below it.
    """
    seq_cur = 0

    def __init__(self, below, value, nextState, position=0, extras=()):
        assert isinstance(below, Gssn) or below is None

        self._edges = []
        self.seq = Gssn.seq_cur
        Gssn.seq_cur += 1
        self.nextState = nextState
        self.position = position
        if below is not None:
            edge = Gsse(below, self, value, extras)
            self.errorCost = below.errorCost + edge.error_cost
        else:
            self.errorCost = 0

    def __repr__(self):
        return "[%d]" % self.nextState

    @property
    def edge(self):
        assert len(self._edges) == 1
        return self._edges[0]

    def edges(self):
        for edge in self._edges:
            yield edge

    def nodes(self):
        for edge in self._edges:
            yield edge.node

    def addEdge(self, below, value, extras=()):
        edge = Gsse(below, self, value, extras)
        cost = below.errorCost + edge.error_cost
        if cost < self.errorCost:
            self.errorCost = cost
        return edge

    def depth(self):
        """The number of edges on the first path down to the bottom."""
        n = 0
        node = self
        while node._edges:
            node = node._edges[0].node
            n += 1
        return n

    def firstPath(self):
        """
        The first path down to the bottom, bottom first, alternating nodes
        and edges like the paths from paths().
        """
        path = [self]
        node = self
        while node._edges:
            edge = node._edges[0]
            path.insert(0, edge)
            path.insert(0, edge.node)
            node = edge.node
        return path

    # Iterate over all paths of length pathLen.  Path length is measured as the
    # number of edges in the path, so a path of length 0 still consists of a
    # single node.
    #
    # Each path is encoded as a list that alternates between nodes and edges,
    # where the first and last elements are always nodes.
    #
    # <e>-grammars can cause cycles, which requires that we avoid infinite
    # recursion.
    def paths(self, pathLen=None):
        assert ((type(pathLen) == int and pathLen >= 0) or pathLen is None)

        for path in self._pathsRecurse(pathLen, []):
            yield path

    def _pathsRecurse(self, pathLen, path):
        path.insert(0, self)
        if pathLen is None and len(self._edges) == 0:
            yield path[:]
        elif pathLen is not None and len(path) - 1 == pathLen * 2:
            yield path[:]
        else:
            for edge in self.edges():
                # Avoid infinite recursion due to <e>-production cycles.
                if len(path) < 3 or edge != path[1]:
                    path.insert(0, edge)
                    for x in edge.node._pathsRecurse(pathLen, path):
                        yield x
                    path.pop(0)
        path.pop(0)

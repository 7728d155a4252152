"""
Persistent syntax trees.

Nodes are immutable and store only relative sizes, never absolute
positions or parent pointers.  That is what lets an incremental reparse
share every untouched subtree between the old and the new tree: a node
that moved because of an edit before it does not need to change.

Absolute coordinates are computed on the fly by the views in
:py:mod:`cabinparse.cursor`.
"""
from collections import namedtuple

from cabinparse.errors import InputError


class Point(namedtuple('Point', 'row column')):
    """A (row, column) position; columns count bytes."""
    __slots__ = ()


class Length(namedtuple('Length', 'bytes rows columns')):
    """
    The extent of a piece of text: its size in bytes, the number of line
    breaks in it, and the number of bytes after the last line break.
    """
    __slots__ = ()

    @classmethod
    def of(cls, text, start=0, end=None):
        if end is None:
            end = len(text)
        rows = text.count(b'\n', start, end)
        if rows:
            columns = end - (text.rindex(b'\n', start, end) + 1)
        else:
            columns = end - start
        return cls(end - start, rows, columns)

    def __add__(self, other):
        if other.rows > 0:
            return Length(self.bytes + other.bytes, self.rows + other.rows,
                          other.columns)
        return Length(self.bytes + other.bytes, self.rows,
                      self.columns + other.columns)

    def advance(self, point):
        """The point reached from `point` after this length of text."""
        if self.rows > 0:
            return Point(point.row + self.rows, self.columns)
        return Point(point.row, point.column + self.columns)


ZERO = Length(0, 0, 0)


class Node(object):
    """
    An immutable CST node.

    `children` holds every child, extras and recovery ERROR nodes
    included; the children exactly cover the node.  `lookahead` and
    `lookbehind` are the bytes past the end and before the start that
    lexing the node's tokens depended on.  `lex_state` and `trailing` are
    the lex contexts of the node's first and last tokens.
    """
    __slots__ = ('symbol', 'production', 'children', 'length', 'lookahead',
                 'lookbehind', 'error_cost', 'extra', 'missing', 'fragile',
                 'is_error', 'terminal', 'parse_state', 'lex_state',
                 'trailing')

    def __init__(self, symbol, production=None, children=(), length=ZERO,
                 lookahead=0, lookbehind=0, error_cost=0, extra=False,
                 missing=False, fragile=False, is_error=False, terminal=False,
                 parse_state=None, lex_state=frozenset(), trailing=None):
        self.symbol = symbol
        self.production = production
        self.children = children
        self.length = length
        self.lookahead = lookahead
        self.lookbehind = lookbehind
        self.error_cost = error_cost
        self.extra = extra
        self.missing = missing
        self.fragile = fragile
        self.is_error = is_error
        self.terminal = terminal
        self.parse_state = parse_state
        self.lex_state = lex_state
        self.trailing = lex_state if trailing is None else trailing

    def __setattr__(self, name, value):
        if hasattr(self, name):
            raise AttributeError("Node is immutable")
        object.__setattr__(self, name, value)

    def __repr__(self):
        flags = []
        if self.extra:
            flags.append('extra')
        if self.missing:
            flags.append('missing')
        if self.is_error:
            flags.append('error')
        return "Node(%d, %d bytes%s)" % (
            self.symbol, self.length.bytes,
            "".join(", %s" % flag for flag in flags))

    @property
    def size(self):
        return self.length.bytes

    @property
    def has_error(self):
        return self.error_cost > 0

    def as_extra(self):
        """A copy of this node flagged as an extra."""
        return Node(self.symbol, self.production, self.children, self.length,
                    self.lookahead, self.lookbehind, self.error_cost, True,
                    self.missing, self.fragile, self.is_error, self.terminal,
                    self.parse_state, self.lex_state, self.trailing)


class Edit(object):
    """
    A replacement of the old bytes [start_byte, old_end_byte) by new bytes
    ending at new_end_byte, with the matching points.  `inserted` holds the
    new bytes when they are known.
    """
    __slots__ = ('start_byte', 'old_end_byte', 'new_end_byte', 'start_point',
                 'old_end_point', 'new_end_point', 'inserted')

    def __init__(self, start_byte, old_end_byte, new_end_byte,
                 start_point=None, old_end_point=None, new_end_point=None,
                 inserted=None):
        if not 0 <= start_byte <= old_end_byte or new_end_byte < start_byte:
            raise InputError("Invalid edit range: %d, %d, %d"
                             % (start_byte, old_end_byte, new_end_byte))
        self.start_byte = start_byte
        self.old_end_byte = old_end_byte
        self.new_end_byte = new_end_byte
        self.start_point = start_point
        self.old_end_point = old_end_point
        self.new_end_point = new_end_point
        self.inserted = inserted

    @classmethod
    def replacing(cls, text, start, old_end, new_bytes):
        """The edit that replaces text[start:old_end] by `new_bytes`."""
        if isinstance(new_bytes, str):
            new_bytes = new_bytes.encode('utf-8')
        if not 0 <= start <= old_end <= len(text):
            raise InputError("Edit range [%d, %d) outside of text"
                             % (start, old_end))
        start_point = Length.of(text, 0, start).advance(Point(0, 0))
        old_end_point = Length.of(text, start, old_end).advance(start_point)
        new_end_point = Length.of(new_bytes).advance(start_point)
        return cls(start, old_end, start + len(new_bytes), start_point,
                   old_end_point, new_end_point, bytes(new_bytes))

    def __repr__(self):
        return "Edit(%d, %d, %d)" % (self.start_byte, self.old_end_byte,
                                     self.new_end_byte)

    def __eq__(self, other):
        return isinstance(other, Edit) and all(
            getattr(self, k) == getattr(other, k) for k in self.__slots__)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((self.start_byte, self.old_end_byte, self.new_end_byte))

    @property
    def delta(self):
        return self.new_end_byte - self.old_end_byte

    def apply(self, text):
        """The text after this edit."""
        if self.inserted is None:
            raise InputError("Edit does not carry its inserted bytes")
        if self.old_end_byte > len(text):
            raise InputError("Edit range [%d, %d) outside of text"
                             % (self.start_byte, self.old_end_byte))
        return text[:self.start_byte] + self.inserted \
            + text[self.old_end_byte:]

    def map_byte(self, pos):
        """Translate an old byte offset into the edited text."""
        if pos >= self.old_end_byte:
            return pos + self.delta
        elif pos > self.start_byte:
            return self.new_end_byte
        return pos

    def unmap_byte(self, pos):
        """
        Translate a new byte offset back into the old text, or None if it
        lies in the inserted bytes.
        """
        if pos >= self.new_end_byte:
            return pos - self.delta
        elif pos >= self.start_byte and self.new_end_byte > self.start_byte:
            return None
        return pos

    def map_point(self, point):
        if self.old_end_point is None or self.new_end_point is None:
            return point
        if point >= self.old_end_point:
            if point.row == self.old_end_point.row:
                return Point(self.new_end_point.row, self.new_end_point.column
                             + point.column - self.old_end_point.column)
            return Point(point.row + self.new_end_point.row
                         - self.old_end_point.row, point.column)
        elif point > self.start_point:
            return self.new_end_point
        return point


class Tree(object):
    """
    A parse result: the root node, the source snapshot it was parsed from
    and its language.  Edits recorded with :py:meth:`edit` make a new Tree
    whose coordinates are mapped into the edited text.
    """

    def __init__(self, root, text, language, edits=()):
        self._root = root
        self._text = text
        self._language = language
        self._edits = tuple(edits)

    def __repr__(self):
        return "<Tree %s: %d bytes%s>" % (
            self._language.name, self._root.size,
            ", %d edits" % len(self._edits) if self._edits else "")

    @property
    def root(self):
        """The root Node."""
        return self._root

    @property
    def text(self):
        return self._text

    @property
    def language(self):
        return self._language

    @property
    def edits(self):
        return self._edits

    @property
    def has_error(self):
        return self._root.has_error

    @property
    def root_node(self):
        from cabinparse.cursor import SyntaxNode
        return SyntaxNode(self, self._root, 0, Point(0, 0), None, None)

    def edit(self, edit):
        """A new Tree with `edit` recorded; this tree is not changed."""
        if not isinstance(edit, Edit):
            raise InputError("Expected an Edit, not %r" % (edit,))
        return Tree(self._root, self._text, self._language,
                    self._edits + (edit,))

    def map_byte(self, pos):
        for edit in self._edits:
            pos = edit.map_byte(pos)
        return pos

    def map_point(self, point):
        for edit in self._edits:
            point = edit.map_point(point)
        return point

    def walk(self):
        return self.root_node.walk()

    def leaves(self):
        """Every physical leaf, extras and missing nodes included."""
        return self.root_node.leaves()

    def sexp(self):
        return self.root_node.sexp()

    def changed_ranges(self, other):
        """
        The byte ranges of `other` whose leaves differ from this tree's.
        Leaves are compared by type and size, from both ends.
        """
        old = [(leaf.symbol, leaf.is_missing, leaf.end_byte - leaf.start_byte)
               for leaf in self.leaves()]
        new_leaves = list(other.leaves())
        new = [(leaf.symbol, leaf.is_missing, leaf.end_byte - leaf.start_byte)
               for leaf in new_leaves]
        i = 0
        while i < len(old) and i < len(new) and old[i] == new[i]:
            i += 1
        if i == len(old) and i == len(new):
            return []
        j = 0
        while j < len(old) - i and j < len(new) - i \
                and old[-1 - j] == new[-1 - j]:
            j += 1
        if i < len(new_leaves):
            start = new_leaves[i].start_byte
        else:
            start = other.root.size
        if j > 0:
            end = new_leaves[-j].start_byte
        else:
            end = other.root.size
        return [(start, max(start, end))]

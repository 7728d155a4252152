"""
Read-only views over a Tree.

Nodes know nothing of their position or parent.  A SyntaxNode pairs a node
with its absolute start and the view it was reached from, so parents and
siblings come from the path taken, not from pointers stored in the tree.
Views are cheap and are made on demand; many can exist at once over any
number of tree versions.

The visible structure differs from the physical one.  Hidden
non-terminals, such as the helpers behind `X*` or `X%','`, are looked
through: their children appear as children of the nearest visible
ancestor and inherit the field name the hidden node was given.  Invisible
tokens (whitespace) are left out; Tree.leaves() still yields them.
"""


class SyntaxNode(object):
    __slots__ = ('_tree', '_node', '_start', '_point', '_parent',
                 '_field_name', '_index', '_children')

    def __init__(self, tree, node, start_byte, start_point, parent,
                 field_name, index=0):
        self._tree = tree
        self._node = node
        # Coordinates in the text the tree was parsed from.
        self._start = start_byte
        self._point = start_point
        self._parent = parent
        self._field_name = field_name
        self._index = index
        self._children = None

    def __repr__(self):
        return "<SyntaxNode %s [%d, %d)>" % (self.type, self.start_byte,
                                             self.end_byte)

    def __eq__(self, other):
        return isinstance(other, SyntaxNode) and self._tree is other._tree \
            and self._node is other._node and self._start == other._start

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((id(self._node), self._start))

    @property
    def node(self):
        """The underlying immutable Node."""
        return self._node

    @property
    def tree(self):
        return self._tree

    @property
    def symbol(self):
        return self._node.symbol

    @property
    def type(self):
        return self._tree.language.symbols[self._node.symbol].type

    @property
    def is_named(self):
        return self._tree.language.symbols[self._node.symbol].named

    @property
    def is_missing(self):
        return self._node.missing

    @property
    def is_error(self):
        return self._node.is_error

    @property
    def is_extra(self):
        return self._node.extra

    @property
    def has_error(self):
        return self._node.has_error

    @property
    def start_byte(self):
        return self._tree.map_byte(self._start)

    @property
    def end_byte(self):
        return self._tree.map_byte(self._start + self._node.size)

    @property
    def byte_range(self):
        return (self.start_byte, self.end_byte)

    @property
    def start_point(self):
        return self._tree.map_point(self._point)

    @property
    def end_point(self):
        return self._tree.map_point(self._node.length.advance(self._point))

    @property
    def text(self):
        """The node's bytes in the text the tree was parsed from."""
        return self._tree.text[self._start:self._start + self._node.size]

    @property
    def field_name(self):
        return self._field_name

    @property
    def parent(self):
        return self._parent

    def _physical(self, node, start, point, inherited):
        """
        (child, start, point, field, inherited field) for each physical
        child of `node`.
        """
        result = []
        fields = ()
        if node.production is not None:
            fields = self._tree.language.productions[node.production].fields
        k = 0
        for child in node.children:
            field = None
            if not child.extra:
                if k < len(fields):
                    field = fields[k]
                k += 1
            result.append((child, start, point, field, inherited))
            start += child.size
            point = child.length.advance(point)
        return result

    def _expand(self):
        language = self._tree.language
        result = []
        pending = self._physical(self._node, self._start, self._point, None)
        pending.reverse()
        while pending:
            child, start, point, field, inherited = pending.pop()
            info = language.symbols[child.symbol]
            if info.visible or child.is_error or child.missing:
                # Fields of hidden nodes only pass to named descendants.
                if field is None and info.named:
                    field = inherited
                result.append(SyntaxNode(self._tree, child, start, point,
                                         self, field, len(result)))
            elif not child.terminal:
                expanded = self._physical(child, start, point,
                                          field or inherited)
                expanded.reverse()
                pending.extend(expanded)
        return result

    @property
    def children(self):
        """The visible children, as a list of views."""
        if self._children is None:
            if self._node.terminal:
                self._children = []
            else:
                self._children = self._expand()
        return self._children

    @property
    def child_count(self):
        return len(self.children)

    @property
    def named_children(self):
        return [child for child in self.children if child.is_named]

    def child(self, i):
        children = self.children
        if -len(children) <= i < len(children):
            return children[i]
        return None

    def child_by_field_name(self, name):
        for child in self.children:
            if child._field_name == name:
                return child
        return None

    def children_by_field_name(self, name):
        return [child for child in self.children if child._field_name == name]

    @property
    def next_sibling(self):
        if self._parent is None:
            return None
        return self._parent.child(self._index + 1)

    @property
    def prev_sibling(self):
        if self._parent is None or self._index == 0:
            return None
        return self._parent.child(self._index - 1)

    def descendant_for_byte_range(self, start, end):
        """The smallest node under this one that spans [start, end)."""
        node = self
        while True:
            for child in node.children:
                if child.start_byte <= start and end <= child.end_byte \
                        and (child.end_byte > child.start_byte
                             or start == end):
                    node = child
                    break
            else:
                return node

    def walk(self):
        return TreeCursor(self)

    def leaves(self):
        """
        Every physical leaf under this node, in order: extras, whitespace
        and missing leaves included.  The views are detached; they have no
        parent.
        """
        stack = [(self._node, self._start, self._point)]
        while stack:
            node, start, point = stack.pop()
            if node.terminal:
                yield SyntaxNode(self._tree, node, start, point, None, None)
                continue
            children = []
            for child in node.children:
                children.append((child, start, point))
                start += child.size
                point = child.length.advance(point)
            children.reverse()
            stack.extend(children)

    def sexp(self):
        """
        An S-expression of the named nodes under this one, with field
        names, MISSING markers and anonymous missing tokens.
        """
        parts = []
        cursor = self.walk()
        visited_children = False
        while True:
            node = cursor.node
            if not visited_children:
                if node.is_named or node.is_missing:
                    if parts:
                        parts.append(' ')
                    if cursor.field_name:
                        parts.append('%s: ' % cursor.field_name)
                    if node.is_missing:
                        if node.is_named:
                            parts.append('(MISSING %s' % node.type)
                        else:
                            parts.append('(MISSING "%s"' % node.type)
                    else:
                        parts.append('(%s' % node.type)
                if cursor.goto_first_child():
                    continue
                if node.is_named or node.is_missing:
                    parts.append(')')
            else:
                if node.is_named or node.is_missing:
                    parts.append(')')
            if cursor.goto_next_sibling():
                visited_children = False
            elif cursor.goto_parent():
                visited_children = True
            else:
                break
        return ''.join(parts)


class TreeCursor(object):
    """
    A movable position in a tree.  The cursor never leaves the node it was
    created on (or last reset to).
    """

    def __init__(self, node):
        self.reset(node)

    def reset(self, node):
        self._root = node
        self._node = node
        self._depth = 0

    @property
    def node(self):
        return self._node

    @property
    def field_name(self):
        if self._depth == 0:
            return None
        return self._node.field_name

    @property
    def depth(self):
        return self._depth

    def goto_first_child(self):
        child = self._node.child(0)
        if child is None:
            return False
        self._node = child
        self._depth += 1
        return True

    def goto_next_sibling(self):
        if self._depth == 0:
            return False
        sibling = self._node.next_sibling
        if sibling is None:
            return False
        self._node = sibling
        return True

    def goto_parent(self):
        if self._depth == 0:
            return False
        self._node = self._node.parent
        self._depth -= 1
        return True

    def goto_first_child_for_byte(self, byte):
        """
        Move to the first child that ends after `byte`.  Returns its index,
        or None if there is no such child.
        """
        for i, child in enumerate(self._node.children):
            if child.end_byte > byte:
                self._node = child
                self._depth += 1
                return i
        return None

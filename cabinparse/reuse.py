"""
Reuse of an old tree during an incremental reparse.

The parser asks for reusable material at increasing positions of the new
text.  ReusableNodes maps each position back into the old text through the
recorded edits and walks the old tree forward to it, never backwards, so a
whole reparse visits each old node at most a few times.

A node is damaged if an edit touches the bytes that lexing its tokens
depended on: its range widened by its lookbehind and lookahead.
"""
import logging

logger = logging.getLogger(__name__)


class _Frame(object):
    __slots__ = ('node', 'start', 'index', 'child_start')

    def __init__(self, node, start):
        self.node = node
        self.start = start
        # The child the walk last descended into, and where it starts.
        self.index = 0
        self.child_start = start


class ReusableNodes(object):
    def __init__(self, tree):
        self._edits = tree.edits
        self._stack = [_Frame(tree.root, 0)]
        self._last = -1
        self.reused_leaves = 0
        self.reused_subtrees = 0

    def old_position(self, pos):
        """
        The old offset of new offset `pos`, or None if `pos` lies in text
        an edit inserted.
        """
        for edit in reversed(self._edits):
            pos = edit.unmap_byte(pos)
            if pos is None:
                return None
        return pos

    def is_damaged(self, start, node):
        """
        True if any edit touches old bytes [start - lookbehind,
        end + lookahead).  Edits are applied in order, so the range is
        carried forward through each edit before testing the next one.
        """
        lo = start - node.lookbehind
        hi = start + node.size + node.lookahead
        for edit in self._edits:
            old_end = max(edit.old_end_byte, edit.start_byte + 1)
            if edit.start_byte < hi and old_end > lo:
                return True
            lo = edit.map_byte(lo)
            hi = edit.map_byte(hi)
        return False

    def _seek(self, pos):
        """
        Walk to the leaf that starts at old offset `pos`.  Returns the frame
        stack depth of that leaf, or None.
        """
        stack = self._stack
        while len(stack) > 1:
            top = stack[-1]
            if top.start + top.node.size > pos:
                break
            stack.pop()
        while True:
            frame = stack[-1]
            node = frame.node
            if node.terminal or not node.children:
                break
            children = node.children
            while frame.index < len(children) and \
                    frame.child_start + children[frame.index].size <= pos:
                frame.child_start += children[frame.index].size
                frame.index += 1
            if frame.index == len(children) or frame.child_start > pos:
                return None
            stack.append(_Frame(children[frame.index], frame.child_start))
        frame = stack[-1]
        if not frame.node.terminal or frame.start != pos:
            return None
        return len(stack) - 1

    def lookup(self, pos, lex_state):
        """
        The old leaf to reuse as the token at new offset `pos` in lex
        context `lex_state`, and the chain of its ancestors that start with
        it, innermost first.  Each chain entry is (node, start, empties),
        where `empties` counts the empty nodes in front of the leaf inside
        the node.  Returns (None, ()) if nothing is reusable.
        """
        old_pos = self.old_position(pos)
        if old_pos is None or old_pos < self._last:
            return None, ()
        self._last = old_pos
        depth = self._seek(old_pos)
        if depth is None:
            return None, ()
        frame = self._stack[depth]
        leaf = frame.node
        if leaf.missing or leaf.is_error or leaf.extra or leaf.size == 0 \
                or leaf.lex_state != lex_state \
                or self.is_damaged(frame.start, leaf):
            return None, ()

        # Ancestors that begin with this leaf: everything in front of it in
        # each is empty.  The root is never reused whole.
        chain = []
        empties = 0
        k = depth
        while k > 1:
            parent = self._stack[k - 1]
            if parent.child_start != parent.start:
                break
            empties += parent.index
            chain.append((parent.node, parent.start, empties))
            k -= 1
        self.reused_leaves += 1
        return leaf, tuple(chain)

    def largest_reusable(self, chain, accept):
        """
        The largest entry of `chain` whose node is undamaged, unambiguous,
        error-free, non-empty and not an extra, and for which
        `accept(node, empties)` holds; None if there is none.
        """
        for node, start, empties in reversed(chain):
            if node.fragile or node.error_cost or node.size == 0 \
                    or node.extra or node.is_error:
                continue
            if self.is_damaged(start, node):
                continue
            if not accept(node, empties):
                continue
            self.reused_subtrees += 1
            return node, start, empties
        return None

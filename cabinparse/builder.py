"""
Tree construction.

The builder makes every node the parser produces: leaves from tokens,
missing leaves and ERROR nodes for recovery, non-terminals on reduce, and
the root on accept.  It never copies source text; leaves only measure it.
"""
import logging

from cabinparse.tree import Node, Length, ZERO

logger = logging.getLogger(__name__)


def _measure(children):
    """
    Returns (length, lookahead, lookbehind, error_cost, fragile) for a
    sequence of adjacent children.
    """
    length = ZERO
    offset = 0
    lookbehind = 0
    extent = 0
    cost = 0
    fragile = False
    for child in children:
        if child.lookbehind - offset > lookbehind:
            lookbehind = child.lookbehind - offset
        end = offset + child.length.bytes + child.lookahead
        if end > extent:
            extent = end
        offset += child.length.bytes
        length = length + child.length
        cost += child.error_cost
        fragile = fragile or child.fragile
    return length, max(extent - offset, 0), lookbehind, cost, fragile


class Builder(object):
    def __init__(self, language, text):
        self._language = language
        self._text = text

    def leaf(self, token, parse_state=None, fragile=False, extra=False):
        """A leaf for `token`.  Lexical error tokens become error leaves."""
        is_error = token.symbol == self._language.error_symbol
        return Node(token.symbol,
                    length=Length.of(self._text, token.start, token.end),
                    lookahead=token.lookahead,
                    lookbehind=token.lookbehind,
                    error_cost=1 if is_error else 0,
                    extra=extra,
                    fragile=fragile,
                    is_error=is_error,
                    terminal=True,
                    parse_state=parse_state,
                    lex_state=token.lex_state)

    def relabel(self, leaf, parse_state, fragile=False):
        """A reused leaf shifted in a different state or on several stacks."""
        return Node(leaf.symbol, length=leaf.length,
                    lookahead=leaf.lookahead, lookbehind=leaf.lookbehind,
                    error_cost=leaf.error_cost, extra=leaf.extra,
                    missing=leaf.missing, fragile=fragile,
                    is_error=leaf.is_error, terminal=True,
                    parse_state=parse_state, lex_state=leaf.lex_state)

    def missing(self, symbol, parse_state, lex_state=frozenset()):
        """A zero-width leaf for a token recovery decided was left out."""
        return Node(symbol, error_cost=1, missing=True, fragile=True,
                    terminal=True, parse_state=parse_state,
                    lex_state=lex_state)

    def error(self, children, extra=True):
        """
        An ERROR node around `children`.  ERROR nodes made during recovery
        ride along as extras of the node that ends up enclosing them.
        """
        children = tuple(children)
        length, lookahead, lookbehind, cost, _ = _measure(children)
        if children:
            lex_state = children[0].lex_state
            trailing = children[-1].trailing
        else:
            lex_state = trailing = frozenset()
        return Node(self._language.error_symbol, None, children, length,
                    lookahead, lookbehind, cost + 1, extra=extra,
                    fragile=True, is_error=True, lex_state=lex_state,
                    trailing=trailing)

    def reduce(self, production, segments, fragile=False,
               lex_state=frozenset(), lookahead=0, parse_state=None):
        """
        Build the node for `production` from the stack `segments`, a list
        of (extras, value) pairs.  The extras in front of the first value
        are not part of the new node; the caller keeps them outside.
        `lookahead` is how far past the node the token that triggered the
        reduction was examined, and `parse_state` the state the node is
        pushed from.
        """
        info = self._language.productions[production]
        assert len(segments) == info.length
        children = []
        for i, (extras, value) in enumerate(segments):
            if i > 0:
                children.extend(extras)
            children.append(value)
        children = tuple(children)
        length, child_lookahead, lookbehind, cost, child_fragile = \
            _measure(children)
        lookahead = max(lookahead, child_lookahead)
        if children:
            lex_state = children[0].lex_state
            trailing = children[-1].trailing
        else:
            trailing = lex_state
        return Node(info.lhs, production, children, length, lookahead,
                    lookbehind, cost, fragile=fragile or child_fragile,
                    parse_state=parse_state, lex_state=lex_state,
                    trailing=trailing)

    def root(self, leading, start, trailing):
        """
        The root: the start node with the input's leading and trailing
        extras spliced into its children.
        """
        if not leading and not trailing:
            return start
        children = tuple(leading) + start.children + tuple(trailing)
        length, lookahead, lookbehind, cost, fragile = _measure(children)
        if start.is_error:
            cost += 1
        return Node(start.symbol, start.production, children, length,
                    lookahead, lookbehind, cost, fragile=fragile,
                    is_error=start.is_error, lex_state=children[0].lex_state,
                    trailing=children[-1].trailing)

    def error_root(self, children):
        """The fallback root: one ERROR node covering the whole input."""
        return self.error(children, extra=False)

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
The GLR parse engine.

A Parser drives a Language's tables over the tokens of one source text and
returns a :py:class:`cabinparse.tree.Tree`.  It never fails on bad input:
lexical and syntax errors end up as ERROR and MISSING nodes (see
:py:mod:`cabinparse.recovery`).  Given the previous tree of an edited text,
it reuses every old subtree the edit could not have affected.

A Parser holds the mutable state of one parse at a time; use one parser
per thread.
"""
import logging
import time

from cabinparse.errors import InputError, LanguageError, ParseCancelled
from cabinparse.language import Shift, Reduce, Accept, EXTRA
from cabinparse.lexer import Lexer
from cabinparse.builder import Builder
from cabinparse.stack import Gss, Gssn
from cabinparse.recovery import ErrorRecovery
from cabinparse.reuse import ReusableNodes
from cabinparse.tree import Tree

logger = logging.getLogger(__name__)

TIE_BREAKS = ("precedence", "declaration")


class Lookahead(object):
    """
    The next input item: a freshly lexed token, a leaf reused from the old
    tree, or a token recovery decided is missing.  `extras` are the extra
    nodes that come before it.
    """
    __slots__ = ('symbol', 'token', 'node', 'start', 'end', 'extras',
                 'chain', 'missing')

    def __init__(self, symbol, token, node, start, end, extras=(), chain=(),
                 missing=False):
        self.symbol = symbol
        self.token = token
        self.node = node
        self.start = start
        self.end = end
        self.extras = extras
        self.chain = chain
        self.missing = missing

    def __repr__(self):
        return "Lookahead(%d, [%d, %d)%s)" % (
            self.symbol, self.start, self.end,
            ", missing" if self.missing else "")


def coerce_source(source):
    """The source as bytes; text is encoded as strict UTF-8."""
    if isinstance(source, str):
        try:
            return source.encode('utf-8')
        except UnicodeEncodeError as e:
            raise InputError("Source text is not encodable as UTF-8: %s" % e)
    if isinstance(source, bytes):
        return source
    if isinstance(source, (bytearray, memoryview)):
        return bytes(source)
    raise InputError("Expected str or bytes source, not %s"
                     % type(source).__name__)


class Parser(object):
    """
GLR parser.  The Parser uses a Language in order to parse source text
passed to parse(), optionally reusing the tree of a previous version of
the text.
"""

    def __init__(self, language, max_versions=6, tie_break="precedence",
                 timeout=None, cancellation=None, verbose=False):
        """
language : The compiled Language to parse with.

max_versions : The most stack versions kept alive at once.  Extra
               versions are pruned by error cost, then by age.

tie_break : How competing interpretations of the same input are chosen
            between once error costs are equal.  "precedence" prefers the
            production whose precedence dominates; "declaration" skips
            straight to declaration order.

timeout : Seconds a single parse may take before it is cancelled.

cancellation : An object with an is_set() method, such as a
               threading.Event; setting it cancels the running parse.

verbose : If true, log a trace of every parse step at DEBUG level.
"""
        if tie_break not in TIE_BREAKS:
            raise ValueError("tie_break must be one of %r" % (TIE_BREAKS,))
        if max_versions < 1:
            raise ValueError("max_versions must be at least 1")
        self._language = language
        self._maxVersions = max_versions
        self._tieBreak = tie_break
        self._timeout = timeout
        self._cancellation = cancellation
        self._verbose = verbose
        self._reuseStats = (0, 0)
        self._reset(None)

    @property
    def language(self):
        return self._language

    @property
    def verbose(self):
        return self._verbose

    @verbose.setter
    def verbose(self, verbose):
        assert type(verbose) == bool
        self._verbose = verbose

    @property
    def reuse_stats(self):
        """(leaves, subtrees) reused by the last incremental parse."""
        return self._reuseStats

    def _reset(self, text, old_tree=None):
        self._text = text
        self._gss = None
        self._dead = []
        self._buffered = []
        self._skipped = []
        self._pos = 0
        self._versions = 1
        self._reach = 0
        self._repairing = False
        self._deadline = None
        if text is None:
            self._lexer = None
            self._builder = None
            self._reuse = None
            self._recovery = None
            return
        self._lexer = Lexer(self._language, text)
        self._builder = Builder(self._language, text)
        self._reuse = ReusableNodes(old_tree) if old_tree is not None \
            else None
        self._recovery = ErrorRecovery(self)
        if self._timeout is not None:
            self._deadline = time.monotonic() + self._timeout
        self._gss = Gss()
        self._gss.append(Gssn(None, None, self._language.start_state, 0))

    def parse(self, source, old_tree=None):
        """
        Parse `source` (str or bytes) and return a Tree.  If `old_tree` is
        given, it must be the tree of the previous version of the text with
        every edit since recorded through Tree.edit().
        """
        text = coerce_source(source)
        if old_tree is not None:
            self._checkOldTree(old_tree, text)
        self._reset(text, old_tree)
        try:
            root = self._run()
            if self._reuse is not None:
                self._reuseStats = (self._reuse.reused_leaves,
                                    self._reuse.reused_subtrees)
                logger.debug("Reused %d leaves and %d subtrees",
                             *self._reuseStats)
            else:
                self._reuseStats = (0, 0)
        finally:
            self._reset(None)
        assert root.size == len(text)
        return Tree(root, text, self._language)

    def reparse(self, tree, edit, source):
        """Record `edit` on `tree` and parse the edited `source`."""
        return self.parse(source, tree.edit(edit))

    def _checkOldTree(self, old_tree, text):
        language = old_tree.language
        if language is not self._language \
                and language.fingerprint != self._language.fingerprint:
            raise LanguageError("Old tree was parsed with language %s, not %s"
                                % (language.name, self._language.name))
        expected = old_tree.root.size
        for edit in old_tree.edits:
            expected += edit.delta
        if expected != len(text):
            raise InputError("Edited text is %d bytes; the recorded edits "
                             "predict %d" % (len(text), expected))

    def _checkCancel(self):
        if self._cancellation is not None and self._cancellation.is_set():
            raise ParseCancelled("Parse cancelled at byte %d" % self._pos,
                                 self._pos)
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise ParseCancelled("Parse timed out at byte %d" % self._pos,
                                 self._pos)

    def _run(self):
        while True:
            self._checkCancel()
            if self._buffered:
                la = self._buffered.pop(0)
            else:
                la = self._lexAt(self._pos, self._states())
            if self._verbose:
                logger.debug("%s", "-" * 78)
                logger.debug("INPUT: %r", la)
            root = self._step(la)
            if root is not None:
                return root

    def _states(self):
        return [top.nextState for top in self._gss]

    def _lexAt(self, pos, states):
        """The next lookahead at `pos`, with the extras in front of it."""
        language = self._language
        extras = []
        while True:
            context = language.lex_context(states)
            if self._reuse is not None:
                leaf, chain = self._reuse.lookup(pos, context)
                if leaf is not None:
                    return Lookahead(leaf.symbol, None, leaf, pos,
                                     pos + leaf.size, tuple(extras), chain)
            valid = language.valid_symbols(states) if context else None
            token = self._lexer.lex(pos, context, valid)
            if language.symbols[token.symbol].kind == EXTRA:
                extras.append(self._builder.leaf(token, extra=True))
                pos = token.end
                continue
            return Lookahead(token.symbol, token, None, token.start,
                             token.end, tuple(extras))

    def _missingLookahead(self, sym):
        """A zero-width lookahead for `sym`, placed after the last token."""
        return Lookahead(sym, None, None, self._pos, self._pos, missing=True)

    def _step(self, la):
        self._dead = []
        # Stack versions alive before this token; reduce-only tops left
        # over from the last reductions are not counted.
        self._versions = len(self._gss)
        self._reach = self._extent(la)
        # Reductions made while recovery is under way depend on its choices,
        # which a reparse does not replay.
        self._repairing = bool(self._skipped) or \
            any(extra.error_cost for extra in la.extras)
        self._reductions(la.symbol)
        if la.chain and self._reuseSubtree(la):
            return None
        root = self._shifts(la)
        if root is not None:
            return root
        if len(self._gss) == 0:
            return self._recovery.recover(la)
        self._pos = la.end
        self._prune()
        if self._verbose:
            self._printStack()
        return None

    def _extent(self, la):
        """
        How far lexing `la` looked.  A reduction on `la` depends on these
        bytes, so the reduced node is damaged by edits to them.
        """
        if la.token is not None:
            return la.end + la.token.lookahead
        if la.node is not None:
            return la.end + la.node.lookahead
        return la.end

    def _reuseSubtree(self, la):
        """
        Shift the largest reusable old node that begins with the reused
        leaf `la`, if the stack is where it was when the old parse shifted
        that leaf.
        """
        if self._skipped:
            return False
        # Tops that can only reduce are left over from the reductions and
        # die at the shift; only the ones that shift are versions.
        shifting = [top for top in self._gss
                    if any(type(action) == Shift for action in
                           self._language.actions_for(top.nextState,
                                                      la.symbol))]
        if len(shifting) != 1:
            return False
        top = shifting[0]
        if la.node.parse_state != top.nextState:
            return False
        gotos = self._language.gotos

        def accept(node, empties):
            below = self._below(top, empties)
            return below is not None \
                and below.nextState == node.parse_state \
                and node.symbol in gotos[below.nextState]

        found = self._reuse.largest_reusable(la.chain, accept)
        if found is None:
            return False
        node, start, empties = found
        below = self._below(top, empties)
        end = la.start + node.size
        newTop = Gssn(below, node, gotos[below.nextState][node.symbol], end,
                      la.extras)
        self._gss = Gss()
        self._gss.append(newTop)
        self._pos = end
        if self._verbose:
            logger.debug("   --> reuse %r [%d, %d)", node, la.start, end)
        return True

    def _below(self, top, count):
        """
        The stack node `count` empty entries under `top`, or None if the
        stack forks or holds anything else there.
        """
        for i in range(count):
            edges = list(top.edges())
            if len(edges) != 1 or edges[0].value.size != 0 \
                    or edges[0].extras:
                return None
            top = edges[0].node
        return top

    def _takeSkipped(self):
        skipped = self._skipped
        self._skipped = []
        return skipped

    def _reductions(self, sym):
        # epsilons is a dictionary that maps production-->[tops].  The purpose
        # is to avoid repeating the same epsilon production on a particular
        # stack top.  Ordinary productions do not require this care because we
        # can notice when a path has already been used for a production.
        epsilons = {}
        productions = self._language.productions

        # Enqueue work.
        workQ = []
        i = 0
        while i < len(self._gss):
            top = self._gss[i]
            actions = self._language.actions_for(top.nextState, sym)
            if not actions:
                # Unexpected token for this stack.
                self._dead.append(top)
                self._gss.pop(i)
                continue
            ambiguous = len(actions) > 1
            for action in actions:
                if type(action) != Reduce:
                    continue
                production = action.production
                if productions[production].length == 0:
                    if production not in epsilons:
                        epsilons[production] = [top]
                        workQ.append(([top], production, ambiguous))
                    elif top not in epsilons[production]:
                        epsilons[production].append(top)
                        workQ.append(([top], production, ambiguous))
                else:
                    # Iterate over all reduction paths through stack and
                    # enqueue them.
                    for path in top.paths(productions[production].length):
                        workQ.append((path, production, ambiguous))
            i += 1

        # Process the work queue.
        while len(workQ) > 0:
            (path, production, ambiguous) = workQ.pop(0)
            if self._verbose:
                logger.debug("   --> reduce %d %r", production, path)
            self._reduce(workQ, epsilons, path, production, sym, ambiguous)

    def _reduce(self, workQ, epsilons, path, production, sym, ambiguous):
        edges = path[1::2]
        assert len(edges) == self._language.productions[production].length

        fragile = ambiguous or self._versions > 1 or self._repairing
        if not fragile:
            for node in path[2::2]:
                if len(node._edges) > 1:
                    fragile = True
                    break
        below = path[0]
        segments = [(edge.extras, edge.value) for edge in edges]
        outer = ()
        if segments:
            outer = segments[0][0]
            # Extras behind leading empty children go in front of the node.
            i = 0
            while i + 1 < len(segments) and segments[i][1].size == 0:
                i += 1
                outer += segments[i][0]
                segments[i] = ((), segments[i][1])
        r = self._builder.reduce(
            production, segments, fragile,
            lookahead=self._reach - path[-1].position,
            parse_state=below.nextState)

        lhs = self._language.productions[production].lhs
        nextState = self._language.goto(below.nextState, lhs)
        done = False
        for top in self._gss:
            if top.nextState == nextState:
                # top is compatible with the reduction result we want to add to
                # the set of stack tops.
                for edge in top.edges():
                    if edge.node is below:
                        # There is already a below<--top link, so merge
                        # competing interpretations.
                        value = self.select(edge.value, r)
                        if self._verbose:
                            logger.debug("   --> merge %r <--> %r: kept %r",
                                         edge.value, r, value)
                        edge.value = value
                        done = True
                        break
                if not done:
                    # Create a new below<--top link.
                    edge = top.addEdge(below, r, outer)
                    if self._verbose:
                        logger.debug("   --> shift(b) %r", top)

                    # Enqueue reduction paths that were created as a result of
                    # the new link.
                    self._enqueueLimitedReductions(workQ, epsilons, edge, sym)
                    done = True
                break
        if not done:
            # There is no compatible stack top, so create a new one.
            top = Gssn(below, r, nextState, path[-1].position, outer)
            self._gss.append(top)
            if self._verbose:
                logger.debug("   --> shift(c) %r", nextState)
            self._enqueueLimitedReductions(workQ, epsilons, top.edge, sym)

    # Enqueue paths that incorporate edge.
    def _enqueueLimitedReductions(self, workQ, epsilons, edge, sym):
        productions = self._language.productions
        for top in self._gss:
            actions = self._language.actions_for(top.nextState, sym)
            ambiguous = len(actions) > 1
            for action in actions:
                if type(action) != Reduce:
                    continue
                production = action.production
                info = productions[production]
                if info.length == 0:
                    if self._language.goto(top.nextState, info.lhs) \
                            == top.nextState:
                        # Do nothing, since enqueueing a reduction
                        # would result in performing the same reduction
                        # twice.
                        pass
                    elif production not in epsilons:
                        epsilons[production] = [top]
                        workQ.append(([top], production, ambiguous))
                    elif top not in epsilons[production]:
                        epsilons[production].append(top)
                        workQ.append(([top], production, ambiguous))
                else:
                    # Iterate over all reduction paths through stack and
                    # enqueue them if they incorporate edge.
                    for path in top.paths(info.length):
                        if edge in path[1::2]:
                            workQ.append((path, production, ambiguous))

    def _shifts(self, la):
        """
        Shift `la` onto every top that can.  Returns the root if `la` is
        end of input and some top accepts.
        """
        prevGss = self._gss
        self._gss = Gss()

        shifts = []
        accepting = []
        for topA in prevGss:
            alive = False
            for action in self._language.actions_for(topA.nextState,
                                                     la.symbol):
                if type(action) == Shift:
                    shifts.append((topA, action.state))
                    alive = True
                elif type(action) == Accept:
                    accepting.append(topA)
                    alive = True
            if not alive:
                self._dead.append(topA)
        if not shifts and not accepting:
            return None

        extras = la.extras
        if self._skipped:
            extras = (self._builder.error(self._takeSkipped()),) + extras

        if accepting:
            return self._accept(accepting, extras)

        leaf = self._leafFor(la, shifts[0][0].nextState, len(shifts) > 1)
        for topA, nextState in shifts:
            merged = False
            for topB in self._gss:
                if topB.nextState == nextState:
                    topB.addEdge(topA, leaf, extras)
                    merged = True
                    break
            if not merged:
                top = Gssn(topA, leaf, nextState, la.end, extras)
                self._gss.append(top)
                if self._verbose:
                    logger.debug("   --> shift(a) %d", nextState)
        return None

    def _leafFor(self, la, state, fragile):
        if la.missing:
            context = self._language.lex_context((state,))
            return self._builder.missing(la.symbol, state, context)
        if la.node is None:
            return self._builder.leaf(la.token, state, fragile)
        node = la.node
        if node.parse_state == state and not fragile:
            return node
        return self._builder.relabel(node, state, fragile)

    def _accept(self, accepting, extras):
        best = None
        for top in accepting:
            for edge in top.edges():
                root = self._builder.root(edge.extras, edge.value, extras)
                if best is None or root.error_cost < best.error_cost:
                    best = root
        if self._verbose:
            logger.debug("   --> accept %r", best)
        return best

    def select(self, old, new):
        """
        Choose between two interpretations of the same input.  The lower
        error cost wins; then, with the "precedence" tie break, the
        production with the dominating precedence; then the production
        declared first, comparing children left to right.  If nothing
        decides, the older interpretation stays.
        """
        if old.error_cost != new.error_cost:
            return old if old.error_cost < new.error_cost else new
        if old.production is None or new.production is None:
            return old
        productions = self._language.productions
        if self._tieBreak == "precedence":
            precOld = productions[old.production].prec
            precNew = productions[new.production].prec
            if self._language.precedence_dominates(precOld, precNew):
                return old
            if self._language.precedence_dominates(precNew, precOld):
                return new
        if old.production != new.production:
            return old if old.production < new.production else new
        for a, b in zip(old.children, new.children):
            pa = a.production if a.production is not None else -1
            pb = b.production if b.production is not None else -1
            if pa != pb:
                return old if pa < pb else new
        return old

    def _prune(self):
        if len(self._gss) <= self._maxVersions:
            return
        ranked = sorted(self._gss, key=lambda top: (top.errorCost, top.seq))
        keep = set(ranked[:self._maxVersions])
        logger.debug("Pruning %d of %d stack versions at byte %d",
                     len(self._gss) - len(keep), len(self._gss), self._pos)
        gss = Gss()
        for top in self._gss:
            if top in keep:
                gss.append(top)
        self._gss = gss

    def _printStack(self):
        for i, top in enumerate(self._gss):
            logger.debug("STK %d: %r cost=%d pos=%d", i, top.firstPath(),
                         top.errorCost, top.position)

"""
Error recovery.

When no stack version can take the lookahead, the parser hands control to
ErrorRecovery.  Recovery works on the best dead version (lowest error
cost, then first) and tries, in order:

  skip     the lookahead is unexpected but the token after it fits; the
           lookahead is wrapped in an ERROR node that rides along as an
           extra of the next token.
  missing  some terminal, inserted as a zero-width MISSING leaf, lets the
           lookahead proceed.  At end of input this may be the first of
           a short run of missing tokens.
  pop      the stack is popped down to the nearest state that can take
           the lookahead; everything popped, plus any input skipped so
           far, goes into one ERROR node.
  consume  nothing fits yet; the lookahead joins the skipped input.

Skip and missing are local repairs, tried at most MAX_LOCAL_REPAIRS times
per input position.  At end of input, when nothing else applies, the whole
input becomes one ERROR root.  Recovery never raises.
"""
import logging

from cabinparse.language import Shift, Reduce, Accept
from cabinparse.stack import Gss

logger = logging.getLogger(__name__)

MAX_LOCAL_REPAIRS = 3

# Bound on the simulated parse steps when checking a repair.
MAX_SIMULATED_STEPS = 256


class ErrorRecovery(object):
    """Recovery for one parse; works on the parser's stack directly."""

    def __init__(self, parser):
        self._parser = parser
        self._language = parser.language
        self._repairs = {}

    def simulate(self, states, sym):
        """
        Run the tables on a plain stack of states until `sym` is shifted
        or accepted.  Returns the resulting stack, or None if `sym` cannot
        be taken.  Every alternative action is explored, first action
        first.
        """
        language = self._language
        work = [list(states)]
        steps = 0
        while work and steps < MAX_SIMULATED_STEPS:
            stack = work.pop()
            steps += 1
            pending = []
            for action in language.actions_for(stack[-1], sym):
                if type(action) == Shift:
                    return stack + [action.state]
                elif type(action) == Accept:
                    return stack
                assert type(action) == Reduce
                info = language.productions[action.production]
                reduced = stack[:len(stack) - info.length]
                gotos = language.gotos[reduced[-1]]
                if info.lhs in gotos:
                    pending.append(reduced + [gotos[info.lhs]])
            work.extend(reversed(pending))
        return None

    def _bestCandidate(self, dead):
        best = None
        for top in dead:
            if best is None or top.errorCost < best.errorCost:
                best = top
        return best

    def _leaf(self, la):
        p = self._parser
        if la.node is not None:
            return la.node
        return p._builder.leaf(la.token)

    def recover(self, la):
        """
        Recover from `la` being unacceptable to every stack version.
        Returns the root if the parse is over, None to continue.
        """
        p = self._parser
        top = self._bestCandidate(p._dead)
        p._dead = []
        assert top is not None
        path = top.firstPath()
        states = [node.nextState for node in path[0::2]]

        repairs = self._repairs.get(la.start, 0)
        if repairs < MAX_LOCAL_REPAIRS:
            self._repairs[la.start] = repairs + 1
            if la.symbol != self._language.eoi and self._skip(top, states, la):
                return None
            if self._insertMissing(top, states, la,
                                   MAX_LOCAL_REPAIRS - repairs):
                return None
        if self._pop(path, states, la):
            return None
        if la.symbol == self._language.eoi:
            return self._fallback(path, la)
        self._consume(top, la)
        return None

    def _skip(self, top, states, la):
        p = self._parser
        following = p._lexAt(la.end, [top.nextState])
        if self.simulate(states, following.symbol) is None:
            return False
        leaf = self._leaf(la)
        if p._skipped:
            error = p._builder.error(p._takeSkipped() + list(la.extras)
                                     + [leaf])
            extras = (error,)
        elif leaf.is_error:
            # A lexical error leaf is its own ERROR node.
            extras = la.extras + (leaf.as_extra(),)
        else:
            extras = la.extras + (p._builder.error([leaf]),)
        following.extras = extras + following.extras
        following.chain = ()
        p._gss = Gss()
        p._gss.append(top)
        p._pos = la.end
        p._buffered.insert(0, following)
        logger.debug("Recovery: skipped [%d, %d)", la.start, la.end)
        return True

    def _candidates(self, states, la, depth):
        found = False
        for sym in self._language.terminals():
            after = self.simulate(states, sym)
            if after is not None and \
                    self.simulate(after, la.symbol) is not None:
                found = True
                yield sym
        if not found and la.symbol == self._language.eoi:
            # Nothing else can follow; start the shortest run of missing
            # tokens that completes the input.  Each recovery inserts one.
            sym = self._missingRun(states, la, depth)
            if sym is not None:
                yield sym

    def _missingRun(self, states, la, depth):
        """
        The first terminal of the shortest run of at most `depth` terminals
        after which `la` can be taken, or None.  Runs are tried breadth
        first, terminals in symbol order.
        """
        terminals = self._language.terminals()
        level = [(states, None)]
        seen = set([tuple(states)])
        for _ in range(depth):
            following = []
            for stack, first in level:
                for sym in terminals:
                    after = self.simulate(stack, sym)
                    if after is None:
                        continue
                    lead = sym if first is None else first
                    if self.simulate(after, la.symbol) is not None:
                        return lead
                    if tuple(after) not in seen:
                        seen.add(tuple(after))
                        following.append((after, lead))
            level = following
        return None

    def _insertMissing(self, top, states, la, depth):
        p = self._parser
        for sym in self._candidates(states, la, depth):
            missing = p._missingLookahead(sym)
            p._gss = Gss()
            p._gss.append(top)
            p._dead = []
            p._repairing = True
            p._reductions(sym)
            p._shifts(missing)
            if len(p._gss) == 0:
                continue
            p._buffered.insert(0, la)
            logger.debug("Recovery: inserted missing %s at %d",
                         self._language.symbols[sym].name, p._pos)
            return True
        p._gss = Gss()
        p._dead = []
        return False

    def _pop(self, path, states, la):
        p = self._parser
        nodes = path[0::2]
        edges = path[1::2]
        for k in range(len(nodes) - 2, -1, -1):
            if self.simulate(states[:k + 1], la.symbol) is None:
                continue
            popped = edges[k:]
            content = [popped[0].value]
            for edge in popped[1:]:
                content.extend(edge.extras)
                content.append(edge.value)
            content.extend(p._takeSkipped())
            error = p._builder.error(content)
            la.extras = popped[0].extras + (error,) + la.extras
            la.chain = ()
            p._gss = Gss()
            p._gss.append(nodes[k])
            p._buffered.insert(0, la)
            logger.debug("Recovery: popped %d nodes before %d",
                         len(popped), la.start)
            return True
        return False

    def _consume(self, top, la):
        p = self._parser
        p._skipped.extend(la.extras)
        p._skipped.append(self._leaf(la))
        p._gss = Gss()
        p._gss.append(top)
        p._pos = la.end
        logger.debug("Recovery: consumed [%d, %d)", la.start, la.end)

    def _fallback(self, path, la):
        p = self._parser
        content = []
        for edge in path[1::2]:
            content.extend(edge.extras)
            content.append(edge.value)
        content.extend(p._takeSkipped())
        content.extend(la.extras)
        logger.debug("Recovery: no repair at end of input")
        return p._builder.error_root(content)

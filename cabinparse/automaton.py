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
LR(1) parsing table generation.

The tables are LR(1), but states whose item sets are weakly compatible in
the sense of

    A Practical General Method for Constructing LR(k) Parsers
    David Pager
    Acta Informatica 7, 249-268 (1977)

are merged as they are built.  The table stays close to LALR(1) size
and keeps the full power of LR(1).

A Spec is built from a grammar adapter (see
:py:mod:`cabinparse.declarative`) that supplies precedences, tokens,
non-terminals and rules.  The finished tables are compiled into an
immutable :py:class:`cabinparse.language.Language` for the parse engine.

Conflicts that precedence cannot resolve are handled according to the
`conflicts` policy:

  "split" : keep every action; the GLR engine forks at parse time and
            picks among surviving interpretations.
  "error" : raise SpecError, as a strict LR(1) generator would.
"""
import itertools
import logging

from cabinparse.errors import SpecError
from cabinparse.grammar import Precedence, Production, TokenSpec, \
    NontermSpec, Item, epsilon, eoi, seq_key

logger = logging.getLogger(__name__)


def _count(n, noun):
    return "%d %s%s" % (n, noun, "" if n == 1 else "s")


class ItemSet(dict):
    """
    A state under construction.  The dict holds the kernel, each item
    mapped to itself; `closed` holds the items the closure adds.  Item sets
    compare and hash by the cores of their kernel items, so lookaheads do
    not take part.
    """

    def __init__(self, firstCache):
        dict.__init__(self)
        self.closed = {}
        self._firstCache = firstCache

    def __hash__(self):
        return sum(item.hash for item in self)

    def __eq__(self, other):
        return len(self) == len(other) and all(item in other for item in self)

    def __ne__(self, other):
        return not self == other

    def allItems(self):
        return list(self) + list(self.closed)

    def add(self, item):
        """Merge a kernel item."""
        if item in self:
            self[item].lookahead.update(item.lookahead)
        else:
            copy = Item(item.production, item.dotPos, list(item.lookahead))
            self[copy] = copy

    def _addClosed(self, item):
        known = self.closed.get(item)
        if known is None:
            self.closed[item] = item
            return True
        before = len(known.lookahead)
        known.lookahead.update(item.lookahead)
        return len(known.lookahead) != before

    def _first(self, syms):
        """FIRST of the symbol string `syms`, memoized per grammar."""
        key = tuple(syms)
        first = self._firstCache.get(key)
        if first is not None:
            return first
        first = []
        for sym in syms:
            for elm in sym.firstSet:
                if elm is not epsilon and elm not in first:
                    first.append(elm)
            if epsilon not in sym.firstSet:
                break
        else:
            first.append(epsilon)
        self._firstCache[key] = first
        return first

    def _expand(self, items):
        # `items` grows while it is walked: every closure item that is new,
        # or gained lookaheads, is expanded in turn.
        i = 0
        while i < len(items):
            item = items[i]
            i += 1
            rhs = item.production.rhs
            if item.dotPos == len(rhs) \
                    or not isinstance(rhs[item.dotPos], NontermSpec):
                continue
            tail = rhs[item.dotPos + 1:]
            for sym in list(item.lookahead):
                first = self._first(tail + [sym])
                for prod in rhs[item.dotPos].productions:
                    added = Item(prod, 0, first)
                    if self._addClosed(added):
                        items.append(added)

    def close(self):
        self._expand(list(self))

    def goto(self, sym):
        """The kernel of the state reached from this one on `sym`."""
        target = ItemSet(self._firstCache)
        for item in self.allItems():
            rhs = item.production.rhs
            if item.dotPos < len(rhs) and rhs[item.dotPos] is sym:
                target.add(Item(item.production, item.dotPos + 1,
                                list(item.lookahead)))
        return target

    def merge(self, other):
        """
        Merge the kernel of `other` into this set and extend the closure
        to match.  Returns True if anything changed.
        """
        changed = []
        for item in other:
            mine = self.get(item)
            if mine is None:
                mine = Item(item.production, item.dotPos,
                            list(item.lookahead))
                self[mine] = mine
                changed.append(mine)
                continue
            fresh = [sym for sym in item.lookahead
                     if sym not in mine.lookahead]
            if fresh:
                mine.lookahead.update(dict.fromkeys(fresh))
                changed.append(Item(item.production, item.dotPos, fresh))
        self._expand(changed)
        return len(changed) > 0

    def weakCompat(self, other):
        """
        True if `other` has the same kernel cores and merging it cannot
        give two items a lookahead that they share in neither set.
        """
        if self != other:
            return False
        pairs = [(item, other[item]) for item in self]
        for (a, b), (c, d) in itertools.combinations(pairs, 2):
            if not a.lookaheadDisjoint(c) or not b.lookaheadDisjoint(d):
                continue
            if a.lookaheadDisjoint(d) and b.lookaheadDisjoint(c):
                continue
            return False
        return True


class Action(object):
    """A parsing table entry.  A cell holds each distinct entry once."""
    __slots__ = ()

    def _target(self):
        raise NotImplementedError

    def __eq__(self, other):
        return type(self) is type(other) and self._target() == other._target()

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((type(self).__name__, self._target()))


class ShiftAction(Action):
    __slots__ = ('nextState',)

    def __init__(self, nextState):
        self.nextState = nextState

    def _target(self):
        return self.nextState

    def __repr__(self):
        return "[shift %d]" % self.nextState


class ReduceAction(Action):
    __slots__ = ('production',)

    def __init__(self, production):
        self.production = production

    def _target(self):
        return self.production

    def __repr__(self):
        return "[reduce %r]" % self.production


class Spec(object):
    """
The Spec class holds the grammar and the parsing tables generated from it.
It is only needed until the tables are compiled into a Language, which is
what parsers use.
"""

    def __init__(self, grammar_adapter, skinny=True, logFile=None,
                 verbose=False, conflicts="split"):
        """
grammar_adapter : An object providing get_precedences(), get_tokens(),
                  get_nonterminals() and get_rules(); normally a
                  cabinparse.declarative.Grammar subclass.

skinny : If true, discard the item sets once the tables exist.  This
         reduces available debugging context and memory use.

logFile : The path of a file to store a human-readable copy of the
          parsing tables in.

verbose : If true, log progress information at INFO level while
          generating the parsing tables.

conflicts : "split" or "error"; see the module docstring.
"""
        assert type(skinny) == bool
        assert logFile is None or type(logFile) == str
        assert type(verbose) == bool
        if conflicts not in ("split", "error"):
            raise SpecError("Unknown conflict policy: %r" % (conflicts,))

        self._skinny = skinny
        self._verbose = verbose
        self._conflictPolicy = conflicts

        # Default (no) precedence, and the one that always splits.
        self._none = Precedence("none", "fail", {})
        self._split = Precedence("split", "split", {})

        self._precedences = {self._none.name: self._none,
                             self._split.name: self._split}
        self._tokens = {eoi.name: eoi, epsilon.name: epsilon}
        self._nonterms = {}
        self._aux_nonterms = {}
        self._productions = []

        self._userStartSym = None
        self._startSym = None
        self._startProd = None

        self._itemSets = []
        # Item set --> indices of the states with that kernel core.
        self._cores = {}
        # One dict per state.  _action rows map a terminal to its list of
        # actions, _goto rows map a non-terminal to the next state.  A
        # missing entry is a syntax error.
        self._action = []
        self._goto = []
        self._acceptStates = set()
        self._startState = None
        self._nActions = 0
        self._nConflicts = 0
        self._nSplits = 0
        self._nImpure = 0  # Actions in cells with more than one.

        self._prepare(grammar_adapter, logFile)

    @property
    def pureLR(self):
        return self._nConflicts + self._nImpure == 0

    @property
    def conflicts(self):
        return self._nConflicts

    @property
    def splits(self):
        """Number of conflicts left for the GLR engine to split on."""
        return self._nSplits

    @property
    def productions(self):
        return self._productions

    @property
    def precedences(self):
        return self._precedences

    @property
    def tokens(self):
        return self._tokens

    @property
    def nonterms(self):
        return self._nonterms

    @property
    def startSym(self):
        return self._startSym

    @property
    def action(self):
        return self._action

    @property
    def goto(self):
        return self._goto

    @property
    def acceptStates(self):
        return self._acceptStates

    def __repr__(self):
        if self._skinny:
            return "cabinparse.Spec: %d states, %d actions (%d split)" % \
                   (len(self._action), self._nActions, self._nImpure)

        lines = [self._summary(), "Precedences:"]
        for name in sorted(self._precedences):
            lines.append("  %r" % self._precedences[name])
        lines.append("Symbols:")
        symbols = list(self._tokens.values()) + list(self._nonterms.values())
        for sym in sorted(symbols, key=seq_key):
            lines.append("  %r %r first {%s}" % (
                sym, sym.prec, " ".join("%r" % elm for elm in sym.firstSet)))
            if isinstance(sym, NontermSpec):
                for prod in sym.productions:
                    lines.append("    %r" % prod)

        lines.append("Parsing tables:")
        for i, row in enumerate(self._action):
            lines.append("State %d%s" % (
                i, " (start state)" if i == self._startState else ""))
            for item in sorted(self._itemSets[i].allItems()):
                lines.append("    %s" % item.lr0__repr__())
            for sym in sorted(row, key=seq_key):
                mark = "!" if len(row[sym]) > 1 else " "
                for action in row[sym]:
                    lines.append("  %s %-15r %r" % (mark, sym, action))
            gotos = self._goto[i]
            for sym in sorted(gotos, key=seq_key):
                lines.append("    %-15r goto %d" % (sym, gotos[sym]))
        return "\n".join(lines)

    def _summary(self):
        return "cabinparse.Spec: %s, %s, %s, %s, %s (%d split)" % (
            _count(len(self._tokens) - 2, "token"),
            _count(len(self._nonterms) - 1, "non-terminal"),
            _count(len(self._productions) - 1, "production"),
            _count(len(self._action), "state"),
            _count(self._nActions, "action"), self._nImpure)

    def _prepare(self, adapter, logFile):
        self._introspect(adapter)

        # Augment the grammar with <S> ::= S <$>.
        assert isinstance(self._userStartSym, NontermSpec)
        self._startSym = NontermSpec("<S>", "%s.Start" % __name__, self._none,
                                     hidden=True, type_name="<S>")
        self._startProd = Production("%s.Start.reduce" % __name__,
                                     self._none, self._startSym,
                                     [self._userStartSym, eoi])
        self._startSym.productions.append(self._startProd)
        self._nonterms["<S>"] = self._startSym
        self._productions.append(self._startProd)

        self._references(adapter)
        self._firstSets()
        self._items()
        self._lr()
        self._disambiguate()
        self._validate(logFile)

        if self._skinny:
            self._itemSets = []
            self._cores = {}

    # Introspect the adapter and find parser declarations.
    def _introspect(self, adapter):
        for prec in adapter.get_precedences():
            name = prec.name
            if name in self._precedences:
                raise SpecError("Duplicate precedence name: %s" % name)
            self._precedences[name] = prec

        for token in adapter.get_tokens():
            name = token.name
            if name in self._precedences:
                raise SpecError("Identical precedence/token names: %s" % name)
            if name in self._tokens:
                raise SpecError("Duplicate token name: %s" % name)
            self._tokens[name] = token

        nonterms, userStart = adapter.get_nonterminals()
        for nonterm in nonterms:
            name = nonterm.name
            if name in self._precedences:
                raise SpecError("Identical precedence/nonterm names: %s" % name)
            if name in self._tokens:
                raise SpecError("Identical token/nonterm names: %s" % name)
            if name in self._nonterms:
                raise SpecError("Duplicate nonterm name: %s" % name)
            self._nonterms[name] = nonterm

        self._userStartSym = userStart
        if not isinstance(self._userStartSym, NontermSpec):
            raise SpecError("No start symbol specified")

    def _symbol(self, name, doc):
        if name in self._tokens:
            return self._tokens[name]
        elif name in self._nonterms:
            return self._nonterms[name]
        raise SpecError("Unknown symbol '%s' in reduction specification: %s"
                        % (name, doc))

    def aux_nonterm(self, sym, variant):
        """
        The hidden helper non-terminal for `sym?`, `sym*` or `sym+`.  The
        repetition forms are left recursive, so the parse stack stays
        shallow however long the repetition is.
        """
        name = sym.name + variant
        if name in self._aux_nonterms:
            return self._aux_nonterms[name]
        prec = self._none
        nonterm = NontermSpec(name, '%s.%s' % (__name__, name), prec,
                              hidden=True, type_name=name)
        if variant == '?':
            rules_rhs = [[], [sym]]
        elif variant == '*':
            rules_rhs = [[], [nonterm, sym]]
        elif variant == '+':
            rules_rhs = [[sym], [nonterm, sym]]
        else:
            assert False, variant
        self._add_aux(nonterm, rules_rhs)
        return nonterm

    def sep_nonterm(self, sym, sep):
        """
        The hidden helper non-terminal for one or more `sym` separated by
        the token `sep`, written `sym%sep` in a rule.
        """
        name = "%s%%%s" % (sym.name, sep.name)
        if name in self._aux_nonterms:
            return self._aux_nonterms[name]
        nonterm = NontermSpec(name, '%s.%s' % (__name__, name), self._none,
                              hidden=True, type_name=name)
        self._add_aux(nonterm, [[sym], [nonterm, sep, sym]])
        return nonterm

    def _add_aux(self, nonterm, rules_rhs):
        for i, rhs in enumerate(rules_rhs):
            prod = Production("%s._%d" % (nonterm.qualified, i),
                              nonterm.prec, nonterm, rhs)
            nonterm.productions.append(prod)
            self._productions.append(prod)
        self._aux_nonterms[nonterm.name] = nonterm

    # Resolve all symbolic (named) references.
    def _references(self, adapter):
        # Build the graph of Precedence relationships.
        self._resolvePrec()

        # Resolve Token-->Precedence references.
        for token in self._tokens.values():
            if type(token.prec) == str:
                token.prec = self._lookupPrec(token.prec, token.name)

        # Resolve Nonterm-->Precedence references.
        for nonterm in self._nonterms.values():
            if type(nonterm.prec) == str:
                nonterm.prec = self._lookupPrec(nonterm.prec, nonterm.name)

        # Resolve Nonterm-->{Nonterm,Token,Precedence} references.
        for lhs_name, qualified, dirtoks, doc in adapter.get_rules():
            if lhs_name not in self._nonterms:
                raise SpecError("Rule for unknown non-terminal %s: %s"
                                % (lhs_name, doc))
            nonterm = self._nonterms[lhs_name]
            rhs = []
            rhs_terms = []
            fields = []
            prec = None
            for i, tok in enumerate(dirtoks):
                m = NontermSpec.precedence_tok_re.match(tok)
                if m:
                    # Precedence.
                    if i < len(dirtoks) - 1:
                        raise SpecError(("Precedence must come last in "
                                         "reduction specification: %s") % doc)
                    if m.group(1) not in self._precedences:
                        raise SpecError(("Unknown precedence in reduction "
                                         "specification: %s") % doc)
                    prec = self._precedences[m.group(1)]
                    continue
                m = NontermSpec.rhs_re.match(tok)
                if not m:
                    raise SpecError("Invalid symbol '%s' in reduction "
                                    "specification: %s" % (tok, doc))
                field, base, sep, variant = m.groups()
                sym = self._symbol(base, doc)
                if sep is not None:
                    sym = self.sep_nonterm(sym, self._symbol(sep, doc))
                if variant:
                    sym = self.aux_nonterm(sym, variant)
                elif isinstance(sym, TokenSpec) and sep is None:
                    rhs_terms.append(sym)
                rhs.append(sym)
                fields.append(field)

            if prec is None:
                if rhs_terms:
                    # Inherit the precedence of the last terminal symbol in rhs
                    prec = rhs_terms[-1].prec
                else:
                    # Inherit the non-terminal's precedence.
                    prec = nonterm.prec

            prod = Production(qualified, prec, nonterm, rhs, fields)
            nonterm.productions.append(prod)
            self._productions.append(prod)
        self._nonterms.update(self._aux_nonterms)

        for nonterm in self._nonterms.values():
            if not nonterm.productions:
                raise SpecError("Non-terminal %s has no productions" % nonterm)

        logger.debug("%d tokens, %d non-terminals, %d productions",
                     len(self._tokens) - 2, len(self._nonterms) - 1,
                     len(self._productions) - 1)

    def _lookupPrec(self, name, owner):
        if name not in self._precedences:
            raise SpecError("Unknown precedence '%s' for %s" % (name, owner))
        return self._precedences[name]

    def _declaredPrec(self, ref, owner):
        """The declared Precedence `ref` (object or name) relates `owner` to."""
        if isinstance(ref, Precedence):
            if self._precedences.get(ref.name) is not ref:
                raise SpecError("Precedence '%s' specifies a relationship "
                                "with undeclared Precedence '%s'"
                                % (owner.name, ref.name))
            return ref
        if ref not in self._precedences:
            raise SpecError("Precedence '%s' specifies a relationship with "
                            "unknown Precedence '%s'" % (owner.name, ref))
        return self._precedences[ref]

    def _resolvePrec(self):
        """
        Turn the declared relationships into equivalence classes, which
        share their `equiv` and `dominators` sets, and close the dominators
        transitively.
        """
        for prec in list(self._precedences.values()):
            for ref, rel in prec.relationships.items():
                other = self._declaredPrec(ref, prec)
                if rel == "=":
                    if other not in prec.equiv:
                        equiv = prec.equiv | other.equiv
                        dominators = prec.dominators | other.dominators
                        for member in equiv:
                            member.equiv = equiv
                            member.dominators = dominators
                elif rel == "<":
                    prec.dominators.add(other)
                elif rel == ">":
                    other.dominators.add(prec)
                else:
                    raise SpecError("Invalid precedence relationship %r" % rel)

        classes = dict((id(prec.equiv), prec)
                       for prec in self._precedences.values())
        changed = True
        while changed:
            changed = False
            for prec in classes.values():
                reach = set()
                for above in prec.dominators:
                    reach |= above.equiv
                    for higher in above.dominators:
                        reach |= higher.equiv
                reach -= prec.dominators
                if reach:
                    prec.dominators.update(reach)
                    changed = True

        cycles = ["Precedence relationship cycle involving '%s'" % prec.name
                  for prec in self._precedences.values()
                  if prec.equiv & prec.dominators]
        if cycles:
            raise SpecError("\n".join(cycles))

    def _validate(self, logFile):
        """
        Report unused definitions, write the tables to `logFile`, and fail
        if conflicts remain under the "error" policy.
        """
        # Names are unique across precedences, tokens and non-terminals.
        used = set()
        reduced = set()
        for row in self._action:
            for sym, actions in row.items():
                used.add(sym.name)
                reduced.update(action.production for action in actions
                               if type(action) == ReduceAction)
        for production in self._productions:
            if production in reduced or production is self._startProd:
                used.add(production.prec.name)
                used.add(production.lhs.name)
                for sym in production.rhs:
                    used.add(sym.name)
                    used.add(sym.prec.name)

        unused = []
        for name, prec in self._precedences.items():
            if prec is not self._none and prec is not self._split \
                    and name not in used:
                unused.append("Unused precedence: %r" % prec)
        for name, token in self._tokens.items():
            if token is not eoi and token is not epsilon \
                    and not token.extra and name not in used:
                unused.append("Unused token: %s" % name)
        for name in self._nonterms:
            if name != self._startSym.name and name not in used:
                unused.append("Unused nonterm: %s" % name)
        for production in self._productions:
            if production not in reduced \
                    and production is not self._startProd:
                unused.append("Unused production: %r" % production)

        lines = []
        if self._nConflicts:
            lines.append(_count(self._nConflicts, "unresolvable conflict"))
        if unused:
            lines.append(_count(len(unused), "unused definition"))
        lines = ["cabinparse.Spec: %s" % line for line in lines + unused]

        if logFile is not None:
            logger.info("Writing parsing tables to '%s'", logFile)
            with open(logFile, "w") as f:
                f.write("\n".join(lines + [repr(self)]))

        if self._nConflicts:
            raise SpecError("\n".join(lines))
        for line in lines:
            logger.debug("%s", line)
        if self._verbose:
            logger.info("%s", self._summary())

    def _firstSets(self):
        # first(X) is X for terminals.
        for sym in self._tokens.values():
            sym.firstSetMerge(sym)

        changed = True
        while changed:
            changed = False
            for sym in self._nonterms.values():
                for prod in sym.productions:
                    nullable = True
                    for elm in prod.rhs:
                        for first in list(elm.firstSet):
                            if first is not epsilon \
                                    and not sym.firstSetMerge(first):
                                changed = True
                        if epsilon not in elm.firstSet:
                            nullable = False
                            break
                    if nullable and not sym.firstSetMerge(epsilon):
                        changed = True

    def _stateFor(self, kernel):
        """The built state `kernel` merges into, or None."""
        for i in self._cores.get(kernel, ()):
            if self._itemSets[i].weakCompat(kernel):
                return i
        return None

    def _items(self):
        """Build the item sets, merging weakly compatible ones."""
        start = ItemSet({})
        start.add(Item(self._startProd, 0, [epsilon]))
        start.close()
        self._itemSets = [start]
        self._cores = {start: [0]}

        syms = list(self._tokens.values()) + list(self._nonterms.values())
        worklist = [0]
        while worklist:
            itemSet = self._itemSets[worklist.pop(0)]
            for sym in syms:
                kernel = itemSet.goto(sym)
                if not kernel:
                    continue
                j = self._stateFor(kernel)
                if j is None:
                    kernel.close()
                    j = len(self._itemSets)
                    self._itemSets.append(kernel)
                    self._cores.setdefault(kernel, []).append(j)
                    worklist.append(j)
                elif self._itemSets[j].merge(kernel):
                    # Revisit changed states first, depth first.
                    if j in worklist:
                        worklist.remove(j)
                    worklist.insert(0, j)

        logger.debug("Generated %d LR(1) item sets", len(self._itemSets))

    def _lr(self):
        for i, itemSet in enumerate(self._itemSets):
            row = {}
            for item in itemSet.allItems():
                rhs = item.production.rhs
                if item.dotPos == len(rhs):
                    for sym in item.lookahead:
                        self._addAction(row, sym,
                                        ReduceAction(item.production))
                    continue
                sym = rhs[item.dotPos]
                if isinstance(sym, TokenSpec):
                    target = self._stateFor(itemSet.goto(sym))
                    if target is not None:
                        self._addAction(row, sym, ShiftAction(target))
                if item.production is self._startProd:
                    if item.dotPos == 0 and self._startState is None:
                        self._startState = i
                    elif item.dotPos == 1:
                        # <S> ::= S * <$>: seeing <$> here accepts.
                        self._acceptStates.add(i)
            self._action.append(row)

            gotos = {}
            for nonterm in self._nonterms.values():
                target = self._stateFor(itemSet.goto(nonterm))
                if target is not None:
                    gotos[nonterm] = target
            self._goto.append(gotos)

    @staticmethod
    def _addAction(row, sym, action):
        actions = row.setdefault(sym, [])
        if action not in actions:
            actions.append(action)

    def _precOf(self, sym, action):
        if type(action) == ShiftAction:
            return sym.prec
        return action.production.prec

    def _disambiguate(self):
        """
        Settle cells with several actions by precedence.  What precedence
        leaves open is split or counted as a conflict, per the policy.
        """
        for i, row in enumerate(self._action):
            for sym, acts in row.items():
                keep = [True] * len(acts)
                conflicts = 0
                for a, b in itertools.combinations(range(len(acts)), 2):
                    verdict = self._resolve(sym, acts[a], acts[b])
                    if verdict == "err" and self._conflictPolicy == "split":
                        logger.warning("Unresolved conflict in state %d on "
                                       "%r: %r vs %r; splitting at parse "
                                       "time", i, sym, acts[a], acts[b])
                        self._nSplits += 1
                        verdict = "both"
                    elif verdict == "err":
                        logger.warning("Conflict in state %d on %r: %r vs %r",
                                       i, sym, acts[a], acts[b])
                        conflicts += 1
                    if verdict in ("new", "neither", "err"):
                        keep[a] = False
                    if verdict in ("old", "neither", "err"):
                        keep[b] = False

                kept = [act for act, k in zip(acts, keep) if k]
                # Keep the cell as is if the conflicts struck every action.
                if kept or not conflicts:
                    row[sym] = kept
                    conflicts = 0
                self._nActions += len(row[sym])
                if len(row[sym]) > 1:
                    self._nImpure += len(row[sym])
                self._nConflicts += conflicts

    def _resolve(self, sym, oldAct, newAct):
        """
        How precedence settles `oldAct` against `newAct` on `sym`: keep
        "old", "new", "both" or "neither", or "err" if it cannot.
        """
        oldPrec = self._precOf(sym, oldAct)
        newPrec = self._precOf(sym, newAct)
        if oldPrec in newPrec.dominators:
            return "old"
        if newPrec in oldPrec.dominators:
            return "new"
        if oldPrec.assoc == "split" or newPrec.assoc == "split":
            return "both"
        if oldPrec not in newPrec.equiv or type(oldAct) == type(newAct):
            # Unrelated precedences, or a reduce/reduce conflict.
            return "err"

        # A "fail" associativity defers to the other one.
        assocs = set((oldPrec.assoc, newPrec.assoc)) - set(("fail",))
        if len(assocs) != 1:
            return "err"
        assoc = assocs.pop()
        if assoc == "nonassoc":
            return "neither"
        # Left associativity reduces, right associativity shifts.
        shiftWins = (assoc == "right")
        if (type(oldAct) == ShiftAction) == shiftWins:
            return "old"
        return "new"

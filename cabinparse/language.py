"""
The compiled, immutable form of a grammar.

A Language is what the parse engine consumes: integer symbol ids, action
and goto tables, lexical rules and the external scanner hook.  It is built
once from a :py:class:`cabinparse.automaton.Spec` and never mutated after
that, so a single instance can be shared by any number of parsers running
in parallel threads.

Languages can be dumped to an opaque blob and loaded again, which lets
callers skip table generation on later runs.
"""
import hashlib
import logging
import pickle
from collections import namedtuple

from cabinparse.errors import LanguageError
from cabinparse.grammar import TokenSpec, seq_key, eoi
from cabinparse.automaton import ShiftAction, ReduceAction
from cabinparse.lexer import compile_rules

logger = logging.getLogger(__name__)

SymbolInfo = namedtuple('SymbolInfo',
                        'name type kind named visible external')
ProductionInfo = namedtuple('ProductionInfo', 'lhs length fields prec')
LexRule = namedtuple('LexRule', 'symbol pattern literal extra')

Shift = namedtuple('Shift', 'state')
Reduce = namedtuple('Reduce', 'production')


# Accepting replaces the shift of end of input in accept states.
Accept = namedtuple('Accept', '')


END = 'end'
TOKEN = 'token'
EXTRA = 'extra'
NONTERM = 'nonterm'
ERROR = 'error'

ERROR_NAME = 'ERROR'

BLOB_VERSION = 1


def _action_key(action):
    if isinstance(action, Reduce):
        return (1, action.production)
    return (0, 0)


class Language(object):
    def __init__(self, name, symbols, productions, actions, gotos,
                 lex_rules, scanner=None, dominators=None, fingerprint=None,
                 start_state=0):
        self.name = name
        self.symbols = tuple(symbols)
        self.productions = tuple(productions)
        self.actions = tuple(actions)
        self.gotos = tuple(gotos)
        self.lex_rules = tuple(lex_rules)
        self.scanner = scanner
        self.dominators = dict(dominators or {})
        self.fingerprint = fingerprint
        self.start_state = start_state
        self._setup()

    def _setup(self):
        self._check()
        self._by_name = {}
        for i, info in enumerate(self.symbols):
            self._by_name.setdefault(info.name, i)
        self.eoi = 0
        self.error_symbol = len(self.symbols) - 1
        self.external_symbols = frozenset(
            i for i, info in enumerate(self.symbols) if info.external)
        self._external_by_type = dict(
            (self.symbols[i].type, i) for i in self.external_symbols)
        self.compiled_rules = compile_rules(self.lex_rules)

    def _check(self):
        if not self.symbols or self.symbols[0].kind != END:
            raise LanguageError("Symbol 0 must be end of input")
        if self.symbols[-1].kind != ERROR:
            raise LanguageError("The last symbol must be %s" % ERROR_NAME)
        if len(self.actions) != len(self.gotos):
            raise LanguageError("Action and goto tables differ in size")
        nstates = len(self.actions)
        if not 0 <= self.start_state < nstates:
            raise LanguageError("Start state %r out of range"
                                % (self.start_state,))
        for prod in self.productions:
            if self.symbols[prod.lhs].kind != NONTERM:
                raise LanguageError("Production for non-nonterm %r"
                                    % (self.symbols[prod.lhs].name,))
        for row in self.actions:
            for sym, acts in row.items():
                for act in acts:
                    if isinstance(act, Shift) and not 0 <= act.state < nstates:
                        raise LanguageError("Shift to unknown state %r"
                                            % (act.state,))
                    if isinstance(act, Reduce) \
                            and not 0 <= act.production < len(self.productions):
                        raise LanguageError("Reduce by unknown production %r"
                                            % (act.production,))
        for rule in self.lex_rules:
            if self.symbols[rule.symbol].kind not in (TOKEN, EXTRA):
                raise LanguageError("Lexical rule for non-terminal %r"
                                    % (self.symbols[rule.symbol].name,))

    def __repr__(self):
        return "<Language %s: %d symbols, %d states>" % (
            self.name, len(self.symbols), len(self.actions))

    def __getstate__(self):
        state = self.__dict__.copy()
        for k in ('_by_name', '_external_by_type', 'compiled_rules',
                  'external_symbols', 'eoi', 'error_symbol'):
            state.pop(k, None)
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._setup()

    @property
    def state_count(self):
        return len(self.actions)

    def symbol(self, name):
        """The symbol id for the grammar name `name`."""
        try:
            return self._by_name[name]
        except KeyError:
            raise LanguageError("Unknown symbol %r in language %s"
                                % (name, self.name))

    def symbol_type(self, sym):
        return self.symbols[sym].type

    def external_symbol(self, type_name):
        """The id of the external terminal whose node type is `type_name`."""
        try:
            return self._external_by_type[type_name]
        except KeyError:
            raise LanguageError("Scanner produced %r, which is not an "
                                "external symbol of %s" % (type_name, self.name))

    def is_hidden(self, sym):
        return not self.symbols[sym].visible

    def is_terminal(self, sym):
        return self.symbols[sym].kind in (END, TOKEN, EXTRA)

    def actions_for(self, state, sym):
        return self.actions[state].get(sym, ())

    def goto(self, state, sym):
        return self.gotos[state][sym]

    def terminals(self):
        """Terminal ids in declaration order, end of input excluded."""
        return [i for i, info in enumerate(self.symbols) if info.kind == TOKEN]

    def valid_symbols(self, states):
        """
        The node types of every terminal some state in `states` has an
        action for.
        """
        result = set()
        for state in states:
            for sym in self.actions[state]:
                result.add(self.symbols[sym].type)
        return frozenset(result)

    def lex_context(self, states):
        """
        The part of the parser state that lexing depends on: the external
        terminals valid in any of `states`.  Grammars without a scanner
        always lex in the empty context.
        """
        if self.scanner is None:
            return frozenset()
        valid = set()
        for state in states:
            row = self.actions[state]
            for sym in self.external_symbols:
                if sym in row:
                    valid.add(sym)
        return frozenset(valid)

    def precedence_dominates(self, prec_a, prec_b):
        """True if precedence `prec_a` binds tighter than `prec_b`."""
        return prec_a in self.dominators.get(prec_b, ())

    def dumps(self):
        """Encode the language as an opaque blob."""
        return pickle.dumps((BLOB_VERSION, self), pickle.HIGHEST_PROTOCOL)

    @classmethod
    def loads(cls, blob):
        try:
            version, language = pickle.loads(blob)
        except LanguageError:
            raise
        except Exception as e:
            raise LanguageError("Malformed language blob: %s" % e)
        if version != BLOB_VERSION or not isinstance(language, cls):
            raise LanguageError("Language blob has an incompatible format")
        return language

    @classmethod
    def from_spec(cls, spec, name, scanner=None, fingerprint=None):
        """
        Compile the tables of `spec` into a Language.

        Symbol ids are assigned as: end of input, terminals in declaration
        order, extras, non-terminals, then ERROR.  Without an explicit
        `fingerprint`, the SHA-1 of the spec's description is used.
        """
        if fingerprint is None:
            fingerprint = hashlib.sha1(
                describe(spec).encode('utf-8')).hexdigest()
        tokens = [tok for tok in sorted(spec.tokens.values(), key=seq_key)
                  if tok.name != '<e>' and tok is not eoi]
        terminals = [tok for tok in tokens if not tok.extra]
        extras = [tok for tok in tokens if tok.extra]
        nonterms = [nt for nt in sorted(spec.nonterms.values(), key=seq_key)
                    if nt is not spec.startSym]

        ids = {eoi: 0}
        symbols = [SymbolInfo(eoi.name, eoi.type_name, END, False, False,
                              False)]
        for tok in terminals + extras:
            ids[tok] = len(symbols)
            symbols.append(SymbolInfo(tok.name, tok.type_name,
                                      EXTRA if tok.extra else TOKEN,
                                      tok.named, tok.visible, tok.external))
        for nt in nonterms:
            ids[nt] = len(symbols)
            symbols.append(SymbolInfo(nt.name, nt.type_name, NONTERM, True,
                                      not nt.hidden, False))
        symbols.append(SymbolInfo(ERROR_NAME, ERROR_NAME, ERROR, True, True,
                                  False))

        prods = [prod for prod in spec.productions
                 if prod.lhs is not spec.startSym]
        prods.sort(key=lambda p: p.seq)
        prod_ids = {}
        productions = []
        for prod in prods:
            prod_ids[prod] = len(productions)
            productions.append(ProductionInfo(ids[prod.lhs], len(prod.rhs),
                                              tuple(prod.fields),
                                              prod.prec.name))

        actions = []
        for i, row in enumerate(spec.action):
            compiled = {}
            for sym, acts in row.items():
                if not acts or sym not in ids:
                    continue
                out = []
                for act in acts:
                    if type(act) == ShiftAction:
                        if sym is eoi and i in spec.acceptStates:
                            out.append(Accept())
                        else:
                            out.append(Shift(act.nextState))
                    else:
                        assert type(act) == ReduceAction
                        if act.production.lhs is spec.startSym:
                            continue
                        out.append(Reduce(prod_ids[act.production]))
                if out:
                    out.sort(key=_action_key)
                    compiled[ids[sym]] = tuple(out)
            actions.append(compiled)

        gotos = []
        for row in spec.goto:
            gotos.append(dict((ids[nt], state) for nt, state in row.items()
                              if nt in ids))

        lex_rules = []
        for tok in terminals + extras:
            if tok.literal is not None:
                lex_rules.append(LexRule(ids[tok], tok.literal.encode('utf-8'),
                                         True, tok.extra))
            elif tok.pattern is not None:
                lex_rules.append(LexRule(ids[tok], tok.pattern.encode('utf-8'),
                                         False, tok.extra))
            elif not tok.external:
                raise LanguageError("Token %s has no lexical rule and is not "
                                    "external" % tok.name)

        dominators = {}
        for prec in spec.precedences.values():
            dominators[prec.name] = frozenset(p.name for p in prec.dominators)

        language = cls(name, symbols, productions, actions, gotos, lex_rules,
                       scanner=scanner, dominators=dominators,
                       fingerprint=fingerprint,
                       start_state=0)
        logger.info("Compiled language %s: %d symbols, %d productions, "
                    "%d states", name, len(symbols), len(productions),
                    len(actions))
        return language


def describe(spec):
    """A canonical text description of a grammar's tokens and rules."""
    lines = []
    for tok in sorted(spec.tokens.values(), key=seq_key):
        if isinstance(tok, TokenSpec):
            lines.append("token %s %r %r %s %s %s" % (
                tok.name, tok.pattern, tok.literal, tok.extra, tok.external,
                tok.prec.name))
    for prec in sorted(spec.precedences.values(), key=lambda p: p.name):
        lines.append("prec %s %s %s" % (
            prec.name, prec.assoc,
            ",".join(sorted(p.name for p in prec.dominators))))
    for prod in sorted(spec.productions, key=lambda p: p.seq):
        lines.append("%r %s" % (prod, ",".join(str(f) for f in prod.fields)))
    return "\n".join(lines)

"""
Grammar symbols, precedences, productions and LR(1) items.

These are the build-time objects the table generator in
:py:mod:`cabinparse.automaton` works with.  None of them survive into a
compiled :py:class:`cabinparse.language.Language`; the parse engine only
sees integer ids.
"""
import re

from cabinparse.errors import SpecError


class Precedence(object):
    """
Precedences can be associated with tokens, non-terminals, and
productions.  Precedence isn't as important for GLR parsers as for LR
parsers, since GLR parsing allows for parse-time resolution of
ambiguity.  Still, precedence can be useful for reducing the volume of
ambiguities that must be dealt with at run-time.

There are five precedence types: %fail, %nonassoc, %left, %right, and
%split.  Each precedence can have relationships with other precedences:
<, >, or =.  These relationships specify a directed acyclic graph (DAG),
which is used to compute the transitive closures of relationships among
precedences.  If no path exists between two precedences that are
compared during conflict resolution, the conflict is left to the
conflict policy of the Spec.  Conceptually, the = relationship causes
precedences to share a node in the DAG.

When a path exists, the highest precedence production or token takes
precedence.  Associativity only comes into play for shift/reduce
conflicts, where the terminal and the production have equivalent
precedences (= relationship).  In this case, the associativity
determines how the conflict is resolved.

       %fail : Any conflict is unresolvable.

               A pre-defined precedence, [none], is provided.  It has
               %fail associativity, and has no pre-defined precedence
               relationships.

   %nonassoc : Resolve shift/reduce conflicts by removing both
               possibilities, thus making conflicts a parse-time error.

       %left : Resolve shift/reduce conflicts by reducing.

      %right : Resolve shift/reduce conflicts by shifting.

      %split : Do not resolve conflicts; the GLR algorithm will split
               the parse stack when necessary.

               A pre-defined precedence, [split], is provided.  It has
               %split associativity, and has no pre-defined precedence
               relationships.

Precedences are declared as grammar class attributes, and the attribute
name becomes the precedence name:

  class Arith(Grammar):
      add = Precedence.left()
      mul = Precedence.left(above=add)
      pow = Precedence.right(above=mul)
"""

    @classmethod
    def create(cls, name=None, precedence='fail', above=None, below=None,
               equal=None):
        relationships = {}
        for others, rel in ((above, '>'), (below, '<'), (equal, '=')):
            if others is None:
                continue
            if not isinstance(others, (list, tuple)):
                others = (others,)
            for other in others:
                relationships[other] = rel
        return cls(name, precedence, relationships)

    @classmethod
    def left(cls, **kwargs):
        return cls.create(precedence='left', **kwargs)

    @classmethod
    def right(cls, **kwargs):
        return cls.create(precedence='right', **kwargs)

    @classmethod
    def nonassoc(cls, **kwargs):
        return cls.create(precedence='nonassoc', **kwargs)

    @classmethod
    def split(cls, **kwargs):
        return cls.create(precedence='split', **kwargs)

    def __init__(self, name, assoc, relationships):
        assert assoc in ["fail", "nonassoc", "left", "right", "split"]
        assert type(relationships) == dict

        self.name = name
        self.assoc = assoc
        # Raw relationships, keyed by Precedence or by precedence name.
        self.relationships = relationships

        self.equiv = set((self,))  # Precedences that have equivalent precedence.
        self.dominators = set()  # Precedences that have higher precedence.

    def __repr__(self):
        equiv = sorted(prec.name for prec in self.equiv)
        domin = sorted(prec.name for prec in self.dominators)
        return "[%%%s %s ={%s} <{%s}]" % (self.assoc, self.name,
                                          ",".join(equiv), ",".join(domin))


class SymbolSpec(object):
    seq_cur = 0

    def __init__(self, name, prec):
        assert type(name) == str
        self.seq = SymbolSpec.seq_cur
        SymbolSpec.seq_cur += 1

        self.name = name
        self.prec = prec
        # An insertion-ordered set, so that table generation is
        # deterministic from run to run.
        self.firstSet = {}

    def __repr__(self):
        return "%s" % self.name
    __str__ = __repr__

    def firstSetMerge(self, sym):
        if sym not in self.firstSet:
            self.firstSet[sym] = None
            return False
        else:
            return True


def seq_key(sym):
    return sym.seq


# AKA terminal symbol.
class TokenSpec(SymbolSpec):
    """
    A terminal.  `pattern` is a regular expression source (text) for tokens
    the internal lexer recognizes; external tokens may have none.
    """

    def __init__(self, name, prec="none", pattern=None, literal=None,
                 extra=False, external=False, named=True, visible=True,
                 type_name=None):
        assert isinstance(prec, Precedence) or type(prec) == str

        SymbolSpec.__init__(self, name, prec)
        self.pattern = pattern
        self.literal = literal
        self.extra = extra
        self.external = external
        self.named = named
        self.visible = visible
        self.type_name = type_name or name


class EndOfInputSpec(TokenSpec):
    def __init__(self):
        TokenSpec.__init__(self, '<$>', "none", named=False, visible=False,
                           type_name='end')
eoi = EndOfInputSpec()


class EpsilonSpec(TokenSpec):
    def __init__(self):
        TokenSpec.__init__(self, "<e>", "none", named=False, visible=False)
epsilon = EpsilonSpec()


first_cap_re = re.compile('(.)([A-Z][a-z]+)')
all_cap_re = re.compile('([a-z0-9])([A-Z])')


def snake_case(name):
    s1 = first_cap_re.sub(r'\1_\2', name)
    return all_cap_re.sub(r'\1_\2', s1).lower()


class NontermSpec(SymbolSpec):
    token_re = re.compile(r"([A-Za-z_]\w*|'[^']+')$")
    # [field:]Symbol[%Separator][?*+]
    rhs_re = re.compile(r"(?:([a-z_]\w*):)?([A-Za-z_]\w*|'[^'\s]+')"
                        r"(?:%([A-Za-z_]\w*|'[^'\s]+'))?([?*+]?)$")
    precedence_tok_re = re.compile(r'\[([A-Za-z]\w*)\]$')

    def __init__(self, name, qualified, prec, hidden=False, type_name=None):
        SymbolSpec.__init__(self, name, prec)

        self.qualified = qualified
        self.hidden = hidden
        self.type_name = type_name or snake_case(name.lstrip('_'))
        self.productions = []

    @classmethod
    def from_class(cls, nt_subclass, name=None):
        """
        Build a NontermSpec from the header of a Nonterm class docstring:
        an optional `%start` or `%nonterm` directive, an optional symbol
        name and an optional trailing `[precedence]`.  Returns
        `(nonterm, is_start)`.
        """
        if name is None:
            name = nt_subclass.__name__
        module_name = nt_subclass.__module__
        doc = nt_subclass.__dict__.get('__doc__')
        if doc is None:
            dirtoks = ['%nonterm', name]
        else:
            dirtoks = doc.strip().split()
        if not dirtoks:
            dirtoks = ['%nonterm', name]
        is_start = (dirtoks[0] == '%start')
        if dirtoks[0] not in ['%nonterm', '%start']:
            dirtoks = ['%nonterm']
        symbol_name = None
        prec = None
        i = 1
        while i < len(dirtoks):
            tok = dirtoks[i]
            if tok[0] == '%':
                break
            m = NontermSpec.precedence_tok_re.match(tok)
            if m:
                if i < len(dirtoks) - 1 and dirtoks[i + 1][0] != '%':
                    raise SpecError(("Precedence must come last in "
                                     "non-terminal specification: %s") % doc)
                prec = m.group(1)
            else:
                m = NontermSpec.token_re.match(tok)
                if m:
                    symbol_name = m.group(1)
                else:
                    raise SpecError("Invalid non-terminal specification: %s"
                                    % doc)
            i += 1
        if symbol_name is None:
            symbol_name = name
        if prec is None:
            prec = "none"

        nonterm = NontermSpec(symbol_name, "%s.%s" % (module_name, name),
                              prec, hidden=symbol_name.startswith('_'))
        return nonterm, is_start


class Production(int):
    cur_seq = 0

    def __new__(cls, *args, **kwargs):
        result = int.__new__(cls, Production.cur_seq)
        result.seq = Production.cur_seq
        Production.cur_seq += 1
        return result

    def __init__(self, qualified, prec, lhs, rhs, fields=None):
        assert isinstance(prec, Precedence)
        assert isinstance(lhs, NontermSpec)
        if __debug__:
            for elm in rhs:
                assert isinstance(elm, SymbolSpec)

        self.qualified = qualified
        self.prec = prec
        self.lhs = lhs
        self.rhs = rhs
        if fields is None:
            fields = [None] * len(rhs)
        assert len(fields) == len(rhs)
        self.fields = fields

    def __repr__(self):
        return "%r ::= %s. [%s]" % \
          (self.lhs, " ".join(["%r" % elm for elm in self.rhs]), self.prec.name)


class Item(int):
    def __new__(cls, production, dotPos, lookahead):
        assert isinstance(production, Production)
        assert type(dotPos) == int
        assert dotPos >= 0
        assert dotPos <= len(production.rhs)
        if __debug__:
            for elm in lookahead:
                assert isinstance(elm, SymbolSpec)

        hash = (dotPos * Production.cur_seq) + production.seq
        result = int.__new__(cls, hash)
        result.hash = hash
        result.production = production
        result.dotPos = dotPos
        result.lookahead = dict.fromkeys(lookahead)
        return result

    def _rhs_repr(self):
        strs = []
        i = 0
        while i < self.dotPos:
            strs.append(" %r" % self.production.rhs[i])
            i += 1
        strs.append(" *")
        while i < len(self.production.rhs):
            strs.append(" %r" % self.production.rhs[i])
            i += 1
        return "".join(strs)

    def lr0__repr__(self):
        return "%r ::=%s. [%s]" % (self.production.lhs, self._rhs_repr(),
                                   self.production.prec.name)

    def __repr__(self):
        syms = sorted(self.lookahead, key=seq_key)
        return "[%r ::=%s., %s] [%s]" % (
            self.production.lhs, self._rhs_repr(),
            "/".join(["%r" % sym for sym in syms]), self.production.prec.name)

    def lookaheadDisjoint(self, other):
        sLookahead = self.lookahead
        oLookahead = other.lookahead

        for sSym in sLookahead:
            if sSym in oLookahead:
                return False

        for oSym in oLookahead:
            if oSym in sLookahead:
                return False

        return True

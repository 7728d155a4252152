"""
Declarative grammars.

A grammar is a Grammar subclass holding precedences and tokens as class
attributes, plus one Nonterm subclass per non-terminal whose docstring
holds its rules:

    class Sum(Grammar):
        NUMBER = mktoken(re=r'[0-9]+')

    Nonterm = Sum.nonterm_base()

    class Expr(Nonterm):
        '''
        %start
        %reduce left:NUMBER '+' right:NUMBER
        '''

Docstring directives:

  %start [Name] [prec]    this is the start symbol
  %nonterm [Name] [prec]  optional; names the symbol or gives a precedence
  %reduce[:Name] sym...   one production; `field:sym` names the child, a
                          trailing [prec] sets its precedence
  %choice A B ...         one production per alternative
  %enum 'a' 'b' ...       the same, for literal tokens
  %list X 'sep'           one or more X separated by sep, with an optional
                          trailing separator

Symbols take the suffixes `?`, `*` and `+`, and `X%'sep'` is one or more X
separated by 'sep'.  Quoted literals are tokens; they need no declaration
unless they carry a precedence.  Non-terminals whose name starts with an
underscore are hidden: they stay in the tree but the node API looks
through them.
"""
import hashlib
import logging
import os
import threading

from cabinparse.errors import SpecError, LanguageError
from cabinparse.grammar import Precedence, TokenSpec, NontermSpec
from cabinparse.automaton import Spec
from cabinparse.language import Language

logger = logging.getLogger(__name__)


class TokenDecl(object):
    """A token declaration; the Grammar turns it into a TokenSpec."""

    def __init__(self, name=None, prec='none', re=None, s=None, extra=False,
                 hidden=False, external=False, type_name=None):
        if re is not None and s is not None:
            raise SpecError("Token %s has both a pattern and a literal"
                            % (name,))
        self.name = name
        self.prec = prec
        self.pattern = re
        self.literal = s
        self.extra = extra
        self.hidden = hidden
        self.external = external
        self.type_name = type_name

    def __repr__(self):
        return "mktoken(%r)" % (self.name,)

    def spec(self):
        name = self.name
        literal = self.literal
        if literal is None and self.pattern is None and name[0] == "'":
            literal = name[1:-1]
        named = literal is None or name[0] != "'"
        type_name = self.type_name
        if type_name is None:
            type_name = name[1:-1] if name[0] == "'" else name
        prec = self.prec
        if isinstance(prec, Precedence):
            prec = prec.name
        return TokenSpec(name, prec, pattern=self.pattern, literal=literal,
                         extra=self.extra, external=self.external,
                         named=named, visible=not self.hidden,
                         type_name=type_name)


def mktoken(name=None, prec='none', re=None, s=None, extra=False,
            hidden=False, external=False, type_name=None):
    """
    Declare a token.  `re` is a pattern and `s` a literal; an external
    token has neither, unless the scanner only sometimes produces it.
    Quoted names ("'+'") declare literal tokens, usually to give them a
    precedence.
    """
    return TokenDecl(name, prec, re, s, extra, hidden, external, type_name)


class GrammarMetaclass(type):
    def __init__(cls, name, bases, clsdict):
        for k, v in clsdict.items():
            if isinstance(v, (Precedence, TokenDecl)):
                if v.name is None:
                    v.name = k
        type.__init__(cls, name, bases, clsdict)
        cls._nonterms = {}
        cls._lock = threading.Lock()
        cls._language = None


class NontermMetaclass(type):
    def __init__(cls, name, bases, clsdict):
        type.__init__(cls, name, bases, clsdict)
        if clsdict.get('_is_base'):
            return
        gram_cls = cls._grammar_cls
        if name in gram_cls._nonterms:
            raise SpecError('duplicate Nonterm class %s' % (name,))
        gram_cls._nonterms[name] = cls


class Nonterm(object):
    """Base of the classes that carry non-terminal rules."""


def _directives(doc):
    """Split a docstring into (directive, args) pairs."""
    result = []
    for tok in doc.split():
        if tok[0] == '%' and len(tok) > 1 and tok[1].isalpha():
            result.append((tok, []))
        elif result:
            result[-1][1].append(tok)
        else:
            raise SpecError("Rule text before any directive: %s" % doc)
    return result


class Grammar(object, metaclass=GrammarMetaclass):
    """
    Base class of declarative grammars.  `scanner` is the external scanner
    class, if the grammar has external tokens.
    """
    scanner = None

    @classmethod
    def nonterm_base(cls):
        result = NontermMetaclass('Nonterm', (Nonterm,),
                                  {'_grammar_cls': cls, '_is_base': True})
        # register this as part of the grammar's module
        result.__module__ = cls.__module__
        return result

    @classmethod
    def grammar_name(cls):
        return cls.__dict__.get('language_name', cls.__name__.lower())

    @classmethod
    def get_precedences(cls):
        result = []
        for k, v in cls.__dict__.items():
            if isinstance(v, Precedence):
                result.append(v)
        return result

    @classmethod
    def _declared_tokens(cls):
        return [v for v in cls.__dict__.values() if isinstance(v, TokenDecl)]

    @classmethod
    def get_tokens(cls):
        """
        Fresh TokenSpecs for the declared tokens, followed by the literal
        tokens the rules use, in order of first use.
        """
        result = [decl.spec() for decl in cls._declared_tokens()]
        names = set(tok.name for tok in result)
        for _, _, rhs, _ in cls.get_rules():
            for tok in rhs:
                m = NontermSpec.rhs_re.match(tok)
                if m is None:
                    continue
                for sym in (m.group(2), m.group(3)):
                    if sym is not None and sym[0] == "'" \
                            and sym not in names:
                        names.add(sym)
                        result.append(TokenDecl(sym).spec())
        return result

    @classmethod
    def get_nonterminals(cls):
        result = []
        startSym = None
        for k, v in cls._nonterms.items():
            nonterm, is_start = NontermSpec.from_class(v, k)
            result.append(nonterm)
            if is_start:
                if startSym is not None:
                    raise SpecError("Only one start non-terminal allowed: "
                                    "%s / %s" % (v.__doc__, startSym))
                else:
                    startSym = nonterm
        return result, startSym

    @classmethod
    def get_rules(cls):
        """
        The productions, as (lhs name, qualified name, rhs tokens, doc)
        tuples in declaration order.
        """
        rules = []
        for k, v in cls._nonterms.items():
            doc = v.__dict__.get('__doc__') or ''
            nonterm, _ = NontermSpec.from_class(v, k)
            lhs = nonterm.name
            qualified = nonterm.qualified
            for i, (directive, args) in enumerate(_directives(doc)):
                name = directive[1:]
                label = '%s_%d' % (name.split(':')[0], i)
                if ':' in name:
                    name, label = name.split(':', 1)
                if name in ('start', 'nonterm'):
                    continue
                elif name == 'reduce':
                    rules.append((lhs, '%s.%s' % (qualified, label), args,
                                  doc))
                elif name in ('choice', 'enum'):
                    for j, alt in enumerate(args):
                        rules.append((lhs, '%s.%s_%d' % (qualified, label, j),
                                      [alt], doc))
                elif name == 'list':
                    if len(args) != 2:
                        raise SpecError("%%list takes an item and a "
                                        "separator: %s" % doc)
                    item, sep = args
                    rules.append((lhs, '%s.%s_0' % (qualified, label),
                                  ['%s%%%s' % (item, sep)], doc))
                    rules.append((lhs, '%s.%s_1' % (qualified, label),
                                  ['%s%%%s' % (item, sep), sep], doc))
                else:
                    raise SpecError("Unknown directive %s in %s"
                                    % (directive, v.__name__))
        return rules

    @classmethod
    def describe(cls):
        """A canonical text description of the grammar."""
        lines = ['grammar %s' % cls.grammar_name()]
        for prec in cls.get_precedences():
            rels = sorted('%s%s' % (rel, p if isinstance(p, str) else p.name)
                          for p, rel in prec.relationships.items())
            lines.append('prec %s %s %s' % (prec.name, prec.assoc,
                                            ' '.join(rels)))
        for tok in cls.get_tokens():
            lines.append('token %s %r %r %s %s %s %s' % (
                tok.name, tok.pattern, tok.literal, tok.extra, tok.external,
                tok.visible, tok.prec))
        nonterms, start = cls.get_nonterminals()
        for nonterm in nonterms:
            lines.append('nonterm %s %s %s' % (nonterm.name, nonterm.prec,
                                               nonterm is start))
        for lhs, qualified, rhs, _ in cls.get_rules():
            lines.append('rule %s ::= %s' % (lhs, ' '.join(rhs)))
        if cls.scanner is not None:
            lines.append('scanner %s.%s' % (cls.scanner.__module__,
                                            cls.scanner.__name__))
        return '\n'.join(lines)

    @classmethod
    def fingerprint(cls):
        return hashlib.sha1(cls.describe().encode('utf-8')).hexdigest()

    @classmethod
    def spec(cls, *args, **kwargs):
        """Generate the parsing tables.  Each call builds a fresh Spec."""
        return Spec(cls, *args, **kwargs)

    @classmethod
    def compile(cls, *args, **kwargs):
        """Generate the tables and compile them into a Language."""
        spec = cls.spec(*args, **kwargs)
        return Language.from_spec(spec, cls.grammar_name(), cls.scanner,
                                  cls.fingerprint())

    @classmethod
    def language(cls, cache_file=None, **kwargs):
        """
        The grammar's Language, built once per process.  With `cache_file`,
        a stored blob is used if its fingerprint matches the grammar, and
        is rewritten otherwise.
        """
        with cls._lock:
            if cls._language is None:
                cls._language = cls._load_or_compile(cache_file, **kwargs)
            return cls._language

    @classmethod
    def _load_or_compile(cls, cache_file, **kwargs):
        fingerprint = cls.fingerprint()
        if cache_file is not None and os.path.exists(cache_file):
            try:
                with open(cache_file, 'rb') as f:
                    language = Language.loads(f.read())
            except (LanguageError, IOError) as e:
                logger.warning("Ignoring language cache %s: %s",
                               cache_file, e)
            else:
                if language.fingerprint == fingerprint:
                    logger.info("Loaded language %s from %s",
                                language.name, cache_file)
                    return language
                logger.info("Language cache %s is stale", cache_file)
        language = cls.compile(**kwargs)
        if cache_file is not None:
            with open(cache_file, 'wb') as f:
                f.write(language.dumps())
        return language

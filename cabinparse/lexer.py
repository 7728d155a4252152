"""
Longest-match lexer over source bytes.

At each position the lexer tries, in order:

  1. the extras (whitespace, comments); the longest match becomes an extra
     token,
  2. the external scanner, if the grammar has one and one of its symbols
     is valid in the current parser context,
  3. the internal token rules, longest match first; on equal length a
     literal beats a pattern, and otherwise declaration order decides.

Bytes that nothing recognizes are gathered into a single lexical error
token.  Zero-length matches never make tokens.

Every token records how far the lexer looked past its end (`lookahead`)
and before its start (`lookbehind`).  The incremental reparser uses these
extents to decide whether an edit could change how the token lexes.
"""
import logging
from collections import namedtuple

import regex

from cabinparse.errors import LanguageError

logger = logging.getLogger(__name__)

CompiledRule = namedtuple('CompiledRule',
                          'symbol pattern literal extra first_bytes')


def compile_rules(lex_rules):
    """
    Compile LexRule records for matching.  Literal rules keep their bytes;
    pattern rules are compiled with `regex`.  Each rule also gets the set
    of bytes a match can start with.
    """
    result = []
    for rule in lex_rules:
        if rule.literal:
            pattern = rule.pattern
            if not pattern:
                raise LanguageError("Empty literal for symbol %d"
                                    % rule.symbol)
            first_bytes = frozenset((pattern[0],))
        else:
            try:
                pattern = regex.compile(rule.pattern)
            except regex.error as e:
                raise LanguageError("Bad pattern for symbol %d: %s"
                                    % (rule.symbol, e))
            first_bytes = frozenset(
                b for b in range(256)
                if pattern.fullmatch(bytes((b,)), partial=True) is not None)
        result.append(CompiledRule(rule.symbol, pattern, rule.literal,
                                   rule.extra, first_bytes))
    return tuple(result)


class Token(object):
    """
    A lexed token.  Tokens do not copy their text; `start` and `end` index
    the source buffer.
    """
    __slots__ = ('symbol', 'start', 'end', 'lookahead', 'lookbehind',
                 'lex_state')

    def __init__(self, symbol, start, end, lookahead=0, lookbehind=0,
                 lex_state=frozenset()):
        self.symbol = symbol
        self.start = start
        self.end = end
        self.lookahead = lookahead
        self.lookbehind = lookbehind
        self.lex_state = lex_state

    def __repr__(self):
        return "Token(%d, %d, %d)" % (self.symbol, self.start, self.end)

    @property
    def size(self):
        return self.end - self.start


class LexCursor(object):
    """
    The view of the source an external scanner works through.  All reads
    go through the cursor so that the lexer knows exactly which bytes a
    scanner decision depended on.
    """

    def __init__(self, text, pos):
        self._text = text
        self.start = pos
        self.pos = pos
        self.end = None
        self.examined_end = pos
        self.examined_start = pos

    def _examine(self, pos):
        if pos + 1 > self.examined_end:
            self.examined_end = pos + 1

    @property
    def lookahead(self):
        """The byte at the current position, or None at end of input."""
        self._examine(self.pos)
        if self.pos >= len(self._text):
            return None
        return self._text[self.pos]

    def advance(self):
        if self.pos < len(self._text):
            self._examine(self.pos)
            self.pos += 1

    def mark_end(self):
        self.end = self.pos

    def peek_behind(self, n=1):
        """The byte `n` positions before the token start, or None."""
        pos = self.start - n
        if pos < 0:
            return None
        if pos < self.examined_start:
            self.examined_start = pos
        return self._text[pos]

    def eof(self):
        self._examine(self.pos)
        return self.pos >= len(self._text)


def _literal_extent(literal, text, pos):
    """Returns (match length, end of the examined extent)."""
    n = len(text)
    i = 0
    while i < len(literal) and pos + i < n and text[pos + i] == literal[i]:
        i += 1
    if i == len(literal):
        return i, pos + i
    return 0, pos + i + 1


def _viable(pattern, text, pos, end):
    return pattern.fullmatch(text[pos:end], partial=True) is not None


def _pattern_extent(pattern, text, pos):
    """
    Returns (match length, end of the examined extent).  The extent is one
    past the longest prefix of text[pos:] that could still grow into a
    match; a rule still viable at end of input reaches one past it.
    """
    n = len(text)
    m = pattern.match(text, pos)
    length = m.end() - pos if m is not None else 0

    # Viability of text[pos:e] is monotone in e, so find its boundary with
    # an exponential search followed by a binary search.
    lo = pos
    hi = None
    step = 1
    while hi is None:
        cand = pos + step
        if cand >= n:
            if _viable(pattern, text, pos, n):
                lo = n
                break
            hi = n
        elif _viable(pattern, text, pos, cand):
            lo = cand
            step *= 2
        else:
            hi = cand
    if hi is not None:
        while hi - lo > 1:
            mid = (lo + hi) // 2
            if _viable(pattern, text, pos, mid):
                lo = mid
            else:
                hi = mid
    return length, max(lo + 1, pos + length)


class Lexer(object):
    """
    Lexer for one source buffer.  The lexer is stateless between calls;
    the parser passes the position and the lex context each time.
    """

    def __init__(self, language, text):
        self._language = language
        self._text = text
        self._rules = language.compiled_rules
        self._extras = [r for r in self._rules if r.extra]
        self._internal = [r for r in self._rules if not r.extra]
        if language.scanner is not None:
            self._scanner = language.scanner()
        else:
            self._scanner = None

    @property
    def text(self):
        return self._text

    def _longest(self, rules, pos):
        """
        Returns (rule, length, examined end) for the best match of `rules`
        at `pos`; rule is None if nothing matches.
        """
        text = self._text
        first = text[pos]
        best = None
        best_len = 0
        examined = pos + 1
        for rule in rules:
            if first not in rule.first_bytes:
                continue
            if rule.literal:
                length, extent = _literal_extent(rule.pattern, text, pos)
            else:
                length, extent = _pattern_extent(rule.pattern, text, pos)
            if extent > examined:
                examined = extent
            if length == 0:
                continue
            if length > best_len \
                    or (length == best_len and rule.literal
                        and not best.literal):
                best = rule
                best_len = length
        return best, best_len, examined

    def _scan_external(self, pos, valid):
        cursor = LexCursor(self._text, pos)
        result = self._scanner.scan(cursor, valid)
        symbol = None
        end = pos
        if result is not None:
            symbol = self._language.external_symbol(result)
            end = cursor.end if cursor.end is not None else cursor.pos
            if end <= pos:
                raise LanguageError("External scanner produced an empty %r "
                                    "token at %d" % (result, pos))
        return symbol, end, cursor.examined_end, cursor.examined_start

    def lex(self, pos, context=frozenset(), valid=None):
        """
        Lex the token at `pos`.

        `context` is the set of external symbols valid for the active parse
        states; `valid` is the set of valid node types handed to the
        external scanner.
        """
        text = self._text
        n = len(text)
        if pos >= n:
            return Token(self._language.eoi, n, n, 1, 0, context)

        rule, length, examined = self._longest(self._extras, pos)
        if rule is not None:
            return Token(rule.symbol, pos, pos + length,
                         examined - pos - length, 0, context)

        lookbehind_start = pos
        if self._scanner is not None and context:
            symbol, end, ext_examined, ext_start = \
                self._scan_external(pos, valid)
            examined = max(examined, ext_examined)
            lookbehind_start = ext_start
            if symbol is not None:
                return Token(symbol, pos, end, max(examined - end, 0),
                             pos - lookbehind_start, context)

        rule, length, int_examined = self._longest(self._internal, pos)
        examined = max(examined, int_examined)
        if rule is not None:
            return Token(rule.symbol, pos, pos + length,
                         examined - pos - length, pos - lookbehind_start,
                         context)

        return self._error_token(pos, context, pos - lookbehind_start)

    def _error_token(self, pos, context, lookbehind):
        """Gather the bytes from `pos` up to where some rule matches."""
        text = self._text
        n = len(text)
        end = pos + 1
        examined = end
        while end < n:
            rule, _, examined = self._longest(self._rules, end)
            if rule is not None:
                break
            end += 1
            examined = end
        if end >= n:
            examined = n + 1
        logger.debug("Lexical error at [%d, %d)", pos, end)
        return Token(self._language.error_symbol, pos, end, examined - end,
                     lookbehind, context)

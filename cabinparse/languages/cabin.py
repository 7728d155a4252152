"""
The Cabin language.

Cabin source is a sequence of `;`-terminated statements: declarations
(`let x: Number = 1;`), gotos (`label is value;`) and expressions.  Every
literal is an expression, including actions (functions), groups, eithers,
object constructors, extensions and foreach loops.

Angle brackets are both comparison operators and the brackets of
compile-time arguments (`print<Text>("hi")`).  The external scanner
decides: it produces `less_than` and `greater_than` where the bracket
meaning is not possible, or where the character follows whitespace.  It
also produces negative numbers where a number is expected and a binary
minus is not.

Use :py:func:`language` to get the compiled grammar.
"""
from cabinparse.declarative import Grammar, mktoken
from cabinparse.grammar import Precedence

WHITESPACE = (r'(?:[ \t\n\r\f\v]|\xc2[\x85\xa0]|\xe1\x9a\x80'
              r'|\xe2\x80[\x80-\x8b\xa8\xa9\xaf]|\xe2\x81[\x9f\xa0]'
              r'|\xe3\x80\x80|\xef\xbb\xbf)+')

# Up to the end of the line; U+2028 and U+2029 end lines too.
COMMENT = r'# (?:[^\r\n\xe2]|\xe2(?!\x80[\xa8\xa9]))*'

_SPACE = frozenset(b' \t\r\n\f\v')
_DIGITS = frozenset(b'0123456789')


class CabinScanner(object):
    """External scanner for comparison operators and negative numbers."""

    def scan(self, cursor, valid):
        c = cursor.lookahead
        if c == ord('-'):
            if 'number' in valid and '-' not in valid:
                return self._number(cursor)
            return None
        if c == ord('<'):
            return self._comparison(cursor, valid, 'less_than', '<')
        if c == ord('>'):
            return self._comparison(cursor, valid, 'greater_than', '>')
        return None

    def _comparison(self, cursor, valid, name, bracket):
        if name not in valid:
            return None
        if bracket in valid and cursor.peek_behind() not in _SPACE:
            return None
        cursor.advance()
        if cursor.lookahead == ord('='):
            # '<=' and '>=' are ordinary tokens.
            return None
        cursor.mark_end()
        return name

    def _number(self, cursor):
        cursor.advance()
        if cursor.lookahead not in _DIGITS:
            return None
        while cursor.lookahead in _DIGITS:
            cursor.advance()
        cursor.mark_end()
        if cursor.lookahead == ord('.'):
            cursor.advance()
            if cursor.lookahead in _DIGITS:
                while cursor.lookahead in _DIGITS:
                    cursor.advance()
                cursor.mark_end()
        return 'number'


class Cabin(Grammar):
    language_name = 'cabin'
    scanner = CabinScanner

    fn = Precedence.left()
    cmp = Precedence.left(above=fn)
    add = Precedence.left(above=cmp)
    mul = Precedence.left(above=add)
    pow = Precedence.right(above=mul)
    dot = Precedence.left(above=pow)
    postfix = Precedence.left(above=dot)
    angle = Precedence.left(above=postfix)
    call = Precedence.left(above=angle)
    brace = Precedence.left(above=fn)

    whitespace = mktoken(re=WHITESPACE, extra=True, hidden=True)
    comment = mktoken(re=COMMENT, extra=True)

    identifier = mktoken(re=r'[a-zA-Z_][a-zA-Z0-9_]*')
    string = mktoken(re=r'"[^"]*"')
    number = mktoken(re=r'[0-9]+(?:\.[0-9]+)?')
    signed_number = mktoken(external=True, type_name='number')
    less_than = mktoken(prec=cmp, external=True)
    greater_than = mktoken(prec=cmp, external=True)

    eq = mktoken("'=='", prec=cmp)
    ne = mktoken("'!='", prec=cmp)
    le = mktoken("'<='", prec=cmp)
    ge = mktoken("'>='", prec=cmp)
    plus = mktoken("'+'", prec=add)
    minus = mktoken("'-'", prec=add)
    times = mktoken("'*'", prec=mul)
    divide = mktoken("'/'", prec=mul)
    caret = mktoken("'^'", prec=pow)
    period = mktoken("'.'", prec=dot)
    question = mktoken("'?'", prec=postfix)
    bang = mktoken("'!'", prec=postfix)
    langle = mktoken("'<'", prec=angle)
    rangle = mktoken("'>'", prec=angle)
    lparen = mktoken("'('", prec=call)
    lbrace = mktoken("'{'", prec=brace)


Nonterm = Cabin.nonterm_base()


class SourceFile(Nonterm):
    """
    %start
    %reduce Statement*
    """


class Statement(Nonterm):
    """
    %reduce Declaration ';'
    %reduce Goto ';'
    %reduce _Expression ';'
    """


class Declaration(Nonterm):
    """
    %reduce tags:Tag* 'let' name:identifier _TypeAnnotation? _Initializer?
    """


class Goto(Nonterm):
    "%reduce label:identifier 'is' value:_Expression"


class _TypeAnnotation(Nonterm):
    "%reduce ':' type:_Expression"


class _Initializer(Nonterm):
    "%reduce '=' value:_Expression"


class _Expression(Nonterm):
    """
    %choice BinaryExpression ParenthesizedExpression PostfixExpression
            FunctionCall _Literal
    """


class ParenthesizedExpression(Nonterm):
    "%reduce '(' _Expression ')'"


class BinaryExpression(Nonterm):
    """
    %reduce left:_Expression operator:'.' right:identifier
    %reduce left:_Expression operator:'^' right:_Expression
    %reduce left:_Expression operator:'*' right:_Expression
    %reduce left:_Expression operator:'/' right:_Expression
    %reduce left:_Expression operator:'+' right:_Expression
    %reduce left:_Expression operator:'-' right:_Expression
    %reduce left:_Expression operator:'==' right:_Expression
    %reduce left:_Expression operator:'!=' right:_Expression
    %reduce left:_Expression operator:'<=' right:_Expression
    %reduce left:_Expression operator:'>=' right:_Expression
    %reduce left:_Expression operator:less_than right:_Expression
    %reduce left:_Expression operator:greater_than right:_Expression
    """


class PostfixExpression(Nonterm):
    """
    %reduce operand:_Expression operator:'?'
    %reduce operand:_Expression operator:'!'
    """


class FunctionCall(Nonterm):
    """
    %reduce function:_Expression '<' compile_time_arguments:_ExpressionList? '>'
    %reduce function:_Expression '<' compile_time_arguments:_ExpressionList? '>'
            '(' arguments:_ExpressionList? ')'
    %reduce function:_Expression '(' arguments:_ExpressionList? ')'
    """


class _ExpressionList(Nonterm):
    "%list _Expression ','"


class _Literal(Nonterm):
    """
    %choice Function string number signed_number List Group Either
            ObjectConstructor Extend Foreach identifier
    """


class Function(Nonterm):
    """
    %reduce 'action' _GroupParameters? _Parameters? ':'
            return_type:_Expression [fn]
    %reduce 'action' _GroupParameters? _Parameters? ':'
            return_type:_Expression body:Block
    """


class _Parameters(Nonterm):
    "%reduce '(' parameters:_ParameterList? ')'"


class _ParameterList(Nonterm):
    "%list Parameter ','"


class Parameter(Nonterm):
    "%reduce name:identifier ':' type:_Expression"


class _GroupParameters(Nonterm):
    "%reduce '<' compile_time_parameters:_GroupParameterList? '>'"


class _GroupParameterList(Nonterm):
    "%list GroupParameter ','"


class GroupParameter(Nonterm):
    "%reduce name:identifier _TypeAnnotation?"


class Block(Nonterm):
    "%reduce '{' Statement* '}'"


class List(Nonterm):
    "%reduce '[' _ExpressionList? ']'"


class Tag(Nonterm):
    "%reduce '#' '[' values:_ExpressionList? ']'"


class Group(Nonterm):
    "%reduce 'group' _GroupParameters? '{' fields:_GroupFieldList? '}'"


class _GroupFieldList(Nonterm):
    "%list GroupField ','"


class GroupField(Nonterm):
    "%reduce tags:Tag* name:identifier _TypeAnnotation? _Initializer?"


class Either(Nonterm):
    "%reduce 'either' '{' variants:_EitherVariantList? '}'"


class _EitherVariantList(Nonterm):
    "%list EitherVariant ','"


class EitherVariant(Nonterm):
    "%reduce name:identifier _TypeAnnotation?"


class ObjectConstructor(Nonterm):
    "%reduce 'new' type:_Expression '{' values:_ObjectValueList? '}'"


class _ObjectValueList(Nonterm):
    "%list ObjectValue ','"


class ObjectValue(Nonterm):
    "%reduce tags:Tag* name:identifier '=' value:_Expression"


class Extend(Nonterm):
    """
    %reduce 'extensionof' _GroupParameters? target:_Expression _ToBe? '{'
            values:_ObjectValueList? '}'
    """


class _ToBe(Nonterm):
    "%reduce 'tobe' type:_Expression"


class Foreach(Nonterm):
    """
    %reduce 'foreach' binding:identifier 'in' iterable:_Expression
            body:Block
    """


def language():
    """
    The compiled Cabin language.  The tables are generated on first use;
    every call returns the same immutable instance.
    """
    return Cabin.language()

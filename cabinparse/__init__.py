"""
cabinparse is an incremental, error-recovering GLR parser engine that
produces concrete syntax trees.  It ships with a grammar for the Cabin
language:

    from cabinparse import Parser, Edit
    from cabinparse.languages import cabin

    parser = Parser(cabin.language())
    tree = parser.parse(b'let x = 1 + 2;')
    print(tree.sexp())

Parsing never fails on bad input.  Unexpected and absent tokens become
ERROR and MISSING nodes, and Tree.has_error tells whether there are any.

Trees are immutable.  To reparse after a change, describe the change with
an Edit and hand the old tree back to the parser; every subtree the edit
cannot have affected is shared with the new tree:

    edit = Edit.replacing(tree.text, 8, 9, b'10')
    tree = parser.reparse(tree, edit, edit.apply(tree.text))

Grammars are Grammar subclasses whose rules live in docstrings (see
:py:mod:`cabinparse.declarative`).  From them, a Pager LR(1) table
generator (:py:mod:`cabinparse.automaton`) builds the parsing tables, and
these are compiled into an immutable Language, the only thing the parse
engine uses.  Table generation takes a while for large grammars; a
Language can be dumped to an opaque blob and cached on disk.
"""
from cabinparse.errors import Error, SpecError, LanguageError, InputError, \
    ParseCancelled
from cabinparse.grammar import Precedence
from cabinparse.declarative import Grammar, mktoken
from cabinparse.automaton import Spec
from cabinparse.language import Language
from cabinparse.tree import Edit, Length, Node, Point, Tree
from cabinparse.cursor import SyntaxNode, TreeCursor
from cabinparse.parser import Parser

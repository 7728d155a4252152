"""
Exception classes raised by cabinparse.

Syntax and lexical errors are never raised: they are recorded in the tree
as ERROR and MISSING nodes, and `Tree.has_error` reports them.  Only
contract violations and cancellation propagate to the caller.
"""


class Error(Exception):
    """Base class for all cabinparse exceptions."""


class SpecError(Error):
    """The grammar specification is invalid, or has unresolvable conflicts."""


class LanguageError(Error):
    """A compiled language is malformed or was used inconsistently."""


class InputError(Error):
    """The source text or edit handed to the parser violates its contract."""


class ParseCancelled(Error):
    """
    A parse was stopped by its cancellation flag or deadline.  No partial
    tree is produced.
    """

    def __init__(self, message, offset=None):
        Error.__init__(self, message)
        self.offset = offset

"""
Grammars shipped with cabinparse.  Each module defines a Grammar and a
`language()` accessor returning its compiled Language.
"""

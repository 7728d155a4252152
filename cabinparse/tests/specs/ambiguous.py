from cabinparse import Grammar, mktoken


class Ambiguous(Grammar):
    language_name = 'ambiguous'
    NUMBER = mktoken(re=r'[0-9]+')
    whitespace = mktoken(re=r' +', extra=True, hidden=True)

Nonterm = Ambiguous.nonterm_base()


class E(Nonterm):
    """
    %start
    %reduce left:E '+' right:E [split]
    %reduce NUMBER
    """

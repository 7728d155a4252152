from cabinparse import Grammar, mktoken


class SumGrammar(Grammar):
    language_name = 'sum'
    NUMBER = mktoken(re=r'[0-9]+')
    whitespace = mktoken(re=r'[ \t\n]+', extra=True, hidden=True)

Nonterm = SumGrammar.nonterm_base()


class Sum(Nonterm):
    """
    %start
    %reduce left:NUMBER '+' right:NUMBER
    """

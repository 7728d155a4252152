import unittest

from cabinparse import Parser
from cabinparse.tests.specs import sum, arith


class TestRecovery(unittest.TestCase):
    def setUp(self):
        self.parser = Parser(arith.Arith.language())

    def assertCovers(self, tree, text):
        self.assertEqual(tree.root.size, len(text))
        self.assertEqual(b''.join(leaf.text for leaf in tree.leaves()), text)

    def test_skip_unexpected_token(self):
        tree = self.parser.parse(b'1 2;')
        self.assertEqual(tree.sexp(),
                         '(program (statement (NUMBER) (ERROR (NUMBER))))')
        self.assertTrue(tree.has_error)
        error = tree.root_node.child(0).child(1)
        self.assertTrue(error.is_error)
        self.assertEqual(error.byte_range, (2, 3))

    def test_missing_operand(self):
        tree = self.parser.parse(b'1+;')
        self.assertEqual(
            tree.sexp(),
            '(program (statement (binary left: (NUMBER) '
            'right: (MISSING NUMBER))))')

    def test_missing_anonymous_token(self):
        tree = self.parser.parse(b'(1;')
        self.assertEqual(tree.sexp(),
                         '(program (statement (paren (NUMBER) '
                         '(MISSING ")"))))')

    def test_lexical_error(self):
        tree = self.parser.parse(b'1@;')
        self.assertEqual(tree.sexp(),
                         '(program (statement (NUMBER) (ERROR)))')
        self.assertTrue(tree.has_error)
        self.assertCovers(tree, b'1@;')

    def test_error_is_contained(self):
        tree = self.parser.parse(b'1+2;\n) ) );\n3*4;')
        self.assertTrue(tree.has_error)
        statements = [child for child in tree.root_node.children
                      if child.type == 'statement']
        self.assertFalse(statements[0].has_error)
        self.assertFalse(statements[-1].has_error)
        self.assertEqual(statements[-1].text, b'3*4;')

    def test_error_costs_add_up(self):
        one = self.parser.parse(b'1+;')
        two = self.parser.parse(b'1+;2+;')
        self.assertEqual(one.root.error_cost, 1)
        self.assertEqual(two.root.error_cost, 2)

    def test_unparsable_start(self):
        tree = Parser(sum.SumGrammar.language()).parse(b'+ + +')
        self.assertTrue(tree.has_error)
        self.assertCovers(tree, b'+ + +')

    def test_never_raises(self):
        inputs = [b')))', b';;;', b'((((', b'+', b'1+*2;', b'f(,);',
                  b'\x00\xff', b'1 2 3 4 5', b'f(1;', b'(((1)', b'#',
                  b'1;;', b'^^^^1', b'f(g(h(', b'))1((;', b'\n\n\n)',
                  b'1+2', b'a b c;']
        for text in inputs:
            tree = self.parser.parse(text)
            self.assertCovers(tree, text)
            self.assertIsInstance(tree.sexp(), str)

    def test_error_free_input_has_no_errors(self):
        tree = self.parser.parse(b'f(1, g(2)) * (3 - x) ^ 2;')
        self.assertFalse(tree.has_error)
        for leaf in tree.leaves():
            self.assertFalse(leaf.is_error)
            self.assertFalse(leaf.is_missing)


if __name__ == "__main__":
    unittest.main()

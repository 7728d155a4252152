import threading
import unittest

from cabinparse import Parser, Edit, InputError, LanguageError, \
    ParseCancelled
from cabinparse.tests.specs import sum, arith, ambiguous, conflict


class CountdownFlag(object):
    """A cancellation flag that is set once it has been checked enough."""

    def __init__(self, checks=None):
        self.arm(checks)

    def arm(self, checks):
        self._left = checks

    def disarm(self):
        self._left = None

    def is_set(self):
        if self._left is None:
            return False
        if self._left == 0:
            return True
        self._left -= 1
        return False


class TestSum(unittest.TestCase):
    def setUp(self):
        self.parser = Parser(sum.SumGrammar.language())

    def test_basic(self):
        tree = self.parser.parse(b'3+4')
        self.assertEqual(tree.sexp(), '(sum left: (NUMBER) right: (NUMBER))')
        self.assertFalse(tree.has_error)
        self.assertEqual(tree.root.size, 3)
        self.assertEqual(tree.text, b'3+4')

    def test_text_source(self):
        tree = self.parser.parse('3 + 4')
        self.assertEqual(tree.sexp(), '(sum left: (NUMBER) right: (NUMBER))')
        self.assertEqual(tree.text, b'3 + 4')
        tree = self.parser.parse(bytearray(b'3+4'))
        self.assertEqual(tree.text, b'3+4')

    def test_surrounding_whitespace(self):
        tree = self.parser.parse(b' 3 +\n4 ')
        self.assertEqual(tree.sexp(), '(sum left: (NUMBER) right: (NUMBER))')
        self.assertEqual(tree.root.size, 7)
        root = tree.root_node
        self.assertEqual(root.byte_range, (0, 7))
        self.assertEqual(root.child_by_field_name('left').byte_range, (1, 2))
        self.assertEqual(root.child_by_field_name('right').byte_range,
                         (5, 6))

    def test_missing_operand(self):
        tree = self.parser.parse(b'3+')
        self.assertEqual(tree.sexp(),
                         '(sum left: (NUMBER) right: (MISSING NUMBER))')
        self.assertTrue(tree.has_error)
        right = tree.root_node.child_by_field_name('right')
        self.assertTrue(right.is_missing)
        self.assertEqual(right.byte_range, (2, 2))

    def test_empty_input(self):
        expected = ('(sum left: (MISSING NUMBER) (MISSING "+") '
                    'right: (MISSING NUMBER))')
        tree = self.parser.parse(b'')
        self.assertEqual(tree.root.size, 0)
        self.assertTrue(tree.has_error)
        self.assertFalse(tree.root_node.is_error)
        self.assertEqual(tree.sexp(), expected)

        tree = self.parser.parse(b'   ')
        self.assertEqual(tree.root.size, 3)
        self.assertEqual(tree.sexp(), expected)
        self.assertEqual(tree.root.error_cost, 3)
        self.assertEqual([leaf.byte_range for leaf in tree.leaves()
                          if leaf.is_missing], [(0, 0)] * 3)

    def test_missing_run_at_end(self):
        tree = self.parser.parse(b'3')
        self.assertEqual(tree.sexp(), '(sum left: (NUMBER) (MISSING "+") '
                         'right: (MISSING NUMBER))')

    def test_parser_is_reusable(self):
        first = self.parser.parse(b'1+2')
        second = self.parser.parse(b'10+20')
        self.assertEqual(first.text, b'1+2')
        self.assertEqual(second.root_node.child(2).text, b'20')

    def test_verbose(self):
        self.parser.verbose = True
        with self.assertLogs('cabinparse.parser', 'DEBUG') as cm:
            self.parser.parse(b'3+4')
        self.assertTrue(any('accept' in line for line in cm.output))


class TestArith(unittest.TestCase):
    def setUp(self):
        self.parser = Parser(arith.Arith.language())

    def test_precedence(self):
        tree = self.parser.parse(b'1+2*3;')
        self.assertEqual(
            tree.sexp(),
            '(program (statement (binary left: (NUMBER) '
            'right: (binary left: (NUMBER) right: (NUMBER)))))')

    def test_left_associative(self):
        tree = self.parser.parse(b'1-2-3;')
        self.assertEqual(
            tree.sexp(),
            '(program (statement (binary left: (binary left: (NUMBER) '
            'right: (NUMBER)) right: (NUMBER))))')

    def test_right_associative(self):
        tree = self.parser.parse(b'2^3^4;')
        self.assertEqual(
            tree.sexp(),
            '(program (statement (binary left: (NUMBER) '
            'right: (binary left: (NUMBER) right: (NUMBER)))))')

    def test_parentheses(self):
        tree = self.parser.parse(b'(1+2)*3;')
        self.assertEqual(
            tree.sexp(),
            '(program (statement (binary left: (paren (binary left: (NUMBER) '
            'right: (NUMBER))) right: (NUMBER))))')

    def test_call(self):
        tree = self.parser.parse(b'f(1, 2,);')
        self.assertEqual(
            tree.sexp(),
            '(program (statement (call name: (IDENT) args: (NUMBER) '
            'args: (NUMBER))))')
        tree = self.parser.parse(b'f();')
        self.assertEqual(tree.sexp(),
                         '(program (statement (call name: (IDENT))))')

    def test_operator_field(self):
        tree = self.parser.parse(b'1*2;')
        binary = tree.root_node.child(0).child(0)
        self.assertEqual(binary.type, 'binary')
        op = binary.child_by_field_name('op')
        self.assertEqual(op.type, '*')
        self.assertFalse(op.is_named)

    def test_comments(self):
        tree = self.parser.parse(b'1; # one\n2;')
        self.assertEqual(
            tree.sexp(),
            '(program (statement (NUMBER)) (comment) (statement (NUMBER)))')
        self.assertFalse(tree.has_error)

    def test_empty_program(self):
        tree = self.parser.parse(b'  ')
        self.assertEqual(tree.sexp(), '(program)')
        self.assertFalse(tree.has_error)
        self.assertEqual(tree.root.size, 2)

    def test_many_statements(self):
        text = b'1+2;\n' * 500
        tree = self.parser.parse(text)
        self.assertFalse(tree.has_error)
        self.assertEqual(tree.root_node.child_count, 500)
        last = tree.root_node.child(-1)
        self.assertEqual(last.start_point, (499, 0))
        self.assertEqual(last.end_byte, len(text) - 1)

    def test_deep_nesting(self):
        text = b'(' * 200 + b'1' + b')' * 200 + b';'
        tree = self.parser.parse(text)
        self.assertFalse(tree.has_error)
        self.assertEqual(tree.root.size, len(text))


class TestAmbiguity(unittest.TestCase):
    expected = ('(e left: (e left: (e (NUMBER)) right: (e (NUMBER))) '
                'right: (e (NUMBER)))')

    def test_split_merges(self):
        parser = Parser(ambiguous.Ambiguous.language())
        tree = parser.parse(b'1 + 2 + 3')
        self.assertFalse(tree.has_error)
        self.assertEqual(tree.sexp(), self.expected)

    def test_declaration_tie_break(self):
        parser = Parser(ambiguous.Ambiguous.language(),
                        tie_break="declaration")
        tree = parser.parse(b'1+2+3')
        self.assertEqual(tree.sexp(), self.expected)

    def test_unresolved_conflict(self):
        parser = Parser(conflict.Conflict.language())
        tree = parser.parse(b'1+2+3')
        self.assertFalse(tree.has_error)
        self.assertEqual(tree.sexp(),
                         '(e (e (e (NUMBER)) (e (NUMBER))) (e (NUMBER)))')

    def test_version_limit(self):
        parser = Parser(ambiguous.Ambiguous.language(), max_versions=1)
        tree = parser.parse(b'1+2+3+4+5')
        self.assertFalse(tree.has_error)
        self.assertEqual(tree.root.size, 9)


class TestContract(unittest.TestCase):
    def setUp(self):
        self.language = sum.SumGrammar.language()

    def test_bad_source(self):
        parser = Parser(self.language)
        self.assertRaises(InputError, parser.parse, 42)
        self.assertRaises(InputError, parser.parse, None)
        self.assertRaises(InputError, parser.parse, u'1+\ud800')

    def test_bad_configuration(self):
        self.assertRaises(ValueError, Parser, self.language,
                          tie_break="random")
        self.assertRaises(ValueError, Parser, self.language, max_versions=0)

    def test_cancellation(self):
        cancel = threading.Event()
        cancel.set()
        parser = Parser(self.language, cancellation=cancel)
        with self.assertRaises(ParseCancelled) as cm:
            parser.parse(b'1+2')
        self.assertEqual(cm.exception.offset, 0)
        cancel.clear()
        tree = parser.parse(b'1+2')
        self.assertFalse(tree.has_error)

    def test_cancellation_during_reparse(self):
        flag = CountdownFlag()
        parser = Parser(arith.Arith.language(), cancellation=flag)
        text = b'1+2;3*4;5;'
        tree = parser.parse(text)
        edit = Edit.replacing(text, 8, 9, b'6')

        flag.arm(3)
        with self.assertRaises(ParseCancelled) as cm:
            parser.reparse(tree, edit, edit.apply(text))
        self.assertGreater(cm.exception.offset, 0)

        flag.disarm()
        new_tree = parser.reparse(tree, edit, edit.apply(text))
        fresh = Parser(arith.Arith.language()).parse(b'1+2;3*4;6;')
        self.assertEqual(new_tree.sexp(), fresh.sexp())
        self.assertGreaterEqual(parser.reuse_stats[1], 1)
        self.assertEqual(tree.text, text)

    def test_timeout(self):
        parser = Parser(self.language, timeout=0)
        self.assertRaises(ParseCancelled, parser.parse, b'1+2')
        self.assertRaises(ParseCancelled, parser.parse, b'1+2')

    def test_edit_length_mismatch(self):
        parser = Parser(self.language)
        tree = parser.parse(b'3+4')
        edited = tree.edit(Edit(2, 3, 4))
        self.assertRaises(InputError, parser.parse, b'3+4', edited)

    def test_language_mismatch(self):
        tree = Parser(arith.Arith.language()).parse(b'1;')
        parser = Parser(self.language)
        self.assertRaises(LanguageError, parser.parse, b'1;', tree)

    def test_bad_edit(self):
        tree = Parser(self.language).parse(b'3+4')
        self.assertRaises(InputError, tree.edit, (0, 1, 1))
        self.assertRaises(InputError, Edit, 3, 2, 3)


if __name__ == "__main__":
    unittest.main()

import unittest

from cabinparse import Parser, Point, SyntaxNode
from cabinparse.tests.specs import sum, arith


class TestSyntaxNode(unittest.TestCase):
    def setUp(self):
        self.tree = Parser(sum.SumGrammar.language()).parse(b' 3 + 4')
        self.root = self.tree.root_node

    def test_root(self):
        root = self.root
        self.assertIsInstance(root, SyntaxNode)
        self.assertEqual(root.type, 'sum')
        self.assertTrue(root.is_named)
        self.assertIsNone(root.parent)
        self.assertIsNone(root.field_name)
        self.assertEqual(root.byte_range, (0, 6))
        self.assertEqual(root.start_point, Point(0, 0))
        self.assertEqual(root.end_point, Point(0, 6))

    def test_children(self):
        root = self.root
        # The whitespace is hidden.
        self.assertEqual([child.type for child in root.children],
                         ['NUMBER', '+', 'NUMBER'])
        self.assertEqual(root.child_count, 3)
        self.assertEqual(len(root.named_children), 2)
        self.assertEqual(root.child(-1).text, b'4')
        self.assertIsNone(root.child(3))

    def test_fields(self):
        left = self.root.child_by_field_name('left')
        self.assertEqual(left.text, b'3')
        self.assertEqual(left.byte_range, (1, 2))
        self.assertEqual(left.field_name, 'left')
        right = self.root.child_by_field_name('right')
        self.assertEqual(right.start_point, Point(0, 5))
        self.assertEqual(len(self.root.children_by_field_name('right')), 1)
        self.assertIsNone(self.root.child_by_field_name('middle'))
        self.assertIsNone(self.root.child(1).field_name)

    def test_siblings(self):
        left, plus, right = self.root.children
        self.assertEqual(left.next_sibling, plus)
        self.assertEqual(plus.prev_sibling, left)
        self.assertEqual(plus.next_sibling, right)
        self.assertIsNone(right.next_sibling)
        self.assertIsNone(left.prev_sibling)
        self.assertEqual(left.parent, self.root)
        self.assertIsNone(self.root.next_sibling)

    def test_descendant_for_byte_range(self):
        root = self.root
        self.assertEqual(root.descendant_for_byte_range(5, 6).text, b'4')
        self.assertEqual(root.descendant_for_byte_range(3, 4).type, '+')
        self.assertEqual(root.descendant_for_byte_range(1, 6), root)

    def test_leaves(self):
        leaves = list(self.root.leaves())
        self.assertEqual([leaf.type for leaf in leaves],
                         ['whitespace', 'NUMBER', 'whitespace', '+',
                          'whitespace', 'NUMBER'])
        self.assertTrue(leaves[0].is_extra)
        self.assertEqual(b''.join(leaf.text for leaf in leaves), b' 3 + 4')
        self.assertIsNone(leaves[1].parent)

    def test_equality(self):
        self.assertEqual(self.root.child(0), self.tree.root_node.child(0))
        self.assertNotEqual(self.root.child(0), self.root.child(2))
        self.assertEqual(len(set([self.root.child(0),
                                  self.tree.root_node.child(0)])), 1)


class TestTreeCursor(unittest.TestCase):
    def setUp(self):
        self.tree = Parser(sum.SumGrammar.language()).parse(b'3+4')

    def test_walk(self):
        cursor = self.tree.walk()
        self.assertEqual(cursor.node.type, 'sum')
        self.assertEqual(cursor.depth, 0)
        self.assertFalse(cursor.goto_next_sibling())
        self.assertTrue(cursor.goto_first_child())
        self.assertEqual(cursor.field_name, 'left')
        self.assertEqual(cursor.depth, 1)
        self.assertFalse(cursor.goto_first_child())
        self.assertTrue(cursor.goto_next_sibling())
        self.assertEqual(cursor.node.type, '+')
        self.assertIsNone(cursor.field_name)
        self.assertTrue(cursor.goto_next_sibling())
        self.assertEqual(cursor.field_name, 'right')
        self.assertFalse(cursor.goto_next_sibling())
        self.assertTrue(cursor.goto_parent())
        self.assertEqual(cursor.depth, 0)
        self.assertFalse(cursor.goto_parent())

    def test_first_child_for_byte(self):
        cursor = self.tree.walk()
        self.assertEqual(cursor.goto_first_child_for_byte(1), 1)
        self.assertEqual(cursor.node.type, '+')
        cursor.reset(self.tree.root_node)
        self.assertEqual(cursor.goto_first_child_for_byte(2), 2)
        cursor.reset(self.tree.root_node)
        self.assertIsNone(cursor.goto_first_child_for_byte(3))
        self.assertEqual(cursor.depth, 0)

    def test_subtree_cursor(self):
        left = self.tree.root_node.child(0)
        cursor = left.walk()
        self.assertIsNone(cursor.field_name)
        self.assertFalse(cursor.goto_next_sibling())
        self.assertFalse(cursor.goto_parent())


class TestHiddenNodes(unittest.TestCase):
    def setUp(self):
        self.parser = Parser(arith.Arith.language())

    def test_repetition_is_flattened(self):
        tree = self.parser.parse(b'1;\n22;\n333;')
        statements = tree.root_node.children
        self.assertEqual([s.text for s in statements],
                         [b'1;', b'22;', b'333;'])
        self.assertEqual(statements[1].start_point, Point(1, 0))
        self.assertEqual(statements[1].end_point, Point(1, 3))
        self.assertEqual(statements[2].prev_sibling, statements[1])
        self.assertEqual(statements[2].parent.type, 'program')

    def test_fields_through_hidden_nodes(self):
        tree = self.parser.parse(b'f(1, 2, 3);')
        call = tree.root_node.child(0).child(0)
        self.assertEqual(call.type, 'call')
        args = call.children_by_field_name('args')
        self.assertEqual([arg.text for arg in args], [b'1', b'2', b'3'])
        # Separators are anonymous and keep no field.
        commas = [child for child in call.children if child.type == ',']
        self.assertEqual(len(commas), 2)
        self.assertTrue(all(c.field_name is None for c in commas))

    def test_missing_nodes_are_visible(self):
        tree = self.parser.parse(b'(1;')
        paren = tree.root_node.child(0).child(0)
        last = paren.child(-1)
        self.assertTrue(last.is_missing)
        self.assertEqual(last.type, ')')
        self.assertEqual(last.byte_range, (2, 2))

    def test_errors_are_visible(self):
        tree = self.parser.parse(b'1 2;')
        statement = tree.root_node.child(0)
        self.assertTrue(statement.has_error)
        error = [child for child in statement.children if child.is_error]
        self.assertEqual(len(error), 1)
        self.assertEqual(error[0].child(0).type, 'NUMBER')


if __name__ == "__main__":
    unittest.main()

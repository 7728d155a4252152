import unittest

from cabinparse import Parser, Edit
from cabinparse.languages import cabin


def find_all(node, type_name):
    result = []
    pending = [node]
    while pending:
        node = pending.pop()
        if node.type == type_name:
            result.append(node)
        pending.extend(reversed(node.children))
    return result


class TestCabin(unittest.TestCase):
    def setUp(self):
        self.parser = Parser(cabin.language())

    def parse(self, text, errors=False):
        tree = self.parser.parse(text)
        self.assertEqual(tree.has_error, errors, tree.sexp())
        return tree

    def first(self, tree, type_name):
        nodes = find_all(tree.root_node, type_name)
        self.assertTrue(nodes, "no %s in %s" % (type_name, tree.sexp()))
        return nodes[0]

    def test_language_is_shared(self):
        self.assertIs(cabin.language(), cabin.language())
        self.assertEqual(cabin.language().name, 'cabin')

    def test_declaration(self):
        tree = self.parse(b'let x = 1 + 2;')
        self.assertEqual(
            tree.sexp(),
            '(source_file (statement (declaration name: (identifier) '
            'value: (binary_expression left: (number) right: (number)))))')

    def test_typed_declaration(self):
        tree = self.parse(b'let count: Number = 5;')
        declaration = self.first(tree, 'declaration')
        self.assertEqual(declaration.child_by_field_name('name').text,
                         b'count')
        self.assertEqual(declaration.child_by_field_name('type').text,
                         b'Number')
        self.assertEqual(declaration.child_by_field_name('value').text,
                         b'5')

    def test_goto(self):
        tree = self.parse(b'x is 5;')
        goto = self.first(tree, 'goto')
        self.assertEqual(goto.child_by_field_name('label').text, b'x')
        self.assertEqual(goto.child_by_field_name('value').type, 'number')

    def test_keywords_and_identifiers(self):
        tree = self.parse(b'let letter = newer;')
        declaration = self.first(tree, 'declaration')
        self.assertEqual(declaration.child_by_field_name('name').text,
                         b'letter')
        self.assertEqual(declaration.child_by_field_name('value').type,
                         'identifier')

    def test_comparison(self):
        tree = self.parse(b'a < b;')
        self.assertEqual(
            tree.sexp(),
            '(source_file (statement (binary_expression left: (identifier) '
            'operator: (less_than) right: (identifier))))')
        tree = self.parse(b'x > 1;')
        binary = self.first(tree, 'binary_expression')
        self.assertEqual(binary.child_by_field_name('operator').type,
                         'greater_than')

    def test_other_comparisons(self):
        tree = self.parse(b'a <= b;')
        binary = self.first(tree, 'binary_expression')
        self.assertEqual(binary.child_by_field_name('operator').type, '<=')
        tree = self.parse(b'a == b != c;')
        binary = self.first(tree, 'binary_expression')
        self.assertEqual(binary.child_by_field_name('operator').type, '!=')
        self.assertEqual(binary.child_by_field_name('left').type,
                         'binary_expression')

    def test_compile_time_arguments(self):
        tree = self.parse(b'print<Text>("hi");')
        self.assertEqual(
            tree.sexp(),
            '(source_file (statement (function_call function: (identifier) '
            'compile_time_arguments: (identifier) arguments: (string))))')

    def test_calls(self):
        tree = self.parse(b'f(1, 2);')
        call = self.first(tree, 'function_call')
        self.assertEqual(len(call.children_by_field_name('arguments')), 2)
        tree = self.parse(b'list<Number>;')
        call = self.first(tree, 'function_call')
        self.assertEqual(call.child_by_field_name('arguments'), None)
        self.assertEqual(
            call.child_by_field_name('compile_time_arguments').text,
            b'Number')

    def test_precedence(self):
        tree = self.parse(b'a + b * c ^ d;')
        top = self.first(tree, 'binary_expression')
        self.assertEqual(top.child_by_field_name('left').text, b'a')
        self.assertEqual(top.child_by_field_name('right').text,
                         b'b * c ^ d')
        tree = self.parse(b'a.b.c;')
        top = self.first(tree, 'binary_expression')
        self.assertEqual(top.child_by_field_name('left').text, b'a.b')
        tree = self.parse(b'1 + 2 < 3 + 4;')
        top = self.first(tree, 'binary_expression')
        self.assertEqual(top.child_by_field_name('operator').type,
                         'less_than')

    def test_postfix(self):
        tree = self.parse(b'value?;')
        postfix = self.first(tree, 'postfix_expression')
        self.assertEqual(postfix.child_by_field_name('operand').text,
                         b'value')
        self.assertEqual(postfix.child_by_field_name('operator').type, '?')

    def test_signed_numbers(self):
        tree = self.parse(b'let x = -1;')
        self.assertEqual(
            tree.sexp(),
            '(source_file (statement (declaration name: (identifier) '
            'value: (number))))')
        self.assertEqual(self.first(tree, 'number').text, b'-1')
        tree = self.parse(b'let y = a - 1.5;')
        binary = self.first(tree, 'binary_expression')
        self.assertEqual(binary.child_by_field_name('operator').type, '-')
        tree = self.parse(b'let z = a * -2.25;')
        binary = self.first(tree, 'binary_expression')
        self.assertEqual(binary.child_by_field_name('right').text, b'-2.25')

    def test_parenthesized(self):
        tree = self.parse(b'(a + b) * c;')
        top = self.first(tree, 'binary_expression')
        self.assertEqual(top.child_by_field_name('left').type,
                         'parenthesized_expression')

    def test_function(self):
        tree = self.parse(
            b'let double = action(x: Number): Number { x * 2; };')
        function = self.first(tree, 'function')
        parameters = function.children_by_field_name('parameters')
        self.assertEqual([p.type for p in parameters], ['parameter'])
        self.assertEqual(parameters[0].child_by_field_name('name').text,
                         b'x')
        self.assertEqual(function.child_by_field_name('return_type').text,
                         b'Number')
        body = function.child_by_field_name('body')
        self.assertEqual(body.type, 'block')
        self.assertEqual(len(find_all(body, 'statement')), 1)

    def test_function_without_body(self):
        tree = self.parse(b'let F = action<T>(): T;')
        function = self.first(tree, 'function')
        self.assertIsNone(function.child_by_field_name('body'))
        parameters = function.children_by_field_name(
            'compile_time_parameters')
        self.assertEqual([p.type for p in parameters], ['group_parameter'])

    def test_group(self):
        tree = self.parse(
            b'let Point = group { x: Number, y: Number = 0, };')
        group = self.first(tree, 'group')
        fields = group.children_by_field_name('fields')
        self.assertEqual([f.child_by_field_name('name').text
                          for f in fields], [b'x', b'y'])
        self.assertEqual(fields[1].child_by_field_name('value').text, b'0')

    def test_either(self):
        tree = self.parse(b'let Color = either { red, green, blue };')
        either = self.first(tree, 'either')
        variants = either.children_by_field_name('variants')
        self.assertEqual([v.text for v in variants],
                         [b'red', b'green', b'blue'])

    def test_object_constructor(self):
        tree = self.parse(b'let p = new Point { x = 1, y = 2 };')
        constructor = self.first(tree, 'object_constructor')
        self.assertEqual(constructor.child_by_field_name('type').text,
                         b'Point')
        values = constructor.children_by_field_name('values')
        self.assertEqual([v.child_by_field_name('name').text
                          for v in values], [b'x', b'y'])

    def test_extend(self):
        tree = self.parse(b'extensionof Number tobe Text { zero = 0 };')
        extend = self.first(tree, 'extend')
        self.assertEqual(extend.child_by_field_name('target').text,
                         b'Number')
        self.assertEqual(extend.child_by_field_name('type').text, b'Text')
        self.assertEqual(len(extend.children_by_field_name('values')), 1)

    def test_foreach(self):
        tree = self.parse(b'foreach item in items { print(item); };')
        loop = self.first(tree, 'foreach')
        self.assertEqual(loop.child_by_field_name('binding').text, b'item')
        self.assertEqual(loop.child_by_field_name('iterable').text,
                         b'items')
        self.assertEqual(loop.child_by_field_name('body').type, 'block')

    def test_list(self):
        tree = self.parse(b'let xs = [1, "two", [3]];')
        outer = self.first(tree, 'list')
        self.assertEqual([child.type for child in outer.named_children],
                         ['number', 'string', 'list'])

    def test_tags(self):
        tree = self.parse(b'#[public, 2] #[inline] let x = 1;')
        declaration = self.first(tree, 'declaration')
        tags = declaration.children_by_field_name('tags')
        self.assertEqual(len(tags), 2)
        self.assertEqual([v.text for v in
                          tags[0].children_by_field_name('values')],
                         [b'public', b'2'])

    def test_comments(self):
        tree = self.parse(b'# note\nlet x = 1; # trailing\n')
        types = [child.type for child in tree.root_node.children]
        self.assertEqual(types, ['comment', 'statement', 'comment'])

    def test_unicode_whitespace(self):
        tree = self.parse(u'let x = 1;'.encode('utf-8'))
        declaration = self.first(tree, 'declaration')
        self.assertEqual(declaration.child_by_field_name('name').text, b'x')

    def test_error_is_contained(self):
        tree = self.parse(b'let x = ;\nlet y = 2;', errors=True)
        statements = tree.root_node.children
        self.assertEqual(len(statements), 2)
        self.assertTrue(statements[0].has_error)
        self.assertFalse(statements[1].has_error)
        self.assertEqual(statements[1].text, b'let y = 2;')

    def test_incremental_edit(self):
        text = b'let a = 1;\nlet b = a < 2;\nlet c = f<T>(b);\n'
        tree = self.parse(text)
        start = text.index(b'2')
        edit = Edit.replacing(text, start, start + 1, b'20')
        new_tree = self.parser.reparse(tree, edit, edit.apply(text))
        fresh = Parser(cabin.language()).parse(new_tree.text)
        self.assertEqual(new_tree.sexp(), fresh.sexp())
        self.assertIs(new_tree.root_node.child(0).node,
                      tree.root_node.child(0).node)

    def test_spacing_changes_meaning(self):
        text = b'f<T>(b);'
        tree = self.parse(text)
        self.assertTrue(find_all(tree.root_node, 'function_call'))
        edit = Edit.replacing(text, 1, 1, b' ')
        new_tree = self.parser.reparse(tree, edit, edit.apply(text))
        fresh = Parser(cabin.language()).parse(new_tree.text)
        self.assertEqual(new_tree.sexp(), fresh.sexp())


if __name__ == "__main__":
    unittest.main()

import threading
import unittest
from unittest import mock

from cabinparse import Parser, Edit
from cabinparse.languages import cabin
from cabinparse.tests.specs import arith

THREADS = 8


def run_together(work, count=THREADS):
    """
    Run work(i) for i in range(count) on as many threads, released at once.
    Returns the results in order and any exceptions raised.
    """
    barrier = threading.Barrier(count)
    results = [None] * count
    errors = []

    def run(i):
        try:
            barrier.wait()
            results[i] = work(i)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=run, args=(i,)) for i in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return results, errors


def leaf_view(tree):
    return [(leaf.byte_range, leaf.text, leaf.type) for leaf in tree.leaves()]


class TestSharedLanguage(unittest.TestCase):
    def setUp(self):
        self.language = arith.Arith.language()

    def text(self, i):
        if i % 3 == 2:
            return b'f(%d, +;\n(x%d;\n' % (i, i)
        return b'%d+%d*x;\nf(%d, g(y));\n' % (i, i + 1, i)

    def test_parallel_parses(self):
        expected = [Parser(self.language).parse(self.text(i)).sexp()
                    for i in range(THREADS)]

        def work(i):
            parser = Parser(self.language)
            return [parser.parse(self.text(i)).sexp() for _ in range(5)]

        results, errors = run_together(work)
        self.assertEqual(errors, [])
        for i, sexps in enumerate(results):
            self.assertEqual(sexps, [expected[i]] * 5)

    def test_parallel_reparses_of_one_tree(self):
        text = b'1+2;\n3*4;\nf(5);\n'
        old = Parser(self.language).parse(text)
        old_sexp = old.sexp()
        old_leaves = leaf_view(old)

        edits = []
        for i in range(THREADS):
            start = [0, 5, 12][i % 3]
            edits.append(Edit.replacing(text, start, start + 1,
                                        b'%d' % (10 + i)))
        expected = [Parser(self.language).parse(edit.apply(text)).sexp()
                    for edit in edits]

        def work(i):
            parser = Parser(self.language)
            return parser.reparse(old, edits[i], edits[i].apply(text)).sexp()

        results, errors = run_together(work)
        self.assertEqual(errors, [])
        self.assertEqual(results, expected)
        self.assertEqual(old.sexp(), old_sexp)
        self.assertEqual(leaf_view(old), old_leaves)
        self.assertEqual(old.text, text)
        self.assertEqual(old.edits, ())


class TestLanguageConstruction(unittest.TestCase):
    def test_first_use_from_many_threads(self):
        built = cabin.Cabin._language
        cabin.Cabin._language = None
        try:
            with mock.patch.object(cabin.Cabin, '_load_or_compile',
                                   wraps=cabin.Cabin._load_or_compile) \
                    as compile_:
                results, errors = run_together(lambda i: cabin.language())
            self.assertEqual(errors, [])
            self.assertEqual(compile_.call_count, 1)
            for language in results:
                self.assertIs(language, results[0])
            tree = Parser(results[0]).parse(b'let x = 1;')
            self.assertFalse(tree.has_error)
        finally:
            if built is not None:
                cabin.Cabin._language = built


if __name__ == "__main__":
    unittest.main()

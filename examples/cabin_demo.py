#!/bin/env python
# ===============================================================================
#
# Usage: cabin_demo.py [-v] [-c <cache>] <file> [<start> <end> <text>]
#
# Parses a Cabin source file and prints its syntax tree.  With the three
# optional arguments, the bytes [<start>, <end>) of the file are then
# replaced by <text>, the tree is reparsed incrementally, and the new tree
# is printed together with the ranges that changed and how much of the old
# tree was reused.
#
# Generating the Cabin tables takes a few seconds.  Pass -c to keep the
# compiled language in a cache file between runs.
#
# ===============================================================================

import logging
import sys

from cabinparse import Parser, Edit
from cabinparse.languages import cabin


def show(tree):
    print(tree.sexp())
    if tree.has_error:
        for leaf in tree.leaves():
            if leaf.is_error or leaf.is_missing:
                print("  %s at %d:%d" % ("missing %s" % leaf.type
                                         if leaf.is_missing else "error",
                                         leaf.start_point.row + 1,
                                         leaf.start_point.column + 1))


def main(args):
    logging.basicConfig(level=logging.INFO)
    verbose = False
    cache_file = None
    while args and args[0].startswith('-'):
        flag = args.pop(0)
        if flag == '-v':
            verbose = True
        elif flag == '-c' and args:
            cache_file = args.pop(0)
        else:
            sys.exit("unknown option: %s" % flag)
    if len(args) not in (1, 4):
        sys.exit("Usage: cabin_demo.py [-v] [-c <cache>] <file> "
                 "[<start> <end> <text>]")

    if cache_file is not None:
        language = cabin.Cabin.language(cache_file=cache_file)
    else:
        language = cabin.language()
    if verbose:
        logging.getLogger('cabinparse').setLevel(logging.DEBUG)
    parser = Parser(language, verbose=verbose)

    with open(args[0], 'rb') as f:
        text = f.read()
    tree = parser.parse(text)
    show(tree)

    if len(args) == 4:
        edit = Edit.replacing(text, int(args[1]), int(args[2]), args[3])
        new_tree = parser.reparse(tree, edit, edit.apply(text))
        print()
        show(new_tree)
        print("changed: %r" % tree.edit(edit).changed_ranges(new_tree))
        print("reused: %d leaves, %d subtrees" % parser.reuse_stats)


if __name__ == '__main__':
    main(sys.argv[1:])

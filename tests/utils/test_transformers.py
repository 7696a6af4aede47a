from xjconv.utils.transformers import *
from xjconv.utils.node import XNodeType, create_record, create_value, create_comment
from xjconv.utils.transform import transform_tree
import re
import unittest

TO_JSON = TransformContext.root(create_value('v', ''), Format.JSON)
TO_XML = TransformContext.root(create_value('v', ''), Format.XML)


class TestBooleanTransformer(unittest.TestCase):

    def test_to_json(self):
        transformer = BooleanTransformer()
        cases = [('true', True), (' Yes ', True), ('1', True), ('OFF', False), ('no', False),
                 ('maybe', 'maybe'), (1, 1), (None, None)]
        for value, expected in cases:
            with self.subTest(value=value):
                self.assertEqual(transformer.transform(value, TO_JSON), expected)

    def test_to_xml(self):
        with self.subTest():
            self.assertEqual(BooleanTransformer().transform(True, TO_XML), 'true')
            self.assertEqual(BooleanTransformer().transform(False, TO_XML), 'false')
        with self.subTest():
            transformer = BooleanTransformer(true_values=['Y'], false_values=['N'])
            self.assertEqual(transformer.transform(False, TO_XML), 'N')
        with self.subTest():
            self.assertEqual(BooleanTransformer().transform('text', TO_XML), 'text')

    def test_case_sensitive(self):
        transformer = BooleanTransformer(ignore_case=False)
        with self.subTest():
            self.assertEqual(transformer.transform('TRUE', TO_JSON), 'TRUE')
        with self.subTest():
            self.assertIs(transformer.transform('true', TO_JSON), True)


class TestNumberTransformer(unittest.TestCase):

    def test_to_json(self):
        transformer = NumberTransformer()
        cases = [('42', 42), ('-7', -7), ('-3.5', -3.5), ('.5', 0.5), ('1e3', 1000.0), ('2.5E-1', 0.25),
                 ('abc', 'abc'), ('1.2.3', '1.2.3'), ('', ''), (True, True)]
        for value, expected in cases:
            with self.subTest(value=value):
                self.assertEqual(transformer.transform(value, TO_JSON), expected)

    def test_forms(self):
        with self.subTest():
            self.assertEqual(NumberTransformer(integers=False).transform('42', TO_JSON), '42')
        with self.subTest():
            self.assertEqual(NumberTransformer(decimals=False).transform('4.2', TO_JSON), '4.2')
        with self.subTest():
            self.assertEqual(NumberTransformer(scientific=False).transform('1e3', TO_JSON), '1e3')
        with self.subTest():
            self.assertEqual(NumberTransformer(precision=2).transform('3.14159', TO_JSON), 3.14)

    def test_to_xml(self):
        cases = [(NumberTransformer(), 42, '42'),
                 (NumberTransformer(), 2.5, '2.5'),
                 (NumberTransformer(precision=2), 2.5, '2.50'),
                 (NumberTransformer(), True, True),
                 (NumberTransformer(), 'text', 'text')]
        for transformer, value, expected in cases:
            with self.subTest(value=value):
                self.assertEqual(transformer.transform(value, TO_XML), expected)


class TestRegexTransformer(unittest.TestCase):

    def test_replace(self):
        with self.subTest():
            self.assertEqual(RegexTransformer(r'\s+', ' ').transform('a  \n b', TO_JSON), 'a b')
        with self.subTest():
            self.assertEqual(RegexTransformer('a', 'b', count=1).transform('aaa', TO_JSON), 'baa')
        with self.subTest():
            self.assertEqual(RegexTransformer('abc', 'x', flags=re.IGNORECASE).transform('ABC', TO_JSON), 'x')
        with self.subTest():
            self.assertEqual(RegexTransformer(r'\d', 'x').transform(12, TO_JSON), 12)

    def test_function_replacement(self):
        transformer = RegexTransformer(r'\d+', lambda match: str(int(match.group()) * 2))
        self.assertEqual(transformer.transform('a1b20', TO_JSON), 'a2b40')


class TestTreeTransformers(unittest.TestCase):

    def test_remove_nodes(self):
        tree = create_record('root')
        tree.add_child(create_value('keep', 1))
        tree.add_child(create_value('deprecated', 2))
        tree.add_child(create_value('obsolete', 3))
        transform_tree(tree, [RemoveNodesTransformer('deprecated', 'obsolete')], Format.JSON)
        self.assertEqual([child.name for child in tree.children], ['keep'])

    def test_remove_nodes_scoped(self):
        tree = create_record('root')
        inner = tree.add_child(create_record('inner'))
        inner.add_child(create_value('note', 1))
        tree.add_child(create_value('note', 2))
        transform_tree(tree, [RemoveNodesTransformer('note', paths='root.inner.*')], Format.JSON)
        with self.subTest():
            self.assertEqual(inner.children, [])
        with self.subTest():
            self.assertEqual([child.name for child in tree.children], ['inner', 'note'])

    def test_filter_children(self):
        tree = create_record('root')
        tree.add_child(create_comment('note'))
        tree.add_child(create_value('kept', 1))
        transform_tree(tree, [FilterChildrenTransformer(lambda child: child.type is not XNodeType.COMMENT)],
                       Format.XML)
        self.assertEqual([child.name for child in tree.children], ['kept'])

    def test_metadata(self):
        tree = create_record('root')
        user = tree.add_child(create_record('user'))
        user.add_child(create_value('name', 'x'))
        user.set_metadata('validate', {'required': ['name'], 'strict': False})
        transform_tree(tree, [MetadataTransformer({'validate': {'strict': True}}, selector='user')], Format.JSON)
        with self.subTest():
            self.assertEqual(user.get_metadata('validate'), {'required': ['name'], 'strict': True})
        with self.subTest():
            self.assertEqual(tree.metadata, {})
            self.assertEqual(user.find_child('name').metadata, {})

    def test_metadata_selection(self):
        def build():
            tree = create_record('root')
            tree.add_child(create_record('item_1')).add_child(create_value('deep', 1))
            tree.add_child(create_record('other'))
            return tree

        def marked(tree):
            return [node.name for node in tree.walk() if node.has_metadata('seen')]

        cases = [({'apply_to_root': True}, ['root']),
                 ({'apply_to_all': True}, ['root', 'item_1', 'deep', 'other']),
                 ({'apply_to_all': True, 'max_depth': 1}, ['root', 'item_1', 'other']),
                 ({'selector': re.compile(r'^item_\d+$')}, ['item_1']),
                 ({'selector': lambda node, context: node.has_value}, ['deep'])]
        for options, expected in cases:
            with self.subTest(options=options):
                tree = build()
                transform_tree(tree, [MetadataTransformer({'seen': True}, **options)], Format.XML)
                self.assertEqual(marked(tree), expected)

    def test_metadata_replace_and_remove(self):
        node = create_record('root')
        node.set_metadata('format', {'indent': 2, 'wrap': True})
        node.set_metadata('stale', 1)
        transform_tree(node, [MetadataTransformer({'format': {'indent': 4}}, apply_to_root=True, replace=True,
                                                  remove_keys=['stale'])], Format.XML)
        self.assertEqual(node.metadata, {'format': {'indent': 4}})

    def test_metadata_needs_selection(self):
        with self.subTest():
            with self.assertRaises(ValueError):
                MetadataTransformer({'a': 1})
        with self.subTest():
            with self.assertRaises(ValueError):
                MetadataTransformer(['a'], apply_to_all=True)


if __name__ == '__main__':
    unittest.main()

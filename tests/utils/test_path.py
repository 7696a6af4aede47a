from xjconv.utils.path import *
from xjconv.utils.node import create_record, create_collection, create_field, create_attribute
import unittest


class TestPathMatcher(unittest.TestCase):

    def test_single_level_wildcard(self):
        matcher = PathMatcher('root.items.*.price')
        with self.subTest():
            self.assertTrue(matcher.match_path('root.items.0.price'))
        with self.subTest():
            self.assertTrue(matcher.match_path('root.items.9.price'))
        with self.subTest():
            self.assertFalse(matcher.match_path('root.items.0.price.currency'))
        with self.subTest():
            self.assertFalse(matcher.match_path('root.items.price'))

    def test_exact(self):
        matcher = PathMatcher('root.item')
        with self.subTest():
            self.assertTrue(matcher.match_path('root.item'))
        with self.subTest():
            self.assertFalse(matcher.match_path('root.items'))
        with self.subTest():
            self.assertFalse(matcher.match_path('root'))

    def test_deep_wildcard(self):
        matcher = PathMatcher('root.**.price')
        with self.subTest():
            self.assertTrue(matcher.match_path('root.price'))
        with self.subTest():
            self.assertTrue(matcher.match_path('root.a.b.c.price'))
        with self.subTest():
            self.assertFalse(matcher.match_path('root.a.price.value'))
        with self.subTest():
            self.assertTrue(PathMatcher('**').match_path('any.path.at.all'))

    def test_partial_segment_wildcard(self):
        matcher = PathMatcher('root.item_*')
        with self.subTest():
            self.assertTrue(matcher.match_path('root.item_0'))
        with self.subTest():
            self.assertFalse(matcher.match_path('root.other_0'))

    def test_attribute_patterns(self):
        matcher = PathMatcher('root.item.@id')
        with self.subTest():
            self.assertEqual(matcher.segments, ['root', 'item'])
            self.assertEqual(matcher.attribute, 'id')
        with self.subTest():
            self.assertTrue(matcher.match_path('root.item.id', is_attribute=True))
        with self.subTest():
            # Attributes held as '@name' fields
            self.assertTrue(matcher.match_path('root.item.@id'))
        with self.subTest():
            self.assertFalse(matcher.match_path('root.item.id'))
        with self.subTest():
            self.assertFalse(PathMatcher('root.item.id').match_path('root.item.id', is_attribute=True))

    def test_invalid_patterns(self):
        for pattern in ('', 'root..item', 'root.@'):
            with self.subTest(pattern=pattern):
                with self.assertRaises(ValueError):
                    PathMatcher(pattern)

    def test_compile_patterns(self):
        with self.subTest():
            self.assertEqual(compile_patterns(None), [])
        with self.subTest():
            self.assertEqual([matcher.pattern for matcher in compile_patterns('a.b')], ['a.b'])


class TestTransformContext(unittest.TestCase):

    def setUp(self):
        self.root = create_record('root')
        self.items = self.root.add_child(create_collection('items'))
        self.item = self.items.add_child(create_record('item'))
        self.price = self.item.add_child(create_field('price', '10'))
        self.id = self.item.add_attribute(create_attribute('id', '1'))

    def test_paths(self):
        root_context = TransformContext.root(self.root, Format.JSON)
        items_context = root_context.child(self.items, 0)
        item_context = items_context.child(self.item, 0)
        price_context = item_context.child(self.price, 0)
        with self.subTest():
            self.assertEqual(root_context.path, 'root')
        with self.subTest():
            # Items of a collection are addressed by position
            self.assertEqual(item_context.path, 'root.items.0')
        with self.subTest():
            self.assertEqual(price_context.path, 'root.items.0.price')
        with self.subTest():
            self.assertTrue(PathMatcher('root.items.*.price').matches(price_context))

    def test_attribute_context(self):
        item_context = TransformContext.root(self.root, Format.XML).child(self.items, 0).child(self.item, 0)
        attribute_context = item_context.attribute(self.id)
        with self.subTest():
            self.assertTrue(attribute_context.is_attribute)
            self.assertFalse(item_context.is_attribute)
        with self.subTest():
            self.assertEqual(attribute_context.attribute_name, 'id')
            self.assertEqual(attribute_context.path, 'root.items.0.id')
        with self.subTest():
            self.assertTrue(PathMatcher('**.@id').matches(attribute_context))
            self.assertFalse(PathMatcher('root.items.*.id').matches(attribute_context))

    def test_ancestors(self):
        price_context = TransformContext.root(self.root, Format.XML).child(self.items, 0).child(self.item, 0) \
            .child(self.price, 0)
        with self.subTest():
            self.assertEqual([context.node_name for context in price_context.ancestors()], ['item', 'items', 'root'])
        with self.subTest():
            self.assertIs(price_context.target_format, Format.XML)


if __name__ == '__main__':
    unittest.main()

from xjconv.utils.xml import *
from xjconv.utils.errors import ParseError
from xjconv.utils.node import create_collection, create_record
import unittest

COMPACT = XMLOutputConfig(pretty_print=False, declaration=False)

SIMPLE_DOCUMENT = '<root><item id="1">A</item><item id="2">B</item></root>'
NAMESPACED_DOCUMENT = '<a:root xmlns:a="urn:a"><a:child>x</a:child></a:root>'
MIXED_DOCUMENT = '<p>Hello <b>world</b>!<!--note--><![CDATA[x<y]]><?render fast?></p>'


def expected_simple_tree() -> XNode:
    root = create_record('root')
    for identifier, value in (('1', 'A'), ('2', 'B')):
        item = root.add_child(create_record('item'))
        item.add_attribute(create_attribute('id', identifier))
        item.value = value
    return root


class TestXMLSource(unittest.TestCase):

    def test_structured(self):
        self.assertEqual(XMLSource().convert(SIMPLE_DOCUMENT), expected_simple_tree())

    def test_bytes(self):
        document = '<?xml version="1.0" encoding="UTF-8"?><v>é</v>'.encode('utf-8')
        self.assertEqual(XMLSource().convert(document).value, 'é')

    def test_whitespace(self):
        with self.subTest():
            self.assertEqual(XMLSource().convert('<a>  x  </a>').value, 'x')
        with self.subTest():
            self.assertEqual(XMLSource(XMLSourceConfig(preserve_whitespace=True)).convert('<a>  x  </a>').value, '  x  ')
        with self.subTest():
            tree = XMLSource().convert('<a>\n  <b>1</b>\n  <c/>\n</a>')
            self.assertEqual([child.name for child in tree.children], ['b', 'c'])
        with self.subTest():
            self.assertFalse(XMLSource().convert('<a>   </a>').has_value)
        with self.subTest():
            self.assertFalse(XMLSource().convert('<a/>').has_value)

    def test_attributes_as_fields(self):
        tree = XMLSource(XMLSourceConfig(attribute_handling='fields')).convert('<item id="1">A</item>')
        with self.subTest():
            self.assertEqual(tree.attributes, [])
        with self.subTest():
            self.assertEqual(tree.children, [create_field('@id', '1')])
        with self.subTest():
            self.assertEqual(tree.value, 'A')

    def test_attributes_dropped(self):
        tree = XMLSource(XMLSourceConfig(preserve_attributes=False)).convert('<item id="1">A</item>')
        self.assertEqual((tree.attributes, tree.children), ([], []))

    def test_namespace_preserve(self):
        source = XMLSource()
        tree = source.convert(NAMESPACED_DOCUMENT)
        with self.subTest():
            self.assertEqual((tree.name, tree.ns, tree.label), ('a:root', 'urn:a', None))
        with self.subTest():
            self.assertEqual(tree.children[0].name, 'a:child')
        with self.subTest():
            self.assertEqual(source.namespaces, {'a': 'urn:a'})
        with self.subTest():
            # Declarations never become nodes
            self.assertEqual(tree.attributes, [])

    def test_namespace_label(self):
        tree = XMLSource(XMLSourceConfig(namespace_handling='label')).convert(NAMESPACED_DOCUMENT)
        with self.subTest():
            self.assertEqual((tree.name, tree.ns, tree.label), ('root', 'urn:a', 'a'))
        with self.subTest():
            self.assertEqual((tree.children[0].name, tree.children[0].label), ('child', 'a'))

    def test_namespace_strip(self):
        config = XMLSourceConfig(namespace_handling='strip', preserve_namespaces=False)
        tree = XMLSource(config).convert(NAMESPACED_DOCUMENT)
        self.assertEqual((tree.name, tree.ns, tree.label), ('root', None, None))

    def test_default_namespace(self):
        source = XMLSource()
        tree = source.convert('<root xmlns="urn:d"><child/></root>')
        with self.subTest():
            self.assertEqual((tree.name, tree.ns), ('root', 'urn:d'))
            self.assertEqual(tree.children[0].ns, 'urn:d')
        with self.subTest():
            self.assertEqual(source.namespaces, {'': 'urn:d'})

    def test_mixed_content(self):
        tree = XMLSource().convert(MIXED_DOCUMENT)
        with self.subTest():
            self.assertEqual([(child.type, child.name) for child in tree.children],
                             [(XNodeType.VALUE, '#text'),
                              (XNodeType.RECORD, 'b'),
                              (XNodeType.VALUE, '#text'),
                              (XNodeType.COMMENT, '#comment'),
                              (XNodeType.DATA, '#cdata'),
                              (XNodeType.INSTRUCTION, 'render')])
        with self.subTest():
            self.assertEqual([child.value for child in tree.children],
                             ['Hello', 'world', '!', 'note', 'x<y', 'fast'])
        with self.subTest():
            self.assertEqual(tree.text_content(), 'Helloworld!x<y')

    def test_preservation_flags(self):
        config = XMLSourceConfig(preserve_comments=False, preserve_cdata=False, preserve_processing_instructions=False)
        tree = XMLSource(config).convert(MIXED_DOCUMENT)
        with self.subTest():
            self.assertEqual([child.name for child in tree.children], ['#text', 'b', '#text'])
        with self.subTest():
            self.assertEqual(XMLSource(config).convert('<a><![CDATA[text]]><!--c--></a>'), create_record('a'))
        with self.subTest():
            tree = XMLSource().convert('<a><![CDATA[text]]></a>')
            self.assertEqual(tree.children, [create_data('text')])
        with self.subTest():
            tree = XMLSource(XMLSourceConfig(preserve_text_nodes=False)).convert('<a>text<b/></a>')
            self.assertEqual([child.name for child in tree.children], ['b'])

    def test_invalid_input(self):
        with self.subTest():
            with self.assertRaises(ParseError):
                XMLSource().convert('<a><b></a>')
        with self.subTest():
            with self.assertRaises(ValidationError):
                XMLSource().convert('   ')
        with self.subTest():
            with self.assertRaises(ValidationError):
                XMLSource().convert(42)


class TestXMLOutput(unittest.TestCase):

    def test_round_trip(self):
        for document in (SIMPLE_DOCUMENT, NAMESPACED_DOCUMENT, '<a><b><c>1</c><d/></b><e>2</e></a>'):
            with self.subTest(document=document):
                self.assertEqual(XMLOutput(COMPACT).convert(XMLSource().convert(document)), document)

    def test_round_trip_label(self):
        tree = XMLSource(XMLSourceConfig(namespace_handling='label')).convert(NAMESPACED_DOCUMENT)
        output = XMLOutput(XMLOutputConfig(namespace_handling='label', pretty_print=False, declaration=False))
        self.assertEqual(output.convert(tree), NAMESPACED_DOCUMENT)

    def test_strip_uses_default_namespace(self):
        tree = XMLSource().convert(NAMESPACED_DOCUMENT)
        output = XMLOutput(XMLOutputConfig(namespace_handling='strip', pretty_print=False, declaration=False))
        self.assertEqual(output.convert(tree), '<root xmlns="urn:a"><child>x</child></root>')

    def test_namespaced_attribute(self):
        document = '<root xmlns:x="urn:x" x:id="1"/>'
        self.assertEqual(XMLOutput(COMPACT).convert(XMLSource().convert(document)), document)

    def test_mixed_content_round_trip(self):
        source = XMLSource(XMLSourceConfig(preserve_whitespace=True))
        with self.subTest():
            self.assertEqual(XMLOutput(COMPACT).convert(source.convert(MIXED_DOCUMENT)), MIXED_DOCUMENT)
        with self.subTest():
            pretty = XMLOutput(XMLOutputConfig(declaration=False))
            self.assertEqual(pretty.convert(source.convert(MIXED_DOCUMENT)), MIXED_DOCUMENT)

    def test_pretty_print(self):
        expected = ('<?xml version="1.0" encoding="UTF-8"?>\n'
                    '<root>\n'
                    '  <item id="1">A</item>\n'
                    '  <item id="2">B</item>\n'
                    '  <empty/>\n'
                    '  <!--done-->\n'
                    '</root>')
        tree = XMLSource().convert('<root><item id="1">A</item><item id="2">B</item><empty/><!--done--></root>')
        self.assertEqual(XMLOutput().convert(tree), expected)

    def test_pretty_print_keeps_whitespace_text(self):
        document = '<p><b>x</b> <i>y</i></p>'
        tree = XMLSource(XMLSourceConfig(preserve_whitespace=True)).convert(document)
        output = XMLOutput(XMLOutputConfig(declaration=False)).convert(tree)
        with self.subTest():
            self.assertEqual(output, document)
        with self.subTest():
            self.assertEqual(XMLSource(XMLSourceConfig(preserve_whitespace=True)).convert(output), tree)

    def test_pretty_print_indent_and_escaping(self):
        root = create_record('a')
        inner = root.add_child(create_record('b'))
        inner.add_child(create_value('c', 'x & "y" <z>'))
        inner.set_attribute('q', 'say "hi"')
        expected = ('<a>\n'
                    '    <b q="say &quot;hi&quot;">\n'
                    '        <c>x &amp; "y" &lt;z&gt;</c>\n'
                    '    </b>\n'
                    '</a>')
        self.assertEqual(XMLOutput(XMLOutputConfig(indent=4, declaration=False)).convert(root), expected)

    def test_declaration_encoding(self):
        output = XMLOutput(XMLOutputConfig(encoding='ISO-8859-1'))
        self.assertEqual(output.convert(create_record('a')), '<?xml version="1.0" encoding="ISO-8859-1"?>\n<a/>')

    def test_attribute_fields(self):
        item = create_record('item')
        item.add_child(create_field('@id', '1'))
        item.value = 'A'
        self.assertEqual(XMLOutput(COMPACT).convert(item), '<item id="1">A</item>')

    def test_scalars(self):
        root = create_record('r')
        root.add_child(create_field('yes', True))
        root.add_child(create_field('count', 3))
        root.add_child(create_value('nothing', None))
        self.assertEqual(XMLOutput(COMPACT).convert(root), '<r><yes>true</yes><count>3</count><nothing/></r>')

    def test_collections(self):
        root = create_record('root')
        books = root.add_child(create_collection('books'))
        books.add_child(create_value('book', 'a'))
        books.add_child(create_value('book', 'b'))
        items = root.add_child(create_collection('item'))
        items.add_child(create_value('item', 1))
        items.add_child(create_value('item', 2))
        self.assertEqual(XMLOutput(COMPACT).convert(root),
                         '<root><books><book>a</book><book>b</book></books><item>1</item><item>2</item></root>')

    def test_preservation_flags(self):
        root = create_record('r')
        root.add_child(create_comment('c'))
        root.add_child(create_data('d'))
        root.add_child(create_instruction('pi', 'x'))
        config = XMLOutputConfig(pretty_print=False, declaration=False, preserve_comments=False,
                                 preserve_cdata=False, preserve_processing_instructions=False)
        self.assertEqual(XMLOutput(config).convert(root), '<r>d</r>')

    def test_invalid_trees(self):
        invalid = {'name': create_record('my element'),
                   'character': create_value('v', 'bell\x07'),
                   'root': create_comment('c')}
        comment = create_record('r')
        comment.add_child(create_comment('a -- b'))
        invalid['comment'] = comment
        cdata = create_record('r')
        cdata.add_child(create_data('a ]]> b'))
        invalid['cdata'] = cdata
        for case, tree in invalid.items():
            with self.subTest(case=case):
                with self.assertRaises(ProcessingError):
                    XMLOutput().convert(tree)

    def test_unbound_prefix_is_dropped(self):
        tree = create_record('x:root')
        self.assertEqual(XMLOutput(COMPACT).convert(tree), '<root/>')


class TestFindNamespaces(unittest.TestCase):

    def test_exist_namespaces(self):
        document = MinidomProvider().parse('<a:root xmlns:a="urn:a"><b:c xmlns:b="urn:b" xmlns="urn:d"/></a:root>')
        self.assertEqual(find_namespaces(document), {'a': 'urn:a', 'b': 'urn:b', '': 'urn:d'})

    def test_no_namespaces(self):
        document = MinidomProvider().parse('<catalog><book id="1"/></catalog>')
        self.assertEqual(find_namespaces(document), {})


class TestQualifiedNames(unittest.TestCase):

    def test_split(self):
        with self.subTest():
            self.assertEqual(split_qualified_name('gml:pos'), ('gml', 'pos'))
        with self.subTest():
            self.assertEqual(split_qualified_name('pos'), (None, 'pos'))

    def test_validity(self):
        for name in ('a', 'a:b', '_x-1.2', 'élément'):
            with self.subTest(name=name):
                self.assertTrue(QUALIFIED_NAME.match(name))
        for name in ('1a', 'a b', '#text', 'a:b:c', ''):
            with self.subTest(name=name):
                self.assertFalse(QUALIFIED_NAME.match(name))


if __name__ == '__main__':
    unittest.main()

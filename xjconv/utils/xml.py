"""
Copyright 2020 EUROCONTROL
==========================================

Redistribution and use in source and binary forms, with or without modification, are permitted
provided that the following conditions are met:

1. Redistributions of source code must retain the above copyright notice, this list of conditions
   and the following disclaimer.
2. Redistributions in binary form must reproduce the above copyright notice, this list of
conditions
   and the following disclaimer in the documentation and/or other materials provided with the
   distribution.
3. Neither the name of the copyright holder nor the names of its contributors may be used to
endorse
   or promote products derived from this software without specific prior written permission.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR
IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED WARRANTIES OF MERCHANTABILITY AND
FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE,
DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER
IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT
OF
THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.

==========================================

Editorial note: this license is an instance of the BSD license template as provided by the Open
Source Initiative: http://opensource.org/licenses/BSD-3-Clause

Details on EUROCONTROL: http://www.eurocontrol.int
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple, Union
from xml.dom import Node, XML_NAMESPACE
from xml.sax.saxutils import escape

from xjconv.utils.config import XMLSourceConfig, XMLOutputConfig, NamespaceHandling, AttributeHandling
from xjconv.utils.dom import DOMProvider, MinidomProvider
from xjconv.utils.errors import XJConvError, ProcessingError, ValidationError
from xjconv.utils.node import (XNode, XNodeType, ATTRIBUTE_MARKER, TEXT_NAME, scalar_to_text, create_record,
                               create_attribute, create_field, create_value, create_data, create_comment,
                               create_instruction)

import logging

__author__ = "EUROCONTROL (SWIM)"

logger = logging.getLogger(__name__)

_NAME_START = ('A-Z_a-z\u00C0-\u00D6\u00D8-\u00F6\u00F8-\u02FF\u0370-\u037D\u037F-\u1FFF\u200C-\u200D'
               '\u2070-\u218F\u2C00-\u2FEF\u3001-\uD7FF\uF900-\uFDCF\uFDF0-\uFFFD')
_NAME_CHAR = _NAME_START + '\\-.0-9\u00B7\u0300-\u036F\u203F-\u2040'
_NCNAME = '[{}][{}]*'.format(_NAME_START, _NAME_CHAR)
QUALIFIED_NAME = re.compile(r'^{0}(?::{0})?\Z'.format(_NCNAME))
INVALID_CHARACTERS = re.compile('[^\u0009\u000A\u000D\u0020-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]')

XML_DECLARATION = '<?xml version="1.0" encoding="{}"?>'

_ATTRIBUTE_ENTITIES = {'"': '&quot;', '\n': '&#10;', '\r': '&#13;', '\t': '&#9;'}

_KEPT_NODE_TYPES = {
    Node.ELEMENT_NODE: None,
    Node.TEXT_NODE: 'preserve_text_nodes',
    Node.CDATA_SECTION_NODE: 'preserve_cdata',
    Node.COMMENT_NODE: 'preserve_comments',
    Node.PROCESSING_INSTRUCTION_NODE: 'preserve_processing_instructions',
}


def split_qualified_name(name: str) -> Tuple[Optional[str], str]:
    """
    :param name: An element or attribute name, possibly prefixed ('gml:pos').
    :return: A tuple of the prefix (None when there is none) and the local name.
    """
    if ':' in name:
        prefix, local_name = name.split(':', 1)
        return prefix, local_name
    return None, name


def is_namespace_declaration(name: str) -> bool:
    return name == 'xmlns' or name.startswith('xmlns:')


def find_namespaces(document: Any) -> Dict[str, str]:
    """
    Collects every namespace declared in a parsed document.
    :param document: A DOM document.
    :return: A dictionary mapping each prefix to its namespace URI, the default namespace
             is stored under the empty prefix.
    """
    namespaces = {}
    pending = [document.documentElement]
    while pending:
        element = pending.pop()
        for index in range(element.attributes.length):
            attribute = element.attributes.item(index)
            if is_namespace_declaration(attribute.name):
                namespaces[split_qualified_name(attribute.name)[1] if attribute.name != 'xmlns' else ''] = attribute.value
        pending.extend(child for child in element.childNodes if child.nodeType == Node.ELEMENT_NODE)
    return namespaces


class XMLSource:
    """
    Converts XML documents into XNode trees.

    :param config: Options driving the conversion, the defaults are used when none is given.
    :param dom: The DOM provider used to parse documents.
    """

    def __init__(self, config: Optional[XMLSourceConfig] = None, dom: Optional[DOMProvider] = None) -> None:
        self.config = config or XMLSourceConfig()
        self.dom = dom or MinidomProvider()
        self.namespaces = {}  # type: Dict[str, str]

    def convert(self, xml: Union[str, bytes]) -> XNode:
        """
        :param xml: The XML document.
        :raise ValidationError: If the input is not a non empty string.
        :raise ParseError: If the document is malformed.
        :raise ProcessingError: If the conversion fails.
        :return: The root Record of the tree.
        """
        if not isinstance(xml, (str, bytes)):
            raise ValidationError('An XML document must be a string, got {}'.format(type(xml).__name__))
        if not xml.strip():
            raise ValidationError('The XML document is empty')
        document = self.dom.parse(xml)
        self.namespaces = find_namespaces(document)
        try:
            root = self._element_to_node(document.documentElement)
        except XJConvError:
            raise
        except Exception as error:
            raise ProcessingError('Failed to convert the XML document: {}'.format(error)) from error
        logger.debug("Converted XML document with root {} and namespaces {}".format(root.name, self.namespaces))
        return root

    def _names(self, qualified_name: str, local_name: Optional[str], prefix: Optional[str]) -> Tuple[str, Optional[str]]:
        if local_name is None:
            prefix, local_name = split_qualified_name(qualified_name)
        handling = self.config.namespace_handling
        if handling is NamespaceHandling.PRESERVE:
            return qualified_name, None
        if handling is NamespaceHandling.LABEL:
            return local_name, prefix or None
        return local_name, None

    def _namespace(self, dom_node: Any) -> Optional[str]:
        if not self.config.preserve_namespaces:
            return None
        return dom_node.namespaceURI or None

    def _is_kept(self, dom_node: Any) -> bool:
        if dom_node.nodeType not in _KEPT_NODE_TYPES:
            return False
        flag = _KEPT_NODE_TYPES[dom_node.nodeType]
        return flag is None or getattr(self.config, flag)

    def _add_attributes(self, element: Any, node: XNode) -> None:
        for index in range(element.attributes.length):
            attribute = element.attributes.item(index)
            if is_namespace_declaration(attribute.name) or not self.config.preserve_attributes:
                continue
            name, label = self._names(attribute.name, attribute.localName, attribute.prefix)
            ns = self._namespace(attribute)
            if self.config.attribute_handling is AttributeHandling.FIELDS:
                node.add_child(create_field(ATTRIBUTE_MARKER + name, attribute.value, ns=ns, label=label))
            else:
                node.add_attribute(create_attribute(name, attribute.value, ns=ns, label=label))

    def _text(self, text: str) -> str:
        return text if self.config.preserve_whitespace else text.strip()

    def _element_to_node(self, element: Any) -> XNode:
        name, label = self._names(element.tagName, element.localName, element.prefix)
        node = create_record(name, ns=self._namespace(element), label=label)
        self._add_attributes(element, node)

        content = [child for child in element.childNodes if self._is_kept(child)]
        if all(child.nodeType == Node.TEXT_NODE for child in content):
            # Text-only content collapses into the value of the record
            text = self._text(''.join(child.data for child in content))
            if text:
                node.value = text
            return node

        for child in content:
            if child.nodeType == Node.ELEMENT_NODE:
                node.add_child(self._element_to_node(child))
            elif child.nodeType == Node.TEXT_NODE:
                text = self._text(child.data)
                if text:
                    node.add_child(create_value(TEXT_NAME, text))
            elif child.nodeType == Node.CDATA_SECTION_NODE:
                node.add_child(create_data(child.data))
            elif child.nodeType == Node.COMMENT_NODE:
                node.add_child(create_comment(child.data))
            else:
                node.add_child(create_instruction(child.target, child.data))
        return node


class XMLOutput:
    """
    Converts XNode trees into DOM documents and XML strings.

    :param config: Options driving the conversion, the defaults are used when none is given.
    :param dom: The DOM provider used to build and serialize documents.
    """

    def __init__(self, config: Optional[XMLOutputConfig] = None, dom: Optional[DOMProvider] = None) -> None:
        self.config = config or XMLOutputConfig()
        self.dom = dom or MinidomProvider()

    def to_document(self, node: XNode) -> Any:
        """
        :param node: Root of the tree, a Record, Collection, Field or Value.
        :raise ProcessingError: If the tree cannot be represented as a well formed XML document.
        :return: The DOM document.
        """
        if node.type not in (XNodeType.RECORD, XNodeType.COLLECTION, XNodeType.FIELD, XNodeType.VALUE):
            raise ProcessingError('The root of an XML document must be an element, got a {} node'.format(node.type.value))
        document = self.dom.create_document()
        try:
            document.appendChild(self._element(node, document, {'xml': XML_NAMESPACE}))
        except XJConvError:
            raise
        except Exception as error:
            raise ProcessingError('Failed to build the XML document: {}'.format(error)) from error
        return document

    def convert(self, node: XNode) -> str:
        """
        :param node: Root of the tree.
        :raise ProcessingError: If the tree cannot be represented as a well formed XML document.
        :return: The serialized XML document.
        """
        document = self.to_document(node)
        if self.config.pretty_print:
            body = self.format(document.documentElement)
        else:
            body = self.dom.serialize(document.documentElement)
        if self.config.declaration:
            return XML_DECLARATION.format(self.config.encoding) + '\n' + body
        return body

    def _qualify(self,
                 name: str,
                 ns: Optional[str],
                 label: Optional[str],
                 scope: Dict[str, Optional[str]],
                 for_attribute: bool = False) -> Tuple[str, Optional[str], List[Tuple[str, str]]]:
        """
        Rebuilds the qualified name of an element or attribute and the namespace declarations it
        needs. The scope is updated with the declarations.
        :return: A tuple of the qualified name, the namespace and the declarations (prefix, uri).
        """
        prefix, local_name = split_qualified_name(name)
        handling = self.config.namespace_handling
        if handling is NamespaceHandling.STRIP:
            prefix = None
        elif handling is NamespaceHandling.LABEL:
            prefix = label or prefix
        else:
            prefix = prefix or label
        if not self.config.preserve_namespaces:
            ns = None

        declarations = []
        if prefix is not None:
            if ns is not None:
                if scope.get(prefix) != ns:
                    scope[prefix] = ns
                    declarations.append((prefix, ns))
            elif prefix in scope:
                ns = scope[prefix]
            else:
                # An unbound prefix would make the document namespace invalid
                prefix = None
        elif for_attribute:
            ns = None
        elif self.config.preserve_namespaces and scope.get('') != ns:
            scope[''] = ns
            declarations.append(('', ns or ''))

        qualified_name = '{}:{}'.format(prefix, local_name) if prefix else local_name
        if not QUALIFIED_NAME.match(qualified_name):
            raise ProcessingError('"{}" is not a valid XML name'.format(qualified_name))
        return qualified_name, ns, declarations

    @staticmethod
    def _check_text(text: str, forbidden: Optional[str] = None, kind: str = 'text') -> str:
        invalid = INVALID_CHARACTERS.search(text)
        if invalid:
            raise ProcessingError('Character {!r} is not allowed in XML {}'.format(invalid.group(), kind))
        if forbidden and forbidden in text:
            raise ProcessingError('"{}" is not allowed in XML {}'.format(forbidden, kind))
        return text

    @staticmethod
    def _is_attribute_child(node: XNode) -> bool:
        return (node.type in (XNodeType.FIELD, XNodeType.VALUE, XNodeType.ATTRIBUTE)
                and node.name.startswith(ATTRIBUTE_MARKER))

    @staticmethod
    def _is_element_group(node: XNode) -> bool:
        # A collection whose items carry its own name stands for repeated sibling elements
        return bool(node.children) and all(child.name == node.name for child in node.children)

    def _set_attribute(self, element: Any, attribute: XNode, scope: Dict[str, Optional[str]]) -> None:
        name = attribute.name[len(ATTRIBUTE_MARKER):] if attribute.name.startswith(ATTRIBUTE_MARKER) else attribute.name
        qualified_name, ns, declarations = self._qualify(name, attribute.ns, attribute.label, scope, for_attribute=True)
        for prefix, uri in declarations:
            self.dom.declare_namespace(element, prefix, uri)
        value = self._check_text(scalar_to_text(attribute.value), kind='attribute values')
        self.dom.set_attribute(element, qualified_name, value, ns=ns)

    def _element(self, node: XNode, document: Any, scope: Dict[str, Optional[str]]) -> Any:
        scope = dict(scope)
        qualified_name, ns, declarations = self._qualify(node.name, node.ns, node.label, scope)
        element = self.dom.create_element(document, qualified_name, ns)
        for prefix, uri in declarations:
            self.dom.declare_namespace(element, prefix, uri)
        for attribute in node.attributes:
            self._set_attribute(element, attribute, scope)

        content = []
        for child in node.children:
            if self._is_attribute_child(child):
                self._set_attribute(element, child, scope)
            else:
                content.append(child)

        if node.has_value:
            text = self._check_text(scalar_to_text(node.value))
            if text:
                element.appendChild(self.dom.create_text(document, text))
        for child in content:
            self._append(child, element, document, scope)
        return element

    def _append(self, node: XNode, element: Any, document: Any, scope: Dict[str, Optional[str]]) -> None:
        node_type = node.type
        if node_type is XNodeType.COMMENT:
            if self.config.preserve_comments:
                text = self._check_text(scalar_to_text(node.value), '--', 'comments')
                if text.endswith('-'):
                    raise ProcessingError('A comment must not end with "-"')
                element.appendChild(self.dom.create_comment(document, text))
        elif node_type is XNodeType.INSTRUCTION:
            if self.config.preserve_processing_instructions:
                if not QUALIFIED_NAME.match(node.name) or node.name.lower() == 'xml':
                    raise ProcessingError('"{}" is not a valid processing instruction target'.format(node.name))
                data = self._check_text(scalar_to_text(node.value), '?>', 'processing instructions')
                element.appendChild(self.dom.create_instruction(document, node.name, data))
        elif node_type is XNodeType.DATA:
            text = scalar_to_text(node.value)
            if self.config.preserve_cdata:
                element.appendChild(self.dom.create_cdata(document, self._check_text(text, ']]>', 'CDATA sections')))
            elif text:
                element.appendChild(self.dom.create_text(document, self._check_text(text)))
        elif node_type is XNodeType.ATTRIBUTE:
            self._set_attribute(element, node, scope)
        elif node.name == TEXT_NAME and node_type in (XNodeType.VALUE, XNodeType.FIELD) and not node.children:
            text = self._check_text(scalar_to_text(node.value))
            if text:
                element.appendChild(self.dom.create_text(document, text))
        elif node_type is XNodeType.COLLECTION and self._is_element_group(node) and not node.attributes:
            for child in node.children:
                self._append(child, element, document, scope)
        else:
            element.appendChild(self._element(node, document, scope))

    def format(self, element: Any, depth: int = 0) -> str:
        """
        Pretty prints a DOM element. Structured content is indented one level per depth, mixed
        and text-only content is written inline as is, empty elements are self-closed.
        :param element: The DOM element.
        :param depth: Indentation level of the element.
        :return: The formatted element.
        """
        padding = ' ' * (self.config.indent * depth)
        children = list(element.childNodes)
        start = '<' + element.tagName + _attributes(element)
        if not children:
            return padding + start + '/>'

        # Text nodes only come from values of the tree, whitespace included
        has_text = any(child.nodeType in (Node.TEXT_NODE, Node.CDATA_SECTION_NODE) for child in children)
        end = '</' + element.tagName + '>'
        if has_text:
            return padding + start + '>' + ''.join(_compact(child) for child in children) + end

        lines = [padding + start + '>']
        for child in children:
            if child.nodeType == Node.ELEMENT_NODE:
                lines.append(self.format(child, depth + 1))
            else:
                lines.append(' ' * (self.config.indent * (depth + 1)) + _compact(child))
        lines.append(padding + end)
        return '\n'.join(lines)


def _attributes(element: Any) -> str:
    attributes = element.attributes
    return ''.join(' {}="{}"'.format(attributes.item(index).name, escape(attributes.item(index).value, _ATTRIBUTE_ENTITIES))
                   for index in range(attributes.length))


def _compact(node: Any) -> str:
    node_type = node.nodeType
    if node_type == Node.TEXT_NODE:
        return escape(node.data)
    if node_type == Node.CDATA_SECTION_NODE:
        return '<![CDATA[' + node.data + ']]>'
    if node_type == Node.COMMENT_NODE:
        return '<!--' + node.data + '-->'
    if node_type == Node.PROCESSING_INSTRUCTION_NODE:
        return '<?' + node.target + (' ' + node.data if node.data else '') + '?>'
    start = '<' + node.tagName + _attributes(node)
    if not node.childNodes:
        return start + '/>'
    return start + '>' + ''.join(_compact(child) for child in node.childNodes) + '</' + node.tagName + '>'

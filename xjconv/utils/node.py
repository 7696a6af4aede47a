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

from copy import deepcopy
import weakref
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

__author__ = "EUROCONTROL (SWIM)"


class XNodeType(Enum):
    """
    Kinds of node of the semantic tree shared by the XML and the JSON codecs.
    The value of each member is the name used for the kind in high-fidelity JSON.
    """
    RECORD = 'record'
    COLLECTION = 'collection'
    FIELD = 'field'
    VALUE = 'value'
    ATTRIBUTE = 'attribute'
    COMMENT = 'comment'
    INSTRUCTION = 'instruction'
    DATA = 'data'


class _Missing:
    """
    Marker of an absent value, distinct from an explicit None (JSON null).
    """

    def __repr__(self):
        return 'MISSING'

    def __bool__(self):
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


MISSING = _Missing()

TEXT_NAME = '#text'
COMMENT_NAME = '#comment'
DATA_NAME = '#cdata'
ATTRIBUTE_MARKER = '@'


def scalar_to_text(value: Any) -> str:
    """
    Renders a scalar the way it is written in an XML document.
    :param value: A string, number, boolean or None.
    :return: The text representation, booleans are lowercase and None is the empty string.
    """
    if value is None or value is MISSING:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def _same_scalar(first: Any, second: Any) -> bool:
    # True == 1 in Python, a boolean must only equal a boolean
    if isinstance(first, bool) or isinstance(second, bool):
        return isinstance(first, bool) and isinstance(second, bool) and first == second
    if first is MISSING or second is MISSING:
        return first is second
    return first == second


class XNode:
    """
    A node of the semantic tree. A single class covers every kind, the kind being given by
    node_type. Children and attributes are owned exclusively by the node, the parent is a weak
    back-reference only used to rebuild paths.

    :param name: Element or property name, or one of the synthetic names ('#text', '#comment',
                 '#cdata') for the synthetic kinds.
    :param node_type: The kind of node.
    :param value: Optional scalar value, MISSING when the node carries no value.
    :param ns: Optional namespace URI.
    :param label: Optional namespace prefix.
    :param id: Optional opaque identifier, only kept through high-fidelity JSON.

    Metadata holds processing hints set by transformers or hooks. It is copied by clone but is not
    part of equality and is not written to any output.
    """

    def __init__(self,
                 name: str,
                 node_type: XNodeType,
                 value: Any = MISSING,
                 ns: Optional[str] = None,
                 label: Optional[str] = None,
                 id: Optional[str] = None) -> None:
        self.name = name
        self.type = node_type
        self.value = value
        self.ns = ns
        self.label = label
        self.id = id
        self.attributes = []  # type: List[XNode]
        self.children = []  # type: List[XNode]
        self.metadata = {}  # type: Dict[str, Any]
        self._parent = None  # type: Optional[weakref.ReferenceType]

    @property
    def parent(self) -> Optional[XNode]:
        return self._parent() if self._parent is not None else None

    @property
    def has_value(self) -> bool:
        return self.value is not MISSING

    def clear_value(self) -> None:
        self.value = MISSING

    def _adopt(self, node: XNode) -> None:
        if not isinstance(node, XNode):
            raise TypeError('Expected an XNode, got {}'.format(type(node).__name__))
        if node.parent is not None:
            raise ValueError('Node "{}" already belongs to "{}"'.format(node.name, node.parent.path))
        ancestor = self
        while ancestor is not None:
            if ancestor is node:
                raise ValueError('Node "{}" cannot be added to its own subtree'.format(node.name))
            ancestor = ancestor.parent
        node._parent = weakref.ref(self)

    def add_child(self, child: XNode) -> XNode:
        """
        Appends a child, taking ownership of it.
        :param child: The node to append, it must not belong to another node.
        :raise ValueError: If the child already has a parent.
        :return: The appended child.
        """
        self._adopt(child)
        self.children.append(child)
        return child

    def insert_child(self, index: int, child: XNode) -> XNode:
        self._adopt(child)
        self.children.insert(index, child)
        return child

    def remove_child(self, child: XNode) -> XNode:
        for position, candidate in enumerate(self.children):
            if candidate is child:
                del self.children[position]
                child._parent = None
                return child
        raise ValueError('"{}" is not a child of "{}"'.format(child.name, self.path))

    def replace_child(self, child: XNode, replacement: XNode) -> XNode:
        for position, candidate in enumerate(self.children):
            if candidate is child:
                self._adopt(replacement)
                child._parent = None
                self.children[position] = replacement
                return replacement
        raise ValueError('"{}" is not a child of "{}"'.format(child.name, self.path))

    def set_children(self, children: Iterable[XNode]) -> None:
        """
        Replaces the whole child list. Current children that are not part of the new list are
        released, new nodes are adopted.
        :param children: The new ordered child list.
        :raise ValueError: If a node appears twice or belongs to another node.
        """
        children = list(children)
        seen = set()
        for child in children:
            if id(child) in seen:
                raise ValueError('Node "{}" appears twice in the child list'.format(child.name))
            seen.add(id(child))
        for child in self.children:
            child._parent = None
        self.children = []
        for child in children:
            self.add_child(child)

    def add_attribute(self, attribute: XNode) -> XNode:
        if attribute.type is not XNodeType.ATTRIBUTE:
            raise ValueError('Only attribute nodes can be added as attributes, got {}'.format(attribute.type.value))
        self._adopt(attribute)
        self.attributes.append(attribute)
        return attribute

    def set_attribute(self, name: str, value: Any, ns: Optional[str] = None, label: Optional[str] = None) -> XNode:
        """
        Sets the value of the attribute with the given name, creating it when it does not exist.
        """
        attribute = self.get_attribute(name)
        if attribute is None:
            return self.add_attribute(create_attribute(name, value, ns=ns, label=label))
        attribute.value = value
        return attribute

    def get_attribute(self, name: str) -> Optional[XNode]:
        for attribute in self.attributes:
            if attribute.name == name:
                return attribute
        return None

    def remove_attribute(self, attribute: XNode) -> XNode:
        for position, candidate in enumerate(self.attributes):
            if candidate is attribute:
                del self.attributes[position]
                attribute._parent = None
                return attribute
        raise ValueError('"{}" is not an attribute of "{}"'.format(attribute.name, self.path))

    def get_metadata(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)

    def set_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value

    def has_metadata(self, key: str) -> bool:
        return key in self.metadata

    def remove_metadata(self, key: str) -> bool:
        """
        :return: True if the key was present.
        """
        if key not in self.metadata:
            return False
        del self.metadata[key]
        return True

    def find_child(self, name: str) -> Optional[XNode]:
        for child in self.children:
            if child.name == name:
                return child
        return None

    def find_children(self, name: str) -> List[XNode]:
        return [child for child in self.children if child.name == name]

    def walk(self) -> Iterator[XNode]:
        """
        Depth-first, pre-order traversal of the subtree, starting with the node itself.
        Attributes are not visited.
        """
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, predicate: Callable[[XNode], bool]) -> Optional[XNode]:
        for node in self.walk():
            if predicate(node):
                return node
        return None

    def find_all(self, predicate: Callable[[XNode], bool]) -> List[XNode]:
        return [node for node in self.walk() if predicate(node)]

    def text_content(self) -> str:
        """
        :return: The concatenation of the value of the node and of every descendant Value, Field
                 and Data node, in document order. Comments and processing instructions are not
                 part of the text.
        """
        if self.type in (XNodeType.COMMENT, XNodeType.INSTRUCTION, XNodeType.ATTRIBUTE):
            return ''
        text = scalar_to_text(self.value) if self.has_value else ''
        return text + ''.join(child.text_content() for child in self.children)

    @property
    def path(self) -> str:
        names = []
        node = self
        while node is not None:
            names.append(node.name)
            node = node.parent
        return '.'.join(reversed(names))

    @property
    def depth(self) -> int:
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    def clone(self, deep: bool = False) -> XNode:
        """
        Copies the node. The copy has no parent.
        :param deep: When False only the node and its attributes are copied, the copy has no
                     children. When True the whole subtree is copied, nothing is shared with
                     the original.
        :return: The copy.
        """
        copy = XNode(self.name, self.type, self.value, ns=self.ns, label=self.label, id=self.id)
        copy.metadata = deepcopy(self.metadata) if deep else dict(self.metadata)
        for attribute in self.attributes:
            copy.add_attribute(attribute.clone())
        if deep:
            for child in self.children:
                copy.add_child(child.clone(deep=True))
        return copy

    def _same_attributes(self, other: XNode) -> bool:
        if len(self.attributes) != len(other.attributes):
            return False
        unmatched = list(other.attributes)
        for attribute in self.attributes:
            for position, candidate in enumerate(unmatched):
                if attribute == candidate:
                    del unmatched[position]
                    break
            else:
                return False
        return True

    def __eq__(self, other):
        if not isinstance(other, XNode):
            return NotImplemented
        return (self.type is other.type
                and self.name == other.name
                and _same_scalar(self.value, other.value)
                and self.ns == other.ns
                and self.label == other.label
                and self._same_attributes(other)
                and self.children == other.children)

    __hash__ = None

    def __repr__(self):
        return 'XNode({}, {}, value={!r}, children={})'.format(self.type.value, self.name, self.value,
                                                                len(self.children))


def create_record(name: str, ns: Optional[str] = None, label: Optional[str] = None) -> XNode:
    return XNode(name, XNodeType.RECORD, ns=ns, label=label)


def create_collection(name: str, ns: Optional[str] = None, label: Optional[str] = None) -> XNode:
    return XNode(name, XNodeType.COLLECTION, ns=ns, label=label)


def create_field(name: str, value: Any = MISSING, ns: Optional[str] = None, label: Optional[str] = None) -> XNode:
    return XNode(name, XNodeType.FIELD, value, ns=ns, label=label)


def create_value(name: str, value: Any) -> XNode:
    return XNode(name, XNodeType.VALUE, value)


def create_attribute(name: str, value: Any, ns: Optional[str] = None, label: Optional[str] = None) -> XNode:
    return XNode(name, XNodeType.ATTRIBUTE, value, ns=ns, label=label)


def create_comment(text: str) -> XNode:
    return XNode(COMMENT_NAME, XNodeType.COMMENT, text)


def create_instruction(target: str, data: str) -> XNode:
    return XNode(target, XNodeType.INSTRUCTION, data)


def create_data(text: str) -> XNode:
    return XNode(DATA_NAME, XNodeType.DATA, text)

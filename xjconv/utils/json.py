from __future__ import annotations
from enum import Enum
from json import loads, dumps, JSONDecodeError
from typing import Dict, Any, Union, List, Optional, Set

from xjconv.utils.config import JSONSourceConfig, JSONOutputConfig, FieldVsValue, EmptyValueHandling, validate_schema
from xjconv.utils.errors import CircularReferenceError, ParseError, ValidationError
from xjconv.utils.node import (XNode, XNodeType, MISSING, ATTRIBUTE_MARKER, TEXT_NAME, COMMENT_NAME, DATA_NAME,
                               create_record, create_collection, create_field, create_value, create_attribute,
                               create_comment, create_data, create_instruction)

import logging

__author__ = "EUROCONTROL (SWIM)"

logger = logging.getLogger(__name__)

VALUE_KEY = '#value'
INSTRUCTION_MARKER = '?'

HIFI_TYPE = '#type'
HIFI_NAME = '#name'
HIFI_ID = '#id'
HIFI_NS = '#ns'
HIFI_LABEL = '#label'
HIFI_VALUE = '#value'
HIFI_ATTRIBUTES = '#attributes'
HIFI_CHILDREN = '#children'


class JSONNodeType(Enum):
    """
    JSON base types.
    """
    string = 1
    integer = 2
    number = 3
    object = 4
    array = 5
    boolean = 6
    null = 7


def infer_json_type(value: Any) -> JSONNodeType:
    """
    :param value: A JSON compatible Python value.
    :raise ValidationError: If the value has no JSON counterpart.
    :return: The JSON type of the value.
    """
    if value is None:
        return JSONNodeType.null
    if isinstance(value, bool):
        return JSONNodeType.boolean
    if isinstance(value, int):
        return JSONNodeType.integer
    if isinstance(value, float):
        return JSONNodeType.number
    if isinstance(value, str):
        return JSONNodeType.string
    if isinstance(value, (list, tuple)):
        return JSONNodeType.array
    if isinstance(value, dict):
        return JSONNodeType.object
    raise ValidationError('{} values cannot be represented in JSON'.format(type(value).__name__))


def check_circular_references(value: Any, path: str = '$', ancestors: Optional[Set[int]] = None) -> None:
    """
    Walks a JSON compatible value and fails on the first container that contains itself.
    :param value: The value to check.
    :param path: JSONPath of the value, used in error messages.
    :param ancestors: Identities of the containers enclosing the value.
    :raise CircularReferenceError: If a container is its own descendant.
    :raise ValidationError: If the value contains something that is not JSON compatible.
    """
    json_type = infer_json_type(value)
    if json_type not in (JSONNodeType.object, JSONNodeType.array):
        return
    ancestors = ancestors if ancestors is not None else set()
    if id(value) in ancestors:
        raise CircularReferenceError(path)
    ancestors.add(id(value))
    if json_type is JSONNodeType.object:
        for key, item in value.items():
            if not isinstance(key, str):
                raise ValidationError('JSON object keys must be strings, got {!r} at {}'.format(key, path))
            check_circular_references(item, '{}.{}'.format(path, key), ancestors)
    else:
        for index, item in enumerate(value):
            check_circular_references(item, '{}[{}]'.format(path, index), ancestors)
    ancestors.discard(id(value))


def parse_json(text: Union[str, bytes]) -> Any:
    try:
        return loads(text)
    except JSONDecodeError as error:
        raise ParseError('Malformed JSON document: {}'.format(error)) from error


def is_high_fidelity(value: Any) -> bool:
    return isinstance(value, dict) and isinstance(value.get(HIFI_TYPE), str) and isinstance(value.get(HIFI_NAME), str)


def _node_from_high_fidelity(data: Dict) -> XNode:
    node = XNode(data[HIFI_NAME], XNodeType(data[HIFI_TYPE]), data.get(HIFI_VALUE, MISSING),
                 ns=data.get(HIFI_NS), label=data.get(HIFI_LABEL), id=data.get(HIFI_ID))
    for attribute in data.get(HIFI_ATTRIBUTES, []):
        node.add_attribute(create_attribute(attribute[HIFI_NAME], attribute.get(HIFI_VALUE, MISSING),
                                            ns=attribute.get(HIFI_NS), label=attribute.get(HIFI_LABEL)))
    for child in data.get(HIFI_CHILDREN, []):
        node.add_child(_node_from_high_fidelity(child))
    return node


def high_fidelity_to_node(data: Dict) -> XNode:
    """
    Rebuilds a tree from its high-fidelity JSON representation.
    :param data: The high-fidelity document, as produced by JSONOutput.to_high_fidelity.
    :raise ValidationError: If the document does not follow the high-fidelity schema.
    :return: The root of the tree.
    """
    validate_schema(data, 'high-fidelity.schema.json')
    return _node_from_high_fidelity(data)


class JSONSource:
    """
    Converts JSON values into XNode trees.

    :param config: Options driving the conversion, the defaults are used when none is given.
    """

    def __init__(self, config: Optional[JSONSourceConfig] = None) -> None:
        self.config = config or JSONSourceConfig()
        self._marked = set()  # type: Set[int]

    def convert(self, value: Any) -> XNode:
        """
        :param value: A JSON compatible value (dict, list, str, int, float, bool or None).
                      High-fidelity documents are recognized and rebuilt exactly.
        :raise CircularReferenceError: If the value references itself.
        :raise ValidationError: If the value is not JSON compatible.
        :return: The root of the tree.
        """
        check_circular_references(value)
        if is_high_fidelity(value):
            return high_fidelity_to_node(value)

        self._marked = set()
        if isinstance(value, dict) and len(value) == 1 and not self._is_marker(next(iter(value))):
            name, content = next(iter(value.items()))
        else:
            name, content = self.config.root_name, value
        root = self._convert(name, content, 0)
        if self._marked:
            self._prune(root)
            logger.debug("Removed {} empty values from the JSON tree".format(len(self._marked)))
        self._marked = set()
        return root

    @staticmethod
    def _is_marker(key: str) -> bool:
        return (key.startswith(ATTRIBUTE_MARKER) or key.startswith(INSTRUCTION_MARKER)
                or key in (VALUE_KEY, TEXT_NAME, COMMENT_NAME, DATA_NAME))

    def _convert(self, name: str, value: Any, depth: int) -> XNode:
        if value is None:
            return self._null(name, depth)
        if isinstance(value, (list, tuple)):
            return self._collection(name, value, depth)
        if isinstance(value, dict):
            return self._record(name, value, depth)
        return self._primitive(name, value, depth)

    def _is_field(self, depth: int) -> bool:
        policy = self.config.field_vs_value
        return policy is FieldVsValue.FIELD or (policy is FieldVsValue.AUTO and depth > 1)

    def _primitive(self, name: str, value: Any, depth: int) -> XNode:
        if self._is_field(depth):
            return create_field(name, value)
        return create_value(name, value)

    def _null(self, name: str, depth: int) -> XNode:
        handling = self.config.empty_value_handling
        if handling is EmptyValueHandling.UNDEFINED:
            return create_field(name)
        if handling is EmptyValueHandling.REMOVE:
            node = create_field(name, None)
            self._marked.add(id(node))
            return node
        return create_value(name, None)

    def _collection(self, name: str, items: List[Any], depth: int) -> XNode:
        node = create_collection(name)
        item_name = self.config.array_item_names.get(name, self.config.default_item_name)
        item_types = {JSONNodeType.number if json_type is JSONNodeType.integer else json_type
                      for json_type in map(infer_json_type, items)}
        indexed = len(item_types) > 1
        for index, item in enumerate(items):
            child_name = '{}_{}'.format(item_name, index) if indexed else item_name
            node.add_child(self._convert(child_name, item, depth + 1))
        return node

    def _record(self, name: str, properties: Dict[str, Any], depth: int) -> XNode:
        node = create_record(name)
        for key, value in properties.items():
            if key == VALUE_KEY and not isinstance(value, (dict, list, tuple)):
                node.value = value
            elif (key.startswith(ATTRIBUTE_MARKER) and len(key) > len(ATTRIBUTE_MARKER)
                  and not isinstance(value, (dict, list, tuple))):
                node.add_attribute(create_attribute(key[len(ATTRIBUTE_MARKER):], value))
            elif key in (COMMENT_NAME, DATA_NAME, TEXT_NAME) or key.startswith(INSTRUCTION_MARKER):
                for item in (value if isinstance(value, (list, tuple)) else [value]):
                    node.add_child(self._synthetic(key, item, depth + 1))
            else:
                node.add_child(self._convert(key, value, depth + 1))
        return node

    def _synthetic(self, key: str, value: Any, depth: int) -> XNode:
        if isinstance(value, (dict, list, tuple)):
            return self._convert(key, value, depth)
        text = '' if value is None else value
        if key == COMMENT_NAME:
            return create_comment(text)
        if key == DATA_NAME:
            return create_data(text)
        if key == TEXT_NAME:
            return create_value(TEXT_NAME, text)
        return create_instruction(key[len(INSTRUCTION_MARKER):], text)

    def _prune(self, node: XNode) -> bool:
        """
        Removes the marked nodes below node, and every container emptied by those removals.
        :return: True when node itself became empty and should be removed by its parent.
        """
        removed = False
        for child in list(node.children):
            if id(child) in self._marked or self._prune(child):
                node.remove_child(child)
                removed = True
        return (removed and not node.children and not node.attributes and not node.has_value
                and node.type in (XNodeType.RECORD, XNodeType.COLLECTION))


def _scalar(value: Any) -> Any:
    return None if value is MISSING else value


class JSONOutput:
    """
    Converts XNode trees into JSON compatible values, either in the standard (lossy) form or in
    the high-fidelity form.

    :param config: Options driving the conversion, the defaults are used when none is given.
    """

    def __init__(self, config: Optional[JSONOutputConfig] = None) -> None:
        self.config = config or JSONOutputConfig()

    def convert(self, node: XNode) -> Dict[str, Any]:
        if self.config.high_fidelity:
            return self.to_high_fidelity(node)
        return self.to_standard(node)

    def serialize(self, node: XNode) -> str:
        """
        :return: The JSON text of the tree, indented when pretty printing is enabled.
        """
        indent = self.config.indent if self.config.pretty_print else None
        return dumps(self.convert(node), indent=indent, ensure_ascii=False)

    def to_standard(self, node: XNode) -> Dict[str, Any]:
        """
        :param node: Root of the tree.
        :return: An object holding the standard rendering of the tree under the root name.
        """
        return {self._key(node): self._standard(node)}

    @staticmethod
    def _key(node: XNode) -> str:
        if node.type is XNodeType.INSTRUCTION:
            return INSTRUCTION_MARKER + node.name
        return node.name

    def _standard(self, node: XNode) -> Any:
        node_type = node.type
        if node_type is XNodeType.COLLECTION:
            return [self._standard(child) for child in node.children]
        if node_type in (XNodeType.COMMENT, XNodeType.INSTRUCTION, XNodeType.DATA, XNodeType.ATTRIBUTE):
            return _scalar(node.value)
        if node_type in (XNodeType.FIELD, XNodeType.VALUE) and not node.children and not node.attributes:
            return _scalar(node.value)

        result = {}
        for attribute in node.attributes:
            result[ATTRIBUTE_MARKER + attribute.name] = _scalar(attribute.value)
        grouped = set()
        for child in node.children:
            key = self._key(child)
            value = self._standard(child)
            if key in grouped:
                result[key].append(value)
            elif key in result:
                result[key] = [result[key], value]
                grouped.add(key)
            else:
                result[key] = value
        if node.has_value:
            if not result:
                return node.value
            result[VALUE_KEY] = node.value
        return result

    def to_high_fidelity(self, node: XNode) -> Dict[str, Any]:
        """
        Renders a node and its subtree with explicit '#type', '#name', '#id', '#ns', '#label',
        '#value', '#attributes' and '#children' markers. Markers of absent properties are left out.
        """
        result = {HIFI_TYPE: node.type.value, HIFI_NAME: node.name}
        if node.id is not None:
            result[HIFI_ID] = node.id
        if node.ns is not None:
            result[HIFI_NS] = node.ns
        if node.label is not None:
            result[HIFI_LABEL] = node.label
        if node.has_value:
            result[HIFI_VALUE] = node.value
        if node.attributes:
            result[HIFI_ATTRIBUTES] = [self._high_fidelity_attribute(attribute) for attribute in node.attributes]
        if node.children:
            result[HIFI_CHILDREN] = [self.to_high_fidelity(child) for child in node.children]
        return result

    @staticmethod
    def _high_fidelity_attribute(attribute: XNode) -> Dict[str, Any]:
        result = {HIFI_NAME: attribute.name}
        if attribute.has_value:
            result[HIFI_VALUE] = attribute.value
        if attribute.ns is not None:
            result[HIFI_NS] = attribute.ns
        if attribute.label is not None:
            result[HIFI_LABEL] = attribute.label
        return result

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
from copy import deepcopy
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from xjconv.utils.node import XNode
from xjconv.utils.path import Format, TransformContext
from xjconv.utils.transform import REMOVE, NodeTransformer, ValueTransformer, ChildrenTransformer

__author__ = "EUROCONTROL (SWIM)"

TRUE_VALUES = ('true', 'yes', '1', 'on')
FALSE_VALUES = ('false', 'no', '0', 'off')

INTEGER = re.compile(r'^[-+]?\d+\Z')
DECIMAL = re.compile(r'^[-+]?(\d+\.\d*|\.\d+)\Z')
SCIENTIFIC = re.compile(r'^[-+]?(\d+\.?\d*|\.\d+)[eE][-+]?\d+\Z')


class BooleanTransformer(ValueTransformer):
    """
    Converts between boolean words and booleans. When converting to JSON the strings found in
    true_values and false_values become True and False, when converting to XML booleans are
    written as the first entry of true_values or false_values.

    :param true_values: Strings meaning True.
    :param false_values: Strings meaning False.
    :param ignore_case: Whether strings are compared regardless of case.
    """

    def __init__(self,
                 true_values: Sequence[str] = TRUE_VALUES,
                 false_values: Sequence[str] = FALSE_VALUES,
                 ignore_case: bool = True,
                 paths: Union[str, Sequence[str], None] = None) -> None:
        super().__init__(paths=paths)
        self.true_values = list(true_values)
        self.false_values = list(false_values)
        self.ignore_case = ignore_case

    def _normalize(self, text: str) -> str:
        return text.strip().lower() if self.ignore_case else text.strip()

    def transform(self, value: Any, context: TransformContext) -> Any:
        if context.target_format is Format.JSON:
            if isinstance(value, str):
                text = self._normalize(value)
                if text in (self._normalize(candidate) for candidate in self.true_values):
                    return True
                if text in (self._normalize(candidate) for candidate in self.false_values):
                    return False
            return value
        if isinstance(value, bool):
            return self.true_values[0] if value else self.false_values[0]
        return value


class NumberTransformer(ValueTransformer):
    """
    Converts between numeric strings and numbers. When converting to JSON, strings holding an
    integer, a decimal or a number in scientific notation become int or float (each form can be
    disabled), when converting to XML numbers are written as strings.

    :param integers: Whether integer strings are converted.
    :param decimals: Whether decimal strings are converted.
    :param scientific: Whether strings in scientific notation are converted.
    :param precision: Optional number of decimal places floats are rounded to.
    """

    def __init__(self,
                 integers: bool = True,
                 decimals: bool = True,
                 scientific: bool = True,
                 precision: Optional[int] = None,
                 paths: Union[str, Sequence[str], None] = None) -> None:
        super().__init__(paths=paths)
        self.integers = integers
        self.decimals = decimals
        self.scientific = scientific
        self.precision = precision

    def _parse(self, text: str) -> Any:
        text = text.strip()
        if self.integers and INTEGER.match(text):
            return int(text)
        if (self.decimals and DECIMAL.match(text)) or (self.scientific and SCIENTIFIC.match(text)):
            number = float(text)
            return round(number, self.precision) if self.precision is not None else number
        return None

    def transform(self, value: Any, context: TransformContext) -> Any:
        if context.target_format is Format.JSON:
            if isinstance(value, str):
                number = self._parse(value)
                return value if number is None else number
            return value
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return value
        if isinstance(value, float) and self.precision is not None:
            return '{:.{}f}'.format(value, self.precision)
        return str(value)


class RegexTransformer(ValueTransformer):
    """
    Replaces the matches of a regular expression in string values.

    :param pattern: The regular expression.
    :param replacement: Replacement string or function, as accepted by re.sub.
    :param flags: Regular expression flags.
    :param count: Maximum number of replacements, 0 replaces every match.
    """

    def __init__(self,
                 pattern: Union[str, re.Pattern],
                 replacement: Union[str, Callable],
                 flags: int = 0,
                 count: int = 0,
                 paths: Union[str, Sequence[str], None] = None,
                 formats: Optional[Iterable[Format]] = None) -> None:
        super().__init__(paths=paths, formats=formats)
        self.pattern = re.compile(pattern, flags) if isinstance(pattern, str) else pattern
        self.replacement = replacement
        self.count = count

    def transform(self, value: Any, context: TransformContext) -> Any:
        if not isinstance(value, str):
            return value
        return self.pattern.sub(self.replacement, value, count=self.count)


class RemoveNodesTransformer(NodeTransformer):
    """
    Removes every node, and thus its subtree, whose name is one of the given names.
    """

    def __init__(self, *names: str, paths: Union[str, Sequence[str], None] = None) -> None:
        super().__init__(paths=paths)
        self.names = set(names)

    def transform(self, node: XNode, context: TransformContext) -> Any:
        return REMOVE if node.name in self.names else node


class FilterChildrenTransformer(ChildrenTransformer):
    """
    Keeps only the children for which the predicate holds.
    """

    def __init__(self, predicate: Callable[[XNode], bool], paths: Union[str, Sequence[str], None] = None) -> None:
        super().__init__(paths=paths)
        self.predicate = predicate

    def transform(self, children: List[XNode], context: TransformContext) -> List[XNode]:
        return [child for child in children if self.predicate(child)]


NodeSelector = Union[str, re.Pattern, Callable[[XNode, TransformContext], bool]]


class MetadataTransformer(NodeTransformer):
    """
    Sets and removes metadata entries on nodes. A node is selected when apply_to_all is set, when
    it is the root and apply_to_root is set, or when the selector matches it. The selector is
    either a node name, a compiled regular expression searched in the node name, or a predicate
    taking the node and the context.

    :param metadata: Entries set on the selected nodes. Dict entries are merged into existing
                     dict entries of the same key unless replace is set.
    :param selector: Optional node selector.
    :param apply_to_root: Whether the root is selected.
    :param apply_to_all: Whether every node is selected.
    :param replace: Whether entries overwrite existing entries instead of being merged.
    :param remove_keys: Keys removed from the selected nodes before the entries are set.
    :param max_depth: Optional deepest level where nodes are selected, the root being at level 0.
    :raise ValueError: If no way of selecting nodes is given or metadata is not a dict.
    """

    def __init__(self,
                 metadata: Optional[Dict[str, Any]] = None,
                 selector: Optional[NodeSelector] = None,
                 apply_to_root: bool = False,
                 apply_to_all: bool = False,
                 replace: bool = False,
                 remove_keys: Iterable[str] = (),
                 max_depth: Optional[int] = None,
                 paths: Union[str, Sequence[str], None] = None) -> None:
        super().__init__(paths=paths)
        if metadata is None:
            metadata = {}
        if not isinstance(metadata, dict):
            raise ValueError('Metadata must be a dict, got {}'.format(type(metadata).__name__))
        if not (apply_to_all or apply_to_root or selector is not None):
            raise ValueError('MetadataTransformer needs a selector, apply_to_root or apply_to_all')
        self.metadata = metadata
        self.selector = selector
        self.apply_to_root = apply_to_root
        self.apply_to_all = apply_to_all
        self.replace = replace
        self.remove_keys = list(remove_keys)
        self.max_depth = max_depth

    def _selects(self, node: XNode, context: TransformContext) -> bool:
        if self.apply_to_all or (self.apply_to_root and context.parent is None):
            return True
        if self.selector is None:
            return False
        if isinstance(self.selector, str):
            return node.name == self.selector
        if callable(self.selector):
            return bool(self.selector(node, context))
        return self.selector.search(node.name) is not None

    def transform(self, node: XNode, context: TransformContext) -> Any:
        if self.max_depth is not None and _depth(context) > self.max_depth:
            return node
        if not self._selects(node, context):
            return node
        for key in self.remove_keys:
            node.remove_metadata(key)
        for key, value in self.metadata.items():
            current = node.get_metadata(key)
            if not self.replace and isinstance(value, dict) and isinstance(current, dict):
                node.set_metadata(key, _merge(current, value))
            else:
                node.set_metadata(key, deepcopy(value))
        return node


def _depth(context: TransformContext) -> int:
    depth = 0
    while context.parent is not None:
        depth += 1
        context = context.parent
    return depth


def _merge(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(target)
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = deepcopy(value)
    return result

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
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple, TYPE_CHECKING

from pyparsing import CharsNotIn, Group, Optional as OptionalMatch, ParseException, StringEnd, Suppress, ZeroOrMore

from xjconv.utils.node import XNode, XNodeType, ATTRIBUTE_MARKER

if TYPE_CHECKING:
    from xjconv.utils.config import Configuration

__author__ = "EUROCONTROL (SWIM)"

PATH_SEPARATOR = '.'
DEEP_WILDCARD = '**'


class Format(Enum):
    """
    Target format of a conversion, i.e. the format the tree is being transformed for.
    """
    XML = 'xml'
    JSON = 'json'


class TransformContext:
    """
    Describes where the pipeline currently is: one context per visited node or attribute,
    chained to the context of the enclosing node.

    :param target_format: Format the tree is converted to.
    :param node_name: Name of the node (or attribute) the context describes.
    :param node_type: Kind of the node, XNodeType.ATTRIBUTE for attribute contexts.
    :param segments: Path segments from the root, the last one being the node or attribute itself.
    :param ns: Namespace URI of the node or attribute.
    :param label: Namespace prefix of the node or attribute.
    :param attribute_name: Name of the attribute for attribute contexts, None otherwise.
    :param parent: Context of the enclosing node, None for the root.
    :param config: The active configuration.
    """

    def __init__(self,
                 target_format: Format,
                 node_name: str,
                 node_type: XNodeType,
                 segments: Sequence[str],
                 ns: Optional[str] = None,
                 label: Optional[str] = None,
                 attribute_name: Optional[str] = None,
                 parent: Optional[TransformContext] = None,
                 config: Optional[Configuration] = None) -> None:
        self.target_format = target_format
        self.node_name = node_name
        self.node_type = node_type
        self.segments = tuple(segments)
        self.ns = ns
        self.label = label
        self.attribute_name = attribute_name
        self.parent = parent
        self.config = config

    @classmethod
    def root(cls, node: XNode, target_format: Format, config: Optional[Configuration] = None) -> TransformContext:
        return cls(target_format, node.name, node.type, (node.name,), ns=node.ns, label=node.label, config=config)

    @property
    def is_attribute(self) -> bool:
        return self.attribute_name is not None

    @property
    def path(self) -> str:
        return PATH_SEPARATOR.join(self.segments)

    def child(self, node: XNode, index: int) -> TransformContext:
        """
        Derives the context of a child. Items of a collection are addressed by their position,
        every other child by its name.
        :param node: The child node.
        :param index: Position of the child in the child list of the current node.
        """
        segment = str(index) if self.node_type is XNodeType.COLLECTION else node.name
        return TransformContext(self.target_format, node.name, node.type, self.segments + (segment,),
                                ns=node.ns, label=node.label, parent=self, config=self.config)

    def attribute(self, attribute: XNode) -> TransformContext:
        return TransformContext(self.target_format, attribute.name, XNodeType.ATTRIBUTE,
                                self.segments + (attribute.name,), ns=attribute.ns, label=attribute.label,
                                attribute_name=attribute.name, parent=self, config=self.config)

    def ancestors(self) -> Iterator[TransformContext]:
        context = self.parent
        while context is not None:
            yield context
            context = context.parent

    def __repr__(self):
        return 'TransformContext({}{}, {})'.format(self.path, ' [attribute]' if self.is_attribute else '',
                                                   self.target_format.value)


def _pattern_grammar():
    segment = CharsNotIn(PATH_SEPARATOR + ATTRIBUTE_MARKER)
    segments = Group(segment + ZeroOrMore(Suppress(PATH_SEPARATOR) + segment)).set_results_name('segments')
    attribute = (Suppress(PATH_SEPARATOR) + Suppress(ATTRIBUTE_MARKER) + segment).set_results_name('attribute')
    return segments + OptionalMatch(attribute) + StringEnd()


_PATTERN = _pattern_grammar()


def _segment_regex(segment: str) -> re.Pattern:
    return re.compile('.*'.join(re.escape(part) for part in segment.split('*')) + r'\Z', re.DOTALL)


class PathMatcher:
    """
    Matches context paths against a dot-notation pattern, e.g. 'root.items.*.price'.
    A '*' segment matches exactly one segment, a '**' segment matches any number of segments
    (including none) and a '*' inside a segment matches any run of characters within that
    segment ('item_*'). A last segment written '@name' restricts the pattern to the attribute
    'name', whether it is held as an attribute node or as an '@name' field.

    :param pattern: The pattern.
    :raise ValueError: If the pattern cannot be parsed.
    """

    def __init__(self, pattern: str):
        self.pattern = pattern
        try:
            parsed = _PATTERN.parse_string(pattern)
        except ParseException as error:
            raise ValueError('Invalid path pattern "{}": {}'.format(pattern, error)) from error
        self.segments = list(parsed.get('segments'))
        attribute = parsed.get('attribute')
        self.attribute = ''.join(attribute) if attribute else None
        self._regexes = [None if segment == DEEP_WILDCARD else _segment_regex(segment) for segment in self.segments]
        self._attribute_regex = _segment_regex(self.attribute) if self.attribute is not None else None

    def _match_segments(self, segments: Tuple[str, ...]) -> bool:
        # positions[i] is True when the first i path segments can be consumed by the pattern read so far
        positions = [True] + [False] * len(segments)
        for regex in self._regexes:
            following = [False] * (len(segments) + 1)
            for position, reachable in enumerate(positions):
                if not reachable:
                    continue
                if regex is None:
                    for end in range(position, len(segments) + 1):
                        following[end] = True
                    break
                if position < len(segments) and regex.match(segments[position]):
                    following[position + 1] = True
            positions = following
        return positions[-1]

    def match_path(self, path: str, is_attribute: bool = False) -> bool:
        return self._match(tuple(path.split(PATH_SEPARATOR)), is_attribute)

    def matches(self, context: TransformContext) -> bool:
        return self._match(context.segments, context.is_attribute)

    def _match(self, segments: Tuple[str, ...], is_attribute: bool) -> bool:
        if self.attribute is None:
            return not is_attribute and self._match_segments(segments)
        if not segments:
            return False
        name = segments[-1]
        if not is_attribute:
            if not name.startswith(ATTRIBUTE_MARKER):
                return False
            name = name[len(ATTRIBUTE_MARKER):]
        return bool(self._attribute_regex.match(name)) and self._match_segments(segments[:-1])

    def __repr__(self):
        return 'PathMatcher({!r})'.format(self.pattern)


def compile_patterns(patterns: Optional[Sequence[str]]) -> List[PathMatcher]:
    if patterns is None:
        return []
    if isinstance(patterns, str):
        patterns = [patterns]
    return [PathMatcher(pattern) for pattern in patterns]

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

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from xjconv.utils.errors import ProcessingError
from xjconv.utils.node import XNode
from xjconv.utils.path import Format, TransformContext, compile_patterns

import logging

__author__ = "EUROCONTROL (SWIM)"

logger = logging.getLogger(__name__)


class Stage(Enum):
    """
    Stages of the pipeline, in the order they are applied to each node.
    """
    NODE = 'node'
    VALUE = 'value'
    ATTRIBUTE = 'attribute'
    CHILDREN = 'children'


class _Remove:
    def __repr__(self):
        return 'REMOVE'


REMOVE = _Remove()


class Transformer(ABC):
    """
    Abstract class of the transformers run by the TransformPipeline. The stage of a transformer
    decides what it receives and what it may return:

    - node: transform(node, context) returns a node, REMOVE, or None to keep the node.
    - value: transform(value, context) returns the new value or REMOVE to delete the value.
    - attribute: transform(name, value, context) returns a (name, value) tuple, REMOVE, or None
      to keep the attribute.
    - children: transform(children, context) returns the new child list, None keeps the children.

    :param paths: Optional path patterns (see PathMatcher) restricting where the transformer runs.
    :param formats: Optional target formats restricting when the transformer runs.
    """
    stage = None  # type: Stage

    def __init__(self,
                 paths: Union[str, Sequence[str], None] = None,
                 formats: Optional[Iterable[Format]] = None) -> None:
        self.name = type(self).__name__
        self.matchers = compile_patterns(paths)
        self.formats = set(formats) if formats else None

    def applies_to(self, context: TransformContext) -> bool:
        if self.formats is not None and context.target_format not in self.formats:
            return False
        return not self.matchers or any(matcher.matches(context) for matcher in self.matchers)

    @abstractmethod
    def transform(self, *arguments):
        pass

    def __repr__(self):
        return '{}({})'.format(type(self).__name__, self.name)


class _FunctionTransformer(Transformer):
    """
    Transformer delegating to a plain function taking the stage arguments and the context.
    """

    def __init__(self,
                 function: Optional[Callable] = None,
                 paths: Union[str, Sequence[str], None] = None,
                 formats: Optional[Iterable[Format]] = None) -> None:
        super().__init__(paths=paths, formats=formats)
        if function is not None and not callable(function):
            raise TypeError('A transformer function must be callable, got {}'.format(type(function).__name__))
        self.function = function
        if function is not None:
            self.name = getattr(function, '__name__', self.name)

    def transform(self, *arguments):
        if self.function is None:
            raise TypeError('{} has neither a function nor a transform implementation'.format(type(self).__name__))
        return self.function(*arguments)


class NodeTransformer(_FunctionTransformer):
    stage = Stage.NODE


class ValueTransformer(_FunctionTransformer):
    stage = Stage.VALUE


class AttributeTransformer(_FunctionTransformer):
    stage = Stage.ATTRIBUTE


class ChildrenTransformer(_FunctionTransformer):
    stage = Stage.CHILDREN


RecoveryHook = Callable[[Exception, Any, TransformContext], Any]


class TransformPipeline:
    """
    Applies transformers over a tree, depth-first. For every node the node, value, attribute and
    children stages run in that order, then each surviving child is visited. Transformers of a
    stage run in registration order, each one seeing the result of the previous.

    A transformer raising an exception aborts the whole run with a ProcessingError unless a
    recovery hook is registered for its stage. The hook receives the exception, the subject of the
    failed step and the context; what it returns replaces the result of the step and a warning is
    recorded in warnings.

    A node transformer may replace its node with a detached node or with one of the node's own
    descendants. Returning a node that belongs elsewhere in a tree raises a ProcessingError.

    :param transformers: The transformers, in registration order.
    :param recovery: Optional recovery hooks per stage.
    """

    def __init__(self,
                 transformers: Iterable[Transformer] = (),
                 recovery: Optional[Dict[Stage, RecoveryHook]] = None) -> None:
        self.transformers = {stage: [] for stage in Stage}  # type: Dict[Stage, List[Transformer]]
        for transformer in transformers:
            self.add(transformer)
        self.recovery = dict(recovery or {})
        self.warnings = []  # type: List[str]

    def add(self, transformer: Transformer) -> TransformPipeline:
        if not isinstance(transformer, Transformer) or transformer.stage not in self.transformers:
            raise TypeError('{!r} is not a node, value, attribute or children transformer'.format(transformer))
        self.transformers[transformer.stage].append(transformer)
        return self

    def __len__(self):
        return sum(len(transformers) for transformers in self.transformers.values())

    def apply(self, node: XNode, context: TransformContext) -> Optional[XNode]:
        """
        Transforms a tree in place.
        :param node: Root of the tree.
        :param context: Context of the root, see TransformContext.root.
        :raise ProcessingError: If a transformer fails and no recovery hook handles its stage.
        :return: The transformed root, which may be a replacement node, or None if it was removed.
        """
        self.warnings = []
        return self._visit(node, context)

    def _run(self, transformer: Transformer, subject: Any, context: TransformContext, *arguments) -> Any:
        try:
            return transformer.transform(*arguments, context)
        except Exception as error:
            recovery = self.recovery.get(transformer.stage)
            if recovery is None:
                raise ProcessingError('Transformer {} failed at {}: {}'.format(transformer.name, context.path, error)) from error
            message = 'Transformer {} failed at {}, recovered: {!r}'.format(transformer.name, context.path, error)
            logger.warning(message)
            self.warnings.append(message)
            try:
                return recovery(error, subject, context)
            except Exception as hook_error:
                logger.warning("Recovery hook of the {} stage failed, keeping the original value: {!r}"
                               .format(transformer.stage.value, hook_error))
                return subject

    def _applicable(self, stage: Stage, context: TransformContext) -> List[Transformer]:
        return [transformer for transformer in self.transformers[stage] if transformer.applies_to(context)]

    def _visit(self, node: XNode, context: TransformContext) -> Optional[XNode]:
        for transformer in self._applicable(Stage.NODE, context):
            result = self._run(transformer, node, context, node)
            if result is REMOVE:
                logger.debug("Removed node {}".format(context.path))
                return None
            if result is not None and result is not node:
                if not isinstance(result, XNode):
                    raise ProcessingError('Transformer {} returned {!r} instead of a node at {}'
                                          .format(transformer.name, result, context.path))
                if result.parent is not None:
                    if not _within(result, node):
                        raise ProcessingError('Transformer {} returned node {} which already belongs to {} at {}'
                                              .format(transformer.name, result.name, result.parent.path, context.path))
                    result.parent.remove_child(result)
                node = result

        if node.has_value:
            self._transform_value(node, context)
        for attribute in list(node.attributes):
            self._transform_attribute(node, attribute, context)
        self._transform_children(node, context)

        for index, child in enumerate(list(node.children)):
            result = self._visit(child, context.child(child, index))
            if result is None:
                node.remove_child(child)
            elif result is not child:
                node.replace_child(child, result)
        return node

    def _transform_value(self, node: XNode, context: TransformContext) -> None:
        for transformer in self._applicable(Stage.VALUE, context):
            result = self._run(transformer, node.value, context, node.value)
            if result is REMOVE:
                node.clear_value()
                return
            node.value = result

    def _transform_attribute(self, node: XNode, attribute: XNode, context: TransformContext) -> None:
        attribute_context = context.attribute(attribute)
        if attribute.has_value:
            self._transform_value(attribute, attribute_context)
        for transformer in self._applicable(Stage.ATTRIBUTE, attribute_context):
            result = self._run(transformer, (attribute.name, attribute.value), attribute_context,
                               attribute.name, attribute.value)
            if result is REMOVE:
                node.remove_attribute(attribute)
                logger.debug("Removed attribute {}".format(attribute_context.path))
                return
            if result is not None:
                try:
                    attribute.name, attribute.value = result
                except (TypeError, ValueError) as error:
                    raise ProcessingError('Transformer {} must return a (name, value) tuple at {}'
                                          .format(transformer.name, attribute_context.path)) from error
                attribute_context = context.attribute(attribute)

    def _transform_children(self, node: XNode, context: TransformContext) -> None:
        transformers = self._applicable(Stage.CHILDREN, context)
        if not transformers:
            return
        children = list(node.children)
        for transformer in transformers:
            result = self._run(transformer, list(children), context, list(children))
            if result is REMOVE:
                children = []
            elif result is not None:
                children = list(result)
        if [id(child) for child in children] != [id(child) for child in node.children]:
            try:
                node.set_children(children)
            except (TypeError, ValueError) as error:
                raise ProcessingError('Invalid children at {}: {}'.format(context.path, error)) from error


def _within(node: XNode, ancestor: XNode) -> bool:
    parent = node.parent
    while parent is not None:
        if parent is ancestor:
            return True
        parent = parent.parent
    return False


def transform_tree(node: XNode,
                   transformers: Iterable[Transformer],
                   target_format: Format,
                   config: Any = None,
                   recovery: Optional[Dict[Stage, RecoveryHook]] = None) -> Optional[XNode]:
    """
    Shortcut running a TransformPipeline over a tree.
    :param node: Root of the tree, transformed in place.
    :param transformers: The transformers, in registration order.
    :param target_format: Format the tree is converted to.
    :param config: The active configuration, exposed to transformers through the context.
    :param recovery: Optional recovery hooks per stage.
    :return: The transformed root, or None if it was removed.
    """
    pipeline = TransformPipeline(transformers, recovery=recovery)
    if not len(pipeline):
        return node
    return pipeline.apply(node, TransformContext.root(node, target_format, config))

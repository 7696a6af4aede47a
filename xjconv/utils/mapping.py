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

from pathlib import Path
from json import dumps
from typing import Any, Callable, Dict, Iterable, Optional, Union

from xjconv.utils.config import Configuration, resolve_configuration
from xjconv.utils.dom import DOMProvider
from xjconv.utils.errors import ProcessingError
from xjconv.utils.hooks import SourceHooks, OutputHooks
from xjconv.utils.json import JSONSource, JSONOutput, high_fidelity_to_node, parse_json
from xjconv.utils.node import XNode
from xjconv.utils.path import Format
from xjconv.utils.transform import Transformer, Stage, RecoveryHook, transform_tree
from xjconv.utils.xml import XMLSource, XMLOutput

import logging

__author__ = "EUROCONTROL (SWIM)"

logger = logging.getLogger(__name__)

ConfigurationInput = Union[Configuration, Dict, None]


def xml_to_node(xml: Union[str, bytes], config: ConfigurationInput = None, dom: Optional[DOMProvider] = None) -> XNode:
    return XMLSource(resolve_configuration(config).xml_source, dom).convert(xml)


def node_to_xml(node: XNode, config: ConfigurationInput = None, dom: Optional[DOMProvider] = None) -> str:
    return XMLOutput(resolve_configuration(config).xml_output, dom).convert(node)


def json_to_node(value: Any, config: ConfigurationInput = None) -> XNode:
    return JSONSource(resolve_configuration(config).json_source).convert(value)


def node_to_json(node: XNode, config: ConfigurationInput = None) -> Any:
    """
    :return: The standard JSON rendering of the tree, or the high-fidelity one when the
             json_output configuration asks for it.
    """
    return JSONOutput(resolve_configuration(config).json_output).convert(node)


def node_to_json_hifi(node: XNode) -> Dict[str, Any]:
    return JSONOutput().to_high_fidelity(node)


def json_hifi_to_node(data: Dict[str, Any]) -> XNode:
    return high_fidelity_to_node(data)


def _run_conversion(source: Any,
                    read: Callable[[Any, Configuration], XNode],
                    write: Callable[[XNode, Configuration], Any],
                    target_format: Format,
                    config: ConfigurationInput,
                    transformers: Optional[Iterable[Transformer]],
                    source_hooks: Optional[SourceHooks],
                    output_hooks: Optional[OutputHooks],
                    recovery: Optional[Dict[Stage, RecoveryHook]]) -> Any:
    config = resolve_configuration(config)
    source_hooks = source_hooks or SourceHooks()
    output_hooks = output_hooks or OutputHooks()

    tree = source_hooks.after(read(source_hooks.before(source), config))
    transformers = list(transformers or [])
    if transformers:
        tree = transform_tree(tree, transformers, target_format, config=config, recovery=recovery)
        if tree is None:
            raise ProcessingError('The root node was removed by a transformer')
    logger.debug("Writing tree rooted at {} as {}".format(tree.name, target_format.value))
    return output_hooks.after(write(output_hooks.before(tree), config))


def xml_to_json(xml: Union[str, bytes],
                config: ConfigurationInput = None,
                transformers: Optional[Iterable[Transformer]] = None,
                source_hooks: Optional[SourceHooks] = None,
                output_hooks: Optional[OutputHooks] = None,
                recovery: Optional[Dict[Stage, RecoveryHook]] = None,
                dom: Optional[DOMProvider] = None) -> Any:
    """
    Converts an XML document into a JSON serializable value.

    :param xml: The XML document.
    :param config: A Configuration, or a (partial) configuration dictionary merged over the defaults.
    :param transformers: Transformers applied to the tree, in registration order.
    :param source_hooks: Hooks around the XML source.
    :param output_hooks: Hooks around the JSON output.
    :param recovery: Recovery hooks per transformer stage.
    :param dom: The DOM provider, xml.dom.minidom when none is given.
    :return: The standard JSON rendering of the document, or the high-fidelity one when
             json_output.high_fidelity is set.
    """
    return _run_conversion(xml,
                           lambda source, configuration: XMLSource(configuration.xml_source, dom).convert(source),
                           lambda tree, configuration: JSONOutput(configuration.json_output).convert(tree),
                           Format.JSON, config, transformers, source_hooks, output_hooks, recovery)


def json_to_xml(value: Any,
                config: ConfigurationInput = None,
                transformers: Optional[Iterable[Transformer]] = None,
                source_hooks: Optional[SourceHooks] = None,
                output_hooks: Optional[OutputHooks] = None,
                recovery: Optional[Dict[Stage, RecoveryHook]] = None,
                dom: Optional[DOMProvider] = None) -> str:
    """
    Converts a JSON value (standard or high-fidelity) into an XML document.

    :param value: The JSON value, already parsed (see parse_json).
    :param config: A Configuration, or a (partial) configuration dictionary merged over the defaults.
    :param transformers: Transformers applied to the tree, in registration order.
    :param source_hooks: Hooks around the JSON source.
    :param output_hooks: Hooks around the XML output.
    :param recovery: Recovery hooks per transformer stage.
    :param dom: The DOM provider, xml.dom.minidom when none is given.
    :return: The XML document.
    """
    return _run_conversion(value,
                           lambda source, configuration: JSONSource(configuration.json_source).convert(source),
                           lambda tree, configuration: XMLOutput(configuration.xml_output, dom).convert(tree),
                           Format.XML, config, transformers, source_hooks, output_hooks, recovery)


def xml_to_json_hifi(xml: Union[str, bytes],
                     config: ConfigurationInput = None,
                     transformers: Optional[Iterable[Transformer]] = None,
                     source_hooks: Optional[SourceHooks] = None,
                     output_hooks: Optional[OutputHooks] = None,
                     recovery: Optional[Dict[Stage, RecoveryHook]] = None,
                     dom: Optional[DOMProvider] = None) -> Dict[str, Any]:
    return _run_conversion(xml,
                           lambda source, configuration: XMLSource(configuration.xml_source, dom).convert(source),
                           lambda tree, configuration: JSONOutput(configuration.json_output).to_high_fidelity(tree),
                           Format.JSON, config, transformers, source_hooks, output_hooks, recovery)


def json_hifi_to_xml(data: Dict[str, Any],
                     config: ConfigurationInput = None,
                     transformers: Optional[Iterable[Transformer]] = None,
                     source_hooks: Optional[SourceHooks] = None,
                     output_hooks: Optional[OutputHooks] = None,
                     recovery: Optional[Dict[Stage, RecoveryHook]] = None,
                     dom: Optional[DOMProvider] = None) -> str:
    return _run_conversion(data,
                           lambda source, configuration: high_fidelity_to_node(source),
                           lambda tree, configuration: XMLOutput(configuration.xml_output, dom).convert(tree),
                           Format.XML, config, transformers, source_hooks, output_hooks, recovery)


CONVERSIONS = {
    'xml-to-json': xml_to_json,
    'json-to-xml': json_to_xml,
    'xml-to-json-hifi': xml_to_json_hifi,
    'json-hifi-to-xml': json_hifi_to_xml,
}


def convert(name: str, source: Any, **kwargs) -> Any:
    """
    Runs one of the named conversions of CONVERSIONS.
    :param name: Name of the conversion, e.g. 'xml-to-json'.
    :param source: The input of the conversion.
    :param kwargs: Keyword arguments of the conversion function (config, transformers...).
    :raise KeyError: If there is no conversion with that name.
    """
    try:
        conversion = CONVERSIONS[name]
    except KeyError:
        raise KeyError('Unknown conversion "{}", expected one of: {}'.format(name, ', '.join(sorted(CONVERSIONS))))
    return conversion(source, **kwargs)


def xml_document_to_dict(xml_document: Path,
                         config: ConfigurationInput = None,
                         transformers: Optional[Iterable[Transformer]] = None,
                         **kwargs) -> Any:
    """
    Transforms an XML document into a JSON serializable value.

    :param xml_document: A Path to the XML document that is to be converted.
    :param config: A Configuration, or a (partial) configuration dictionary.
    :param transformers: Transformers applied to the tree.
    :param kwargs: Further keyword arguments of xml_to_json.
    :return: The JSON serializable value.
    """
    with xml_document.open('rb') as xml_file:
        xml = xml_file.read()
    return xml_to_json(xml, config=config, transformers=transformers, **kwargs)


def xml_document_to_json_document(xml_document: Path,
                                  json_document: Path,
                                  config: ConfigurationInput = None,
                                  transformers: Optional[Iterable[Transformer]] = None,
                                  **kwargs) -> None:
    """
    Transforms an XML document into a JSON document and saves it in the json_document Path.

    :param xml_document: A Path to the XML document that is to be converted.
    :param json_document: A Path defining where to save the resulting JSON document.
    :param config: A Configuration, or a (partial) configuration dictionary.
    :param transformers: Transformers applied to the tree.
    :param kwargs: Further keyword arguments of xml_to_json.
    :return: None, the function is pure side-effects.
    """
    configuration = resolve_configuration(config)
    result = xml_document_to_dict(xml_document, config=configuration, transformers=transformers, **kwargs)
    indent = configuration.json_output.indent if configuration.json_output.pretty_print else None
    with json_document.open('w', encoding='utf-8') as result_file:
        result_file.write(dumps(result, indent=indent, ensure_ascii=False))


def json_document_to_xml_document(json_document: Path,
                                  xml_document: Path,
                                  config: ConfigurationInput = None,
                                  transformers: Optional[Iterable[Transformer]] = None,
                                  **kwargs) -> None:
    """
    Transforms a JSON document into an XML document and saves it in the xml_document Path.
    The document is written with the encoding of the xml_output configuration.

    :param json_document: A Path to the JSON document that is to be converted.
    :param xml_document: A Path defining where to save the resulting XML document.
    :param config: A Configuration, or a (partial) configuration dictionary.
    :param transformers: Transformers applied to the tree.
    :param kwargs: Further keyword arguments of json_to_xml.
    :return: None, the function is pure side-effects.
    """
    configuration = resolve_configuration(config)
    with json_document.open('r', encoding='utf-8') as json_file:
        value = parse_json(json_file.read())
    result = json_to_xml(value, config=configuration, transformers=transformers, **kwargs)
    with xml_document.open('w', encoding=configuration.xml_output.encoding) as result_file:
        result_file.write(result)

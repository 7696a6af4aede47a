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
from enum import Enum
from functools import lru_cache
from json import load
from pathlib import Path
from typing import Any, Dict, Optional, Union

import jsonschema

from xjconv.utils.errors import ValidationError

import logging

__author__ = "EUROCONTROL (SWIM)"

logger = logging.getLogger(__name__)

SCHEMAS_DIRECTORY = Path(__file__).resolve().parent.parent / 'schemas'


class NamespaceHandling(Enum):
    """
    How namespace prefixes of element and attribute names are handled.
    PRESERVE keeps the prefixed name, LABEL moves the prefix into the node label, STRIP drops it.
    """
    PRESERVE = 'preserve'
    LABEL = 'label'
    STRIP = 'strip'


class AttributeHandling(Enum):
    """
    How XML attributes are represented: as attribute nodes or as '@name' field children.
    """
    ATTRIBUTES = 'attributes'
    FIELDS = 'fields'


class FieldVsValue(Enum):
    FIELD = 'field'
    VALUE = 'value'
    AUTO = 'auto'


class EmptyValueHandling(Enum):
    """
    How JSON null is represented: a Value holding None, a Field without value, or removed.
    """
    NULL = 'null'
    UNDEFINED = 'undefined'
    REMOVE = 'remove'


@lru_cache(maxsize=None)
def load_schema(schema_name: str) -> Dict:
    """
    :param schema_name: File name of a schema shipped in the schemas directory of the package.
    :return: The parsed JSON schema.
    """
    with (SCHEMAS_DIRECTORY / schema_name).open('r') as schema_file:
        return load(schema_file)


def validate_schema(instance: Any, schema_name: str) -> None:
    """
    Validates an instance against one of the package schemas.
    :raise ValidationError: If the instance does not validate, the jsonschema error is chained.
    """
    try:
        jsonschema.validate(instance, load_schema(schema_name))
    except jsonschema.ValidationError as error:
        location = '.'.join(str(part) for part in error.absolute_path) or '<root>'
        raise ValidationError('Invalid {} at {}: {}'.format(schema_name.split('.')[0], location, error.message)) from error


def snake_case(name: str) -> str:
    return re.sub(r'(?<=[a-z0-9])(?=[A-Z])', '_', name).lower()


class _Section:
    """
    Base of the option structs. OPTIONS maps each option name to its default value, ENUMS maps
    the options holding an Enum to their Enum class so that plain strings are accepted.
    """
    OPTIONS = {}  # type: Dict[str, Any]
    ENUMS = {}  # type: Dict[str, type]

    def __init__(self, **options):
        unknown = set(options) - set(self.OPTIONS)
        if unknown:
            raise ValidationError('Unknown {} options: {}'.format(type(self).__name__, ', '.join(sorted(unknown))))
        for name, default in self.OPTIONS.items():
            value = options.get(name, deepcopy(default))
            if name in self.ENUMS and not isinstance(value, self.ENUMS[name]):
                try:
                    value = self.ENUMS[name](value)
                except ValueError as error:
                    raise ValidationError('Invalid value for {}: {!r}'.format(name, value)) from error
            setattr(self, name, value)

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for name in self.OPTIONS:
            value = getattr(self, name)
            result[name] = value.value if isinstance(value, Enum) else deepcopy(value)
        return result

    def __eq__(self, other):
        if not isinstance(other, type(self)):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return '{}({})'.format(type(self).__name__,
                               ', '.join('{}={!r}'.format(key, value) for key, value in self.to_dict().items()))


class XMLSourceConfig(_Section):
    OPTIONS = {'preserve_namespaces': True,
               'namespace_handling': NamespaceHandling.PRESERVE,
               'preserve_comments': True,
               'preserve_processing_instructions': True,
               'preserve_cdata': True,
               'preserve_text_nodes': True,
               'preserve_whitespace': False,
               'preserve_attributes': True,
               'attribute_handling': AttributeHandling.ATTRIBUTES}
    ENUMS = {'namespace_handling': NamespaceHandling,
             'attribute_handling': AttributeHandling}


class XMLOutputConfig(_Section):
    OPTIONS = {'preserve_namespaces': True,
               'namespace_handling': NamespaceHandling.PRESERVE,
               'preserve_comments': True,
               'preserve_processing_instructions': True,
               'preserve_cdata': True,
               'pretty_print': True,
               'indent': 2,
               'declaration': True,
               'encoding': 'UTF-8'}
    ENUMS = {'namespace_handling': NamespaceHandling}


class JSONSourceConfig(_Section):
    OPTIONS = {'array_item_names': {},
               'default_item_name': 'item',
               'root_name': 'root',
               'field_vs_value': FieldVsValue.AUTO,
               'empty_value_handling': EmptyValueHandling.NULL}
    ENUMS = {'field_vs_value': FieldVsValue,
             'empty_value_handling': EmptyValueHandling}


class JSONOutputConfig(_Section):
    OPTIONS = {'pretty_print': True,
               'indent': 2,
               'high_fidelity': False}


SECTIONS = {'xml_source': XMLSourceConfig,
            'xml_output': XMLOutputConfig,
            'json_source': JSONSourceConfig,
            'json_output': JSONOutputConfig}


def _normalize(data: Dict) -> Dict:
    """
    Converts the camelCase section and option names of a configuration dictionary into
    snake_case. The keys of array_item_names are property names and are kept untouched.
    """
    if not isinstance(data, dict):
        raise ValidationError('A configuration must be a dictionary, got {}'.format(type(data).__name__))
    normalized = {}
    for section_name, section in data.items():
        if isinstance(section, dict):
            section = {snake_case(option): value for option, value in section.items()}
        normalized[snake_case(section_name)] = section
    return normalized


def _deep_merge(base: Dict, overrides: Dict) -> Dict:
    merged = deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


class Configuration:
    """
    Options of both codecs, passed explicitly to every conversion.

    :param xml_source: Options used when reading XML.
    :param xml_output: Options used when writing XML.
    :param json_source: Options used when reading JSON.
    :param json_output: Options used when writing JSON.
    """

    def __init__(self,
                 xml_source: Optional[XMLSourceConfig] = None,
                 xml_output: Optional[XMLOutputConfig] = None,
                 json_source: Optional[JSONSourceConfig] = None,
                 json_output: Optional[JSONOutputConfig] = None) -> None:
        self.xml_source = xml_source or XMLSourceConfig()
        self.xml_output = xml_output or XMLOutputConfig()
        self.json_source = json_source or JSONSourceConfig()
        self.json_output = json_output or JSONOutputConfig()

    @classmethod
    def from_dict(cls, data: Dict) -> Configuration:
        """
        Builds a configuration from a nested dictionary, e.g.
        {'xmlSource': {'preserveWhitespace': True}, 'jsonOutput': {'highFidelity': True}}.
        Missing options take their default value. Both camelCase and snake_case names are accepted.

        :param data: Nested dictionary of options per section.
        :raise ValidationError: If the dictionary does not validate against the configuration schema.
        :return: The configuration.
        """
        normalized = _normalize(data)
        validate_schema(normalized, 'configuration.schema.json')
        return cls(**{name: section_class(**normalized.get(name, {})) for name, section_class in SECTIONS.items()})

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {name: getattr(self, name).to_dict() for name in SECTIONS}

    def merge(self, overrides: Union[Dict, Configuration]) -> Configuration:
        """
        :param overrides: A configuration dictionary (possibly partial) or a Configuration.
        :return: A new configuration where the overrides replace the options of this one.
                 Nested dictionaries are merged, this configuration is left untouched.
        """
        if isinstance(overrides, Configuration):
            overrides = overrides.to_dict()
        merged = _deep_merge(self.to_dict(), _normalize(overrides))
        logger.debug("Merged configuration overrides for sections {}".format(sorted(overrides)))
        return Configuration.from_dict(merged)

    def __eq__(self, other):
        if not isinstance(other, Configuration):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return 'Configuration({!r})'.format(self.to_dict())


DEFAULT_CONFIGURATION = Configuration()


def resolve_configuration(config: Union[Configuration, Dict, None]) -> Configuration:
    """
    :param config: A Configuration, a configuration dictionary merged over the defaults, or None.
    :return: The configuration to use.
    """
    if config is None:
        return DEFAULT_CONFIGURATION
    if isinstance(config, Configuration):
        return config
    return DEFAULT_CONFIGURATION.merge(config)

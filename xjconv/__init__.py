from .utils.errors import XJConvError, ParseError, ValidationError, CircularReferenceError, ProcessingError
from .utils.node import (XNode, XNodeType, MISSING, create_record, create_collection, create_field, create_value,
                         create_attribute, create_comment, create_instruction, create_data)
from .utils.path import Format, TransformContext, PathMatcher
from .utils.config import (Configuration, XMLSourceConfig, XMLOutputConfig, JSONSourceConfig, JSONOutputConfig,
                           NamespaceHandling, AttributeHandling, FieldVsValue, EmptyValueHandling,
                           DEFAULT_CONFIGURATION)
from .utils.dom import DOMProvider, MinidomProvider
from .utils.xml import XMLSource, XMLOutput
from .utils.json import JSONSource, JSONOutput, parse_json, infer_json_type, JSONNodeType
from .utils.hooks import SourceHooks, OutputHooks
from .utils.transform import (Stage, REMOVE, Transformer, NodeTransformer, ValueTransformer, AttributeTransformer,
                              ChildrenTransformer, TransformPipeline, transform_tree)
from .utils.transformers import (BooleanTransformer, NumberTransformer, RegexTransformer, RemoveNodesTransformer,
                                 FilterChildrenTransformer, MetadataTransformer)
from .utils.mapping import (xml_to_node,
                            node_to_xml,
                            json_to_node,
                            node_to_json,
                            node_to_json_hifi,
                            json_hifi_to_node,
                            xml_to_json,
                            json_to_xml,
                            xml_to_json_hifi,
                            json_hifi_to_xml,
                            CONVERSIONS,
                            convert,
                            xml_document_to_dict,
                            xml_document_to_json_document,
                            json_document_to_xml_document)
__author__ = 'EUROCONTROL (SWIM)'

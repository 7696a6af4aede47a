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
from typing import Any, Optional, Union
from xml.dom import minidom, XMLNS_NAMESPACE
from xml.parsers.expat import ExpatError

from xjconv.utils.errors import ParseError

__author__ = "EUROCONTROL (SWIM)"


class DOMProvider(ABC):
    """
    Abstract class defining the minimal DOM surface the XML codec needs: parsing, serialization
    and construction of element, text, CDATA, comment, processing instruction and attribute
    nodes. Documents and nodes returned by an implementation must follow the W3C DOM node type
    taxonomy (nodeType, childNodes, tagName, localName, prefix, namespaceURI...).
    """

    @abstractmethod
    def parse(self, xml: Union[str, bytes]) -> Any:
        """
        :raise ParseError: If the document is not well formed.
        :return: The parsed document.
        """

    @abstractmethod
    def serialize(self, node: Any) -> str:
        pass

    @abstractmethod
    def create_document(self) -> Any:
        pass

    @abstractmethod
    def create_element(self, document: Any, name: str, ns: Optional[str] = None) -> Any:
        pass

    @abstractmethod
    def set_attribute(self, element: Any, name: str, value: str, ns: Optional[str] = None) -> None:
        pass

    @abstractmethod
    def create_text(self, document: Any, text: str) -> Any:
        pass

    @abstractmethod
    def create_cdata(self, document: Any, text: str) -> Any:
        pass

    @abstractmethod
    def create_comment(self, document: Any, text: str) -> Any:
        pass

    @abstractmethod
    def create_instruction(self, document: Any, target: str, data: str) -> Any:
        pass

    def declare_namespace(self, element: Any, prefix: str, uri: str) -> None:
        name = 'xmlns:{}'.format(prefix) if prefix else 'xmlns'
        self.set_attribute(element, name, uri, ns=XMLNS_NAMESPACE)


class MinidomProvider(DOMProvider):
    """
    DOM provider backed by xml.dom.minidom, which keeps CDATA sections and comments as nodes of
    their own instead of merging them into the surrounding text.
    """

    def parse(self, xml: Union[str, bytes]) -> minidom.Document:
        try:
            return minidom.parseString(xml)
        except ExpatError as error:
            raise ParseError('Malformed XML document: {}'.format(error)) from error

    def serialize(self, node: minidom.Node) -> str:
        if node.nodeType == minidom.Node.DOCUMENT_NODE:
            return ''.join(child.toxml() for child in node.childNodes)
        return node.toxml()

    def create_document(self) -> minidom.Document:
        return minidom.getDOMImplementation().createDocument(None, None, None)

    def create_element(self, document: minidom.Document, name: str, ns: Optional[str] = None) -> minidom.Element:
        if ns:
            return document.createElementNS(ns, name)
        return document.createElement(name)

    def set_attribute(self, element: minidom.Element, name: str, value: str, ns: Optional[str] = None) -> None:
        if ns:
            element.setAttributeNS(ns, name, value)
        else:
            element.setAttribute(name, value)

    def create_text(self, document: minidom.Document, text: str) -> minidom.Text:
        return document.createTextNode(text)

    def create_cdata(self, document: minidom.Document, text: str) -> minidom.CDATASection:
        return document.createCDATASection(text)

    def create_comment(self, document: minidom.Document, text: str) -> minidom.Comment:
        return document.createComment(text)

    def create_instruction(self, document: minidom.Document, target: str, data: str) -> minidom.ProcessingInstruction:
        return document.createProcessingInstruction(target, data)

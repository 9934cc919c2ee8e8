#!/usr/bin/env python3

import xml.etree.ElementTree as ET
from typing import Optional

from soap_api.services.domain.schema.model import XSD_NS
from soap_api.services.domain.soap.namespaces import SOAP_PAYLOAD_NAMESPACE_ATTRIBUTE

XS = f"{{{XSD_NS}}}"

# Places a namespace marker attribute can be attached to an element's anonymous type
MARKER_PATHS = (
    "complexType/attribute",
    "complexType/simpleContent/extension/attribute",
    "complexType/complexContent/extension/attribute",
    "complexType/complexContent/restriction/attribute",
)


def _path(path: str) -> str:
    return "/".join(XS + step for step in path.split("/"))


class SchemaHelpers:
    """Helpers for inspecting generated XSD documents"""

    @staticmethod
    def parse(xsd_text: str) -> ET.Element:
        """Parse a generated schema document, returning the xs:schema element"""
        root = ET.fromstring(xsd_text)
        assert root.tag == f"{XS}schema"
        return root

    @staticmethod
    def top_level_elements(root: ET.Element) -> list[ET.Element]:
        return root.findall(f"{XS}element")

    @staticmethod
    def sequence_elements(element: ET.Element) -> list[ET.Element]:
        """Child elements declared in an element's anonymous complexType sequence"""
        return element.findall(_path("complexType/sequence/element"))

    @staticmethod
    def child(element: ET.Element, name: str) -> Optional[ET.Element]:
        for child in SchemaHelpers.sequence_elements(element):
            if child.get("name") == name:
                return child
        return None

    @staticmethod
    def namespace_marker(element: ET.Element) -> Optional[str]:
        """Fixed namespace of an element's own soap-payload-namespace attribute"""
        for path in MARKER_PATHS:
            for attribute in element.findall(_path(path)):
                if attribute.get("name") == SOAP_PAYLOAD_NAMESPACE_ATTRIBUTE:
                    return attribute.get("fixed")
        return None

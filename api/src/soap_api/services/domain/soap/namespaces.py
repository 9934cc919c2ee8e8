#!/usr/bin/env python3
"""Attach namespace marker attributes to generated message part elements.

Parts declared with ``type=`` (and RPC operation wrappers) are written on the
wire in a namespace that the generated schema cannot express for a local
element. The resolver records that namespace as a fixed ``anyURI`` attribute
on the matching element so message construction can emit the right namespace.
"""

import logging
from typing import Collection, Optional

from ....core.config import ExtractionConfig, extraction_config
from ..schema.errors import ErrorClass, ParserError
from ..schema.model import (
    Attribute,
    ComplexType,
    Element,
    QName,
    Schema,
    Sequence,
    SimpleContent,
    SimpleContentExtension,
    SimpleType,
    sequence_children,
    xsd,
)

logger = logging.getLogger(__name__)

SOAP_PAYLOAD_NAMESPACE_ATTRIBUTE = "soap-payload-namespace"
XML_SIMPLETYPE_VALUE_SUFFIX = "-xml-simpletype-value"


def find_element(schema: Schema, name: str, depth: int = 3,
                 skip: Collection[int] = ()) -> Optional[Element]:
    """Find a generated element by local name.

    Top-level elements are checked first, then their descendants (through
    complex type sequences) breadth first, up to ``depth`` levels down.
    Elements whose id is in ``skip`` are passed over.
    """
    top = schema.elements.get(name)
    if top is not None and id(top) not in skip:
        return top

    level = [child for element in schema.elements.values() for child in sequence_children(element)]
    for _ in range(depth):
        for element in level:
            if element.name == name and id(element) not in skip:
                return element
        level = [child for element in level for child in sequence_children(element)]
        if not level:
            break
    return None


def namespace_attribute(schema: Schema, namespace: str) -> Attribute:
    return Attribute(
        name=SOAP_PAYLOAD_NAMESPACE_ATTRIBUTE,
        type_name=xsd("anyURI"),
        fixed=namespace,
        schema=schema,
    )


def add_namespace_marker(schema: Schema, element: Element, namespace: str):
    """Add a fixed namespace attribute to element, wrapping its type when needed."""
    attribute = namespace_attribute(schema, namespace)
    schema_type = element.schema_type

    if isinstance(schema_type, ComplexType):
        content_model = schema_type.content_model
        if content_model is not None and content_model.content is not None:
            # derived types carry attributes on the derivation
            content_model.content.attributes.append(attribute)
        else:
            schema_type.attributes.append(attribute)

    elif isinstance(schema_type, SimpleType):
        # move the simple type inside a wrapper complex type with the namespace attribute,
        # the connector lifts the value element back up to the parent when building messages
        value = Element(name=element.name + XML_SIMPLETYPE_VALUE_SUFFIX, schema_type=schema_type,
                        schema=schema)
        element.schema_type = ComplexType(
            particle=Sequence(items=[value]),
            attributes=[attribute],
            schema=schema,
        )

    else:
        # element has type=xs:* type
        base_type = element.type_name or xsd("anySimpleType")
        element.type_name = None
        element.schema_type = ComplexType(
            content_model=SimpleContent(content=SimpleContentExtension(
                base_type_name=base_type,
                attributes=[attribute],
            )),
            schema=schema,
        )


def resolve_namespace_targets(schema: Schema, namespace_targets: list[QName],
                              config: Optional[ExtractionConfig] = None):
    """Add namespace attributes for the generated elements named by namespace_targets.

    Raises:
        ParserError: If no generated element matches a target
    """
    config = config or extraction_config
    # parts sharing a local name are matched in order
    marked: set[int] = set()
    for name in namespace_targets:
        element = find_element(schema, name.local, config.namespace_search_depth, marked)
        if element is None:
            raise ParserError(f"Missing generated element for part {name}",
                              error_class=ErrorClass.NAMESPACE_TARGET_NOT_FOUND)

        logger.debug(f"Adding namespace {name.namespace!r} to element {name.local!r}")
        add_namespace_marker(schema, element, name.namespace)
        marked.add(id(element))

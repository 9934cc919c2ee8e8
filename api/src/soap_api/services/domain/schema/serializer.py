#!/usr/bin/env python3
"""Serialize a generated schema to an XSD document string."""

import logging
import xml.etree.ElementTree as ET
from typing import Optional

from ....core.config import ExtractionConfig, extraction_config
from .errors import ErrorClass, ParserError
from .model import (
    All,
    AnyAttribute,
    Attribute,
    Choice,
    ComplexContent,
    ComplexContentExtension,
    ComplexContentRestriction,
    ComplexType,
    Element,
    Facet,
    GroupParticle,
    QName,
    Schema,
    Sequence,
    SimpleContent,
    SimpleContentExtension,
    SimpleContentRestriction,
    SimpleType,
    SimpleTypeList,
    SimpleTypeRestriction,
    SimpleTypeUnion,
    Wildcard,
    XSD_NS,
    is_reference,
)

logger = logging.getLogger(__name__)

XS = f"{{{XSD_NS}}}"


def _occurs(node: ET.Element, min_occurs: int, max_occurs: Optional[int]):
    if min_occurs != 1:
        node.set("minOccurs", str(min_occurs))
    if max_occurs is None:
        node.set("maxOccurs", "unbounded")
    elif max_occurs != 1:
        node.set("maxOccurs", str(max_occurs))


class SchemaSerializer:
    """Writes Schema objects built by the extractor as XSD documents.

    Generated schemas only reference built-in XSD types by name, so the
    document needs a single prefix for the XSD namespace.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None):
        self.config = config or extraction_config
        self.prefix = self.config.schema_prefix

    def serialize(self, schema: Schema) -> str:
        root = self.to_element(schema)
        if self.config.pretty_print:
            ET.indent(root)
        return ET.tostring(root, encoding="unicode")

    def to_element(self, schema: Schema) -> ET.Element:
        root = ET.Element(f"{XS}schema")
        # ElementTree only writes xmlns for prefixes used in tags, declare it explicitly
        root.set(f"xmlns:{self.prefix}", XSD_NS)
        if schema.target_namespace:
            root.set("targetNamespace", schema.target_namespace)
        root.set("elementFormDefault", schema.element_form_default)
        root.set("attributeFormDefault", schema.attribute_form_default)

        for element in schema.elements.values():
            root.append(self._element(element))
        for attribute in schema.attributes.values():
            root.append(self._attribute(attribute))
        if schema.types or schema.groups or schema.attribute_groups:
            raise ParserError("Generated schema must not contain named types or groups",
                              error_class=ErrorClass.NODE_CONSTRUCTION_FAILURE)

        return self._rename(root)

    def _rename(self, root: ET.Element) -> ET.Element:
        """Replace Clark notation tags with prefixed names."""
        for node in root.iter():
            if node.tag.startswith(XS):
                node.tag = f"{self.prefix}:{node.tag[len(XS):]}"
        return root

    def _type_name(self, qname: QName) -> str:
        if qname.namespace != XSD_NS:
            raise ParserError(f"Generated schema references non built-in type {qname}",
                              error_class=ErrorClass.NODE_CONSTRUCTION_FAILURE)
        return f"{self.prefix}:{qname.local}"

    def _node(self, node) -> ET.Element:
        if is_reference(node):
            raise ParserError(f"Generated schema contains unresolved reference {node.ref_name}",
                              error_class=ErrorClass.NODE_CONSTRUCTION_FAILURE)
        if isinstance(node, Element):
            return self._element(node)
        if isinstance(node, GroupParticle):
            return self._particle(node)
        if isinstance(node, Wildcard):
            wildcard = ET.Element(f"{XS}any")
            if node.namespace is not None:
                wildcard.set("namespace", node.namespace)
            if node.process_contents is not None:
                wildcard.set("processContents", node.process_contents)
            _occurs(wildcard, node.min_occurs, node.max_occurs)
            return wildcard
        raise ParserError(f"Unexpected {type(node).__name__} in model group",
                          error_class=ErrorClass.UNSUPPORTED_PARTICLE_KIND)

    def _element(self, element: Element) -> ET.Element:
        node = ET.Element(f"{XS}element")
        node.set("name", element.name or "")
        if element.type_name is not None:
            node.set("type", self._type_name(element.type_name))
        if not element.top_level:
            if element.form is not None:
                node.set("form", element.form)
            _occurs(node, element.min_occurs, element.max_occurs)
        elif element.abstract:
            node.set("abstract", "true")
        if element.nillable:
            node.set("nillable", "true")
        if element.default is not None:
            node.set("default", element.default)
        if element.fixed is not None:
            node.set("fixed", element.fixed)

        if element.schema_type is not None:
            node.append(self._schema_type(element.schema_type))
        return node

    def _attribute(self, attribute: Attribute) -> ET.Element:
        node = ET.Element(f"{XS}attribute")
        node.set("name", attribute.name or "")
        if attribute.type_name is not None:
            node.set("type", self._type_name(attribute.type_name))
        if not attribute.top_level:
            if attribute.form is not None:
                node.set("form", attribute.form)
            if attribute.use is not None:
                node.set("use", attribute.use)
        if attribute.default is not None:
            node.set("default", attribute.default)
        if attribute.fixed is not None:
            node.set("fixed", attribute.fixed)
        if attribute.schema_type is not None:
            node.append(self._simple_type(attribute.schema_type))
        return node

    def _schema_type(self, schema_type) -> ET.Element:
        if isinstance(schema_type, SimpleType):
            return self._simple_type(schema_type)
        return self._complex_type(schema_type)

    def _facets(self, parent: ET.Element, facets: list[Facet]):
        for facet in facets:
            node = ET.SubElement(parent, f"{XS}{facet.kind}")
            node.set("value", facet.value)
            if facet.fixed:
                node.set("fixed", "true")

    def _simple_type(self, simple_type: SimpleType) -> ET.Element:
        node = ET.Element(f"{XS}simpleType")
        content = simple_type.content
        if isinstance(content, SimpleTypeRestriction):
            restriction = ET.SubElement(node, f"{XS}restriction")
            if content.base_type_name is not None:
                restriction.set("base", self._type_name(content.base_type_name))
            if content.base_type is not None:
                restriction.append(self._simple_type(content.base_type))
            self._facets(restriction, content.facets)
        elif isinstance(content, SimpleTypeList):
            type_list = ET.SubElement(node, f"{XS}list")
            if content.item_type_name is not None:
                type_list.set("itemType", self._type_name(content.item_type_name))
            if content.item_type is not None:
                type_list.append(self._simple_type(content.item_type))
        elif isinstance(content, SimpleTypeUnion):
            union = ET.SubElement(node, f"{XS}union")
            if content.member_type_names:
                union.set("memberTypes", " ".join(self._type_name(name)
                                                  for name in content.member_type_names))
            for base_type in content.base_types:
                union.append(self._simple_type(base_type))
        return node

    def _attributes(self, parent: ET.Element, attributes: list, any_attribute: Optional[AnyAttribute]):
        for attribute in attributes:
            if not isinstance(attribute, Attribute):
                raise ParserError(f"Generated schema contains unresolved {type(attribute).__name__}",
                                  error_class=ErrorClass.NODE_CONSTRUCTION_FAILURE)
            parent.append(self._attribute(attribute))
        if any_attribute is not None:
            node = ET.SubElement(parent, f"{XS}anyAttribute")
            if any_attribute.namespace is not None:
                node.set("namespace", any_attribute.namespace)
            if any_attribute.process_contents is not None:
                node.set("processContents", any_attribute.process_contents)

    def _particle(self, particle: GroupParticle) -> ET.Element:
        if isinstance(particle, Sequence):
            tag = "sequence"
        elif isinstance(particle, Choice):
            tag = "choice"
        elif isinstance(particle, All):
            tag = "all"
        else:
            raise ParserError(f"Unsupported Group Particle type {type(particle).__name__}",
                              error_class=ErrorClass.UNSUPPORTED_PARTICLE_KIND)
        node = ET.Element(f"{XS}{tag}")
        _occurs(node, particle.min_occurs, particle.max_occurs)
        for item in particle.items:
            node.append(self._node(item))
        return node

    def _complex_type(self, complex_type: ComplexType) -> ET.Element:
        node = ET.Element(f"{XS}complexType")
        if complex_type.mixed:
            node.set("mixed", "true")

        content_model = complex_type.content_model
        if isinstance(content_model, SimpleContent):
            node.append(self._simple_content(content_model))
        elif isinstance(content_model, ComplexContent):
            node.append(self._complex_content(content_model))
        elif complex_type.particle is not None:
            node.append(self._node(complex_type.particle))

        self._attributes(node, complex_type.attributes, complex_type.any_attribute)
        return node

    def _simple_content(self, content_model: SimpleContent) -> ET.Element:
        node = ET.Element(f"{XS}simpleContent")
        content = content_model.content
        if isinstance(content, SimpleContentExtension):
            extension = ET.SubElement(node, f"{XS}extension")
            if content.base_type_name is not None:
                extension.set("base", self._type_name(content.base_type_name))
            self._attributes(extension, content.attributes, content.any_attribute)
        elif isinstance(content, SimpleContentRestriction):
            restriction = ET.SubElement(node, f"{XS}restriction")
            if content.base_type_name is not None:
                restriction.set("base", self._type_name(content.base_type_name))
            if content.base_type is not None:
                restriction.append(self._simple_type(content.base_type))
            self._facets(restriction, content.facets)
            self._attributes(restriction, content.attributes, content.any_attribute)
        return node

    def _complex_content(self, content_model: ComplexContent) -> ET.Element:
        node = ET.Element(f"{XS}complexContent")
        if content_model.mixed is not None:
            node.set("mixed", "true" if content_model.mixed else "false")
        content = content_model.content
        if isinstance(content, (ComplexContentExtension, ComplexContentRestriction)):
            tag = "extension" if isinstance(content, ComplexContentExtension) else "restriction"
            derivation = ET.SubElement(node, f"{XS}{tag}")
            if content.base_type_name is not None:
                derivation.set("base", self._type_name(content.base_type_name))
            if content.particle is not None:
                derivation.append(self._node(content.particle))
            self._attributes(derivation, content.attributes, content.any_attribute)
        return node


def serialize_schema(schema: Schema, config: Optional[ExtractionConfig] = None) -> str:
    """Serialize a generated schema to its XSD document form."""
    return SchemaSerializer(config).serialize(schema)

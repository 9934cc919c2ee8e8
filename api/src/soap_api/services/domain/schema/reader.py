#!/usr/bin/env python3
"""Read XSD documents into the schema object model.

QName-valued attributes (type, ref, base, ...) are resolved against the
namespace declarations in scope for the element carrying them, which are
captured from ``start-ns`` parse events since ElementTree drops xmlns
attributes.
"""

import io
import logging
from typing import Optional, Union
from xml.etree.ElementTree import Element as XmlElement

# Use defusedxml for secure XML parsing (prevents XXE attacks)
import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

from .errors import ErrorClass, ParserError
from .model import (
    All,
    AnyAttribute,
    Attribute,
    AttributeGroup,
    AttributeGroupRef,
    AttributeRef,
    Choice,
    ComplexContent,
    ComplexContentExtension,
    ComplexContentRestriction,
    ComplexType,
    Element,
    ElementRef,
    Facet,
    Group,
    GroupRef,
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
)

logger = logging.getLogger(__name__)

XS = f"{{{XSD_NS}}}"

FACETS = {
    "enumeration", "pattern", "length", "minLength", "maxLength",
    "minInclusive", "maxInclusive", "minExclusive", "maxExclusive",
    "totalDigits", "fractionDigits", "whiteSpace",
}

# Elements that carry no structure relevant to payload shapes
IGNORED = {"annotation", "import", "include", "redefine", "notation", "key", "keyref", "unique"}

XML_NS = "http://www.w3.org/XML/1998/namespace"

NamespaceMap = dict[str, str]


def parse_xml(content: Union[str, bytes]) -> tuple[XmlElement, dict[XmlElement, NamespaceMap]]:
    """Parse an XML document, returning its root and the prefixes in scope per element.

    Raises:
        ParserError: If the document is not well-formed
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    scopes: dict[XmlElement, NamespaceMap] = {}
    # the xml prefix is bound without a declaration
    stack: list[NamespaceMap] = [{"xml": XML_NS}]
    pending: NamespaceMap = {}
    root = None
    try:
        for event, item in ET.iterparse(io.BytesIO(content), events=("start-ns", "start", "end")):
            if event == "start-ns":
                prefix, uri = item
                pending[prefix] = uri
            elif event == "start":
                scope = dict(stack[-1])
                scope.update(pending)
                pending = {}
                scopes[item] = scope
                stack.append(scope)
                if root is None:
                    root = item
            else:
                stack.pop()
    except (ET.ParseError, DefusedXmlException) as e:
        raise ParserError(f"Invalid XML: {e}", error_class=ErrorClass.INVALID_WSDL) from e

    return root, scopes


def read_schema(content: Union[str, bytes]) -> Schema:
    """Read a standalone XSD document."""
    root, scopes = parse_xml(content)
    if root.tag != f"{XS}schema":
        raise ParserError(f"Root element is not an XML Schema: {root.tag}",
                          error_class=ErrorClass.INVALID_WSDL)
    return SchemaReader(scopes).read(root)


def read_schema_element(element: XmlElement, scopes: dict[XmlElement, NamespaceMap]) -> Schema:
    """Read an ``xs:schema`` element embedded in a larger document (e.g. WSDL types)."""
    return SchemaReader(scopes).read(element)


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _occurs(value: Optional[str]) -> Optional[int]:
    if value is None:
        return 1
    if value == "unbounded":
        return None
    return int(value)


def _bool(value: Optional[str]) -> bool:
    return value in ("true", "1")


class SchemaReader:
    """Builds a Schema from an ``xs:schema`` element tree."""

    def __init__(self, scopes: dict[XmlElement, NamespaceMap]):
        self.scopes = scopes
        self.schema: Optional[Schema] = None

    def read(self, root: XmlElement) -> Schema:
        self.schema = Schema(
            root.get("targetNamespace", ""),
            element_form_default=root.get("elementFormDefault", "unqualified"),
            attribute_form_default=root.get("attributeFormDefault", "unqualified"),
        )

        for child in root:
            if not isinstance(child.tag, str) or not child.tag.startswith(XS):
                continue
            kind = _local(child.tag)
            if kind == "element":
                self.schema.add_element(self._element(child, top_level=True))
            elif kind == "attribute":
                self.schema.add_attribute(self._attribute(child, top_level=True))
            elif kind == "simpleType":
                self.schema.add_type(self._simple_type(child))
            elif kind == "complexType":
                self.schema.add_type(self._complex_type(child))
            elif kind == "group":
                self.schema.add_group(self._group(child))
            elif kind == "attributeGroup":
                self.schema.add_attribute_group(self._attribute_group(child))
            elif kind not in IGNORED:
                logger.warning(f"Ignoring unsupported top-level schema construct xs:{kind}")

        logger.debug(f"Read schema {self.schema.target_namespace!r}: "
                     f"{len(self.schema.elements)} elements, {len(self.schema.types)} types")
        return self.schema

    def _qname(self, node: XmlElement, attr: str) -> Optional[QName]:
        value = node.get(attr)
        if value is None:
            return None
        return self._resolve(node, value.strip())

    def _resolve(self, node: XmlElement, value: str) -> QName:
        """Resolve prefix:local against the namespaces in scope for node."""
        scope = self.scopes.get(node, {})
        if ":" in value:
            prefix, local = value.split(":", 1)
            if prefix not in scope:
                raise ParserError(f"Unknown namespace prefix '{prefix}' in '{value}'",
                                  error_class=ErrorClass.INVALID_WSDL)
            return QName(scope[prefix], local)
        return QName(scope.get("", ""), value)

    @staticmethod
    def _children(node: XmlElement) -> list[tuple[str, XmlElement]]:
        return [(_local(child.tag), child) for child in node
                if isinstance(child.tag, str) and child.tag.startswith(XS)
                and _local(child.tag) != "annotation"]

    def _element(self, node: XmlElement, top_level: bool = False) -> Union[Element, ElementRef]:
        ref = self._qname(node, "ref")
        if ref is not None:
            return ElementRef(
                ref_name=ref,
                min_occurs=_occurs(node.get("minOccurs")),
                max_occurs=_occurs(node.get("maxOccurs")),
            )

        element = Element(
            name=node.get("name"),
            top_level=top_level,
            type_name=self._qname(node, "type"),
            substitution_group=self._qname(node, "substitutionGroup"),
            min_occurs=_occurs(node.get("minOccurs")),
            max_occurs=_occurs(node.get("maxOccurs")),
            nillable=_bool(node.get("nillable")),
            abstract=_bool(node.get("abstract")),
            default=node.get("default"),
            fixed=node.get("fixed"),
            form=node.get("form"),
            schema=self.schema,
        )
        for kind, child in self._children(node):
            if kind == "simpleType":
                element.schema_type = self._simple_type(child)
            elif kind == "complexType":
                element.schema_type = self._complex_type(child)
        return element

    def _attribute(self, node: XmlElement, top_level: bool = False) -> Union[Attribute, AttributeRef]:
        ref = self._qname(node, "ref")
        if ref is not None:
            return AttributeRef(
                ref_name=ref,
                use=node.get("use"),
                default=node.get("default"),
                fixed=node.get("fixed"),
            )

        attribute = Attribute(
            name=node.get("name"),
            top_level=top_level,
            type_name=self._qname(node, "type"),
            use=node.get("use"),
            default=node.get("default"),
            fixed=node.get("fixed"),
            form=node.get("form"),
            schema=self.schema,
        )
        for kind, child in self._children(node):
            if kind == "simpleType":
                attribute.schema_type = self._simple_type(child)
        return attribute

    def _attributes(self, node: XmlElement) -> tuple[list, Optional[AnyAttribute]]:
        attributes = []
        any_attribute = None
        for kind, child in self._children(node):
            if kind == "attribute":
                attributes.append(self._attribute(child))
            elif kind == "attributeGroup":
                attributes.append(AttributeGroupRef(ref_name=self._qname(child, "ref")))
            elif kind == "anyAttribute":
                any_attribute = AnyAttribute(
                    namespace=child.get("namespace"),
                    process_contents=child.get("processContents"),
                )
        return attributes, any_attribute

    def _facets(self, node: XmlElement) -> list[Facet]:
        return [Facet(kind=kind, value=child.get("value", ""), fixed=_bool(child.get("fixed")))
                for kind, child in self._children(node) if kind in FACETS]

    def _simple_type(self, node: XmlElement) -> SimpleType:
        simple_type = SimpleType(name=node.get("name"), schema=self.schema)
        for kind, child in self._children(node):
            if kind == "restriction":
                restriction = SimpleTypeRestriction(
                    base_type_name=self._qname(child, "base"),
                    facets=self._facets(child),
                )
                for inner_kind, inner in self._children(child):
                    if inner_kind == "simpleType":
                        restriction.base_type = self._simple_type(inner)
                simple_type.content = restriction
            elif kind == "list":
                type_list = SimpleTypeList(item_type_name=self._qname(child, "itemType"))
                for inner_kind, inner in self._children(child):
                    if inner_kind == "simpleType":
                        type_list.item_type = self._simple_type(inner)
                simple_type.content = type_list
            elif kind == "union":
                member_types = child.get("memberTypes", "").split()
                simple_type.content = SimpleTypeUnion(
                    member_type_names=[self._resolve(child, name) for name in member_types],
                    base_types=[self._simple_type(inner) for inner_kind, inner in self._children(child)
                                if inner_kind == "simpleType"],
                )
        return simple_type

    def _particle(self, kind: str, node: XmlElement):
        if kind == "group":
            return GroupRef(
                ref_name=self._qname(node, "ref"),
                min_occurs=_occurs(node.get("minOccurs")),
                max_occurs=_occurs(node.get("maxOccurs")),
            )
        particle_class = {"sequence": Sequence, "choice": Choice, "all": All}[kind]
        particle = particle_class(
            min_occurs=_occurs(node.get("minOccurs")),
            max_occurs=_occurs(node.get("maxOccurs")),
        )
        for item_kind, item in self._children(node):
            if item_kind == "element":
                particle.items.append(self._element(item))
            elif item_kind in ("sequence", "choice", "all", "group"):
                particle.items.append(self._particle(item_kind, item))
            elif item_kind == "any":
                particle.items.append(Wildcard(
                    namespace=item.get("namespace"),
                    process_contents=item.get("processContents"),
                    min_occurs=_occurs(item.get("minOccurs")),
                    max_occurs=_occurs(item.get("maxOccurs")),
                ))
        return particle

    def _complex_type(self, node: XmlElement) -> ComplexType:
        complex_type = ComplexType(
            name=node.get("name"),
            mixed=_bool(node.get("mixed")),
            abstract=_bool(node.get("abstract")),
            schema=self.schema,
        )
        complex_type.attributes, complex_type.any_attribute = self._attributes(node)

        for kind, child in self._children(node):
            if kind in ("sequence", "choice", "all", "group"):
                complex_type.particle = self._particle(kind, child)
            elif kind == "simpleContent":
                complex_type.content_model = self._simple_content(child)
            elif kind == "complexContent":
                complex_type.content_model = self._complex_content(child)
        return complex_type

    def _simple_content(self, node: XmlElement) -> SimpleContent:
        content_model = SimpleContent()
        for kind, child in self._children(node):
            attributes, any_attribute = self._attributes(child)
            if kind == "extension":
                content_model.content = SimpleContentExtension(
                    base_type_name=self._qname(child, "base"),
                    attributes=attributes,
                    any_attribute=any_attribute,
                )
            elif kind == "restriction":
                restriction = SimpleContentRestriction(
                    base_type_name=self._qname(child, "base"),
                    facets=self._facets(child),
                    attributes=attributes,
                    any_attribute=any_attribute,
                )
                for inner_kind, inner in self._children(child):
                    if inner_kind == "simpleType":
                        restriction.base_type = self._simple_type(inner)
                content_model.content = restriction
        return content_model

    def _complex_content(self, node: XmlElement) -> ComplexContent:
        mixed = node.get("mixed")
        content_model = ComplexContent(mixed=_bool(mixed) if mixed is not None else None)
        for kind, child in self._children(node):
            if kind not in ("extension", "restriction"):
                continue
            content_class = ComplexContentExtension if kind == "extension" else ComplexContentRestriction
            content = content_class(base_type_name=self._qname(child, "base"))
            content.attributes, content.any_attribute = self._attributes(child)
            for inner_kind, inner in self._children(child):
                if inner_kind in ("sequence", "choice", "all", "group"):
                    content.particle = self._particle(inner_kind, inner)
            content_model.content = content
        return content_model

    def _group(self, node: XmlElement) -> Group:
        group = Group(name=node.get("name"), schema=self.schema)
        for kind, child in self._children(node):
            if kind in ("sequence", "choice", "all"):
                group.particle = self._particle(kind, child)
        return group

    def _attribute_group(self, node: XmlElement) -> AttributeGroup:
        group = AttributeGroup(name=node.get("name"), schema=self.schema)
        group.attributes, group.any_attribute = self._attributes(node)
        return group

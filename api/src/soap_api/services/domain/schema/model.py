#!/usr/bin/env python3
"""In-memory XML Schema object model.

Source schemas are read from WSDL ``types`` sections and are never mutated by
extraction. Target schemas are built node by node by the extractor and only
ever contain anonymous, inlined structure below their top-level elements.

References between source components are kept by qualified name and are
resolved through the owning :class:`Schema` (``get_element``, ``get_type`` ...),
so a source graph may be recursive without the object graph being cyclic.
"""

from dataclasses import dataclass, field
from typing import Iterator, NamedTuple, Optional, Union

# XSD namespace
XSD_NS = "http://www.w3.org/2001/XMLSchema"

UNBOUNDED = None


class QName(NamedTuple):
    """Qualified name, rendered in Clark notation."""
    namespace: str
    local: str

    def __str__(self) -> str:
        if not self.namespace:
            return self.local
        return f"{{{self.namespace}}}{self.local}"

    @classmethod
    def parse(cls, value: str) -> "QName":
        """Parse Clark notation (``{ns}local``) or a bare local name."""
        if value.startswith("{"):
            namespace, _, local = value[1:].partition("}")
            return cls(namespace, local)
        return cls("", value)


def xsd(local: str) -> QName:
    return QName(XSD_NS, local)


def is_builtin(qname: Optional[QName]) -> bool:
    """True if qname names a type in the XSD namespace."""
    return qname is not None and qname.namespace == XSD_NS


@dataclass(eq=False)
class SchemaNode:
    """Base class of every schema construct."""


@dataclass(eq=False)
class Facet(SchemaNode):
    kind: str  # e.g. 'enumeration', 'maxLength'
    value: str
    fixed: bool = False


@dataclass(eq=False)
class AnyAttribute(SchemaNode):
    namespace: Optional[str] = None
    process_contents: Optional[str] = None


@dataclass(eq=False)
class Wildcard(SchemaNode):
    namespace: Optional[str] = None
    process_contents: Optional[str] = None
    min_occurs: int = 1
    max_occurs: Optional[int] = 1


# Simple types

@dataclass(eq=False)
class SimpleTypeRestriction(SchemaNode):
    base_type_name: Optional[QName] = None
    base_type: Optional["SimpleType"] = None
    facets: list[Facet] = field(default_factory=list)


@dataclass(eq=False)
class SimpleTypeList(SchemaNode):
    item_type_name: Optional[QName] = None
    item_type: Optional["SimpleType"] = None


@dataclass(eq=False)
class SimpleTypeUnion(SchemaNode):
    member_type_names: list[QName] = field(default_factory=list)
    base_types: list["SimpleType"] = field(default_factory=list)


SimpleTypeContent = Union[SimpleTypeRestriction, SimpleTypeList, SimpleTypeUnion]


@dataclass(eq=False)
class SimpleType(SchemaNode):
    name: Optional[str] = None
    top_level: bool = False
    content: Optional[SimpleTypeContent] = None
    schema: Optional["Schema"] = field(default=None, repr=False)

    @property
    def qname(self) -> Optional[QName]:
        return _component_qname(self)


# Attributes

@dataclass(eq=False)
class Attribute(SchemaNode):
    name: Optional[str] = None
    top_level: bool = False
    type_name: Optional[QName] = None
    schema_type: Optional[SimpleType] = None
    use: Optional[str] = None
    default: Optional[str] = None
    fixed: Optional[str] = None
    form: Optional[str] = None
    schema: Optional["Schema"] = field(default=None, repr=False)

    @property
    def qname(self) -> Optional[QName]:
        return _component_qname(self)


@dataclass(eq=False)
class AttributeRef(SchemaNode):
    ref_name: QName
    use: Optional[str] = None
    default: Optional[str] = None
    fixed: Optional[str] = None


@dataclass(eq=False)
class AttributeGroupRef(SchemaNode):
    ref_name: QName


AttributeMember = Union[Attribute, AttributeRef, AttributeGroupRef]


@dataclass(eq=False)
class AttributeGroup(SchemaNode):
    name: Optional[str] = None
    top_level: bool = True
    attributes: list[AttributeMember] = field(default_factory=list)
    any_attribute: Optional[AnyAttribute] = None
    schema: Optional["Schema"] = field(default=None, repr=False)

    @property
    def qname(self) -> Optional[QName]:
        return _component_qname(self)


# Model groups

@dataclass(eq=False)
class GroupParticle(SchemaNode):
    items: list["Particle"] = field(default_factory=list)
    min_occurs: int = 1
    max_occurs: Optional[int] = 1


@dataclass(eq=False)
class Sequence(GroupParticle):
    pass


@dataclass(eq=False)
class Choice(GroupParticle):
    pass


@dataclass(eq=False)
class All(GroupParticle):
    pass


@dataclass(eq=False)
class GroupRef(SchemaNode):
    ref_name: QName
    min_occurs: int = 1
    max_occurs: Optional[int] = 1


@dataclass(eq=False)
class Group(SchemaNode):
    name: Optional[str] = None
    top_level: bool = True
    particle: Optional[GroupParticle] = None
    schema: Optional["Schema"] = field(default=None, repr=False)

    @property
    def qname(self) -> Optional[QName]:
        return _component_qname(self)


# Content models

@dataclass(eq=False)
class SimpleContentExtension(SchemaNode):
    base_type_name: Optional[QName] = None
    attributes: list[AttributeMember] = field(default_factory=list)
    any_attribute: Optional[AnyAttribute] = None


@dataclass(eq=False)
class SimpleContentRestriction(SchemaNode):
    base_type_name: Optional[QName] = None
    base_type: Optional[SimpleType] = None
    facets: list[Facet] = field(default_factory=list)
    attributes: list[AttributeMember] = field(default_factory=list)
    any_attribute: Optional[AnyAttribute] = None


@dataclass(eq=False)
class ComplexContentExtension(SchemaNode):
    base_type_name: Optional[QName] = None
    particle: Optional[Union[GroupParticle, GroupRef]] = None
    attributes: list[AttributeMember] = field(default_factory=list)
    any_attribute: Optional[AnyAttribute] = None


@dataclass(eq=False)
class ComplexContentRestriction(SchemaNode):
    base_type_name: Optional[QName] = None
    particle: Optional[Union[GroupParticle, GroupRef]] = None
    attributes: list[AttributeMember] = field(default_factory=list)
    any_attribute: Optional[AnyAttribute] = None


@dataclass(eq=False)
class SimpleContent(SchemaNode):
    content: Optional[Union[SimpleContentExtension, SimpleContentRestriction]] = None


@dataclass(eq=False)
class ComplexContent(SchemaNode):
    mixed: Optional[bool] = None
    content: Optional[Union[ComplexContentExtension, ComplexContentRestriction]] = None


ContentModel = Union[SimpleContent, ComplexContent]


@dataclass(eq=False)
class ComplexType(SchemaNode):
    name: Optional[str] = None
    top_level: bool = False
    mixed: bool = False
    abstract: bool = False
    attributes: list[AttributeMember] = field(default_factory=list)
    any_attribute: Optional[AnyAttribute] = None
    content_model: Optional[ContentModel] = None
    particle: Optional[Union[GroupParticle, GroupRef]] = None
    schema: Optional["Schema"] = field(default=None, repr=False)

    @property
    def qname(self) -> Optional[QName]:
        return _component_qname(self)


SchemaType = Union[SimpleType, ComplexType]


# Elements

@dataclass(eq=False)
class Element(SchemaNode):
    name: Optional[str] = None
    top_level: bool = False
    type_name: Optional[QName] = None
    schema_type: Optional[SchemaType] = None
    substitution_group: Optional[QName] = None
    min_occurs: int = 1
    max_occurs: Optional[int] = 1
    nillable: bool = False
    abstract: bool = False
    default: Optional[str] = None
    fixed: Optional[str] = None
    form: Optional[str] = None
    schema: Optional["Schema"] = field(default=None, repr=False)

    @property
    def qname(self) -> Optional[QName]:
        return _component_qname(self)


@dataclass(eq=False)
class ElementRef(SchemaNode):
    ref_name: QName
    min_occurs: int = 1
    max_occurs: Optional[int] = 1


Particle = Union[Element, ElementRef, GroupParticle, GroupRef, Wildcard]

REFERENCE_KINDS = (ElementRef, AttributeRef, GroupRef, AttributeGroupRef)
NAMED_KINDS = (Element, Attribute, SimpleType, ComplexType, Group, AttributeGroup)


def _component_qname(node) -> Optional[QName]:
    if node.name is None:
        return None
    namespace = node.schema.target_namespace if node.schema is not None else ""
    return QName(namespace, node.name)


def is_reference(node: SchemaNode) -> bool:
    return isinstance(node, REFERENCE_KINDS)


def is_named(node: SchemaNode) -> bool:
    return isinstance(node, NAMED_KINDS) and node.name is not None


def is_top_level(node: SchemaNode) -> bool:
    return isinstance(node, NAMED_KINDS) and node.top_level


class Schema:
    """A schema document: target namespace plus its top-level components."""

    def __init__(
        self,
        target_namespace: str,
        element_form_default: str = "unqualified",
        attribute_form_default: str = "unqualified",
    ):
        self.target_namespace = target_namespace or ""
        self.element_form_default = element_form_default
        self.attribute_form_default = attribute_form_default
        self.elements: dict[str, Element] = {}
        self.attributes: dict[str, Attribute] = {}
        self.types: dict[str, SchemaType] = {}
        self.groups: dict[str, Group] = {}
        self.attribute_groups: dict[str, AttributeGroup] = {}

    def __repr__(self) -> str:
        return (f"Schema(target_namespace={self.target_namespace!r}, "
                f"elements={list(self.elements)}, types={list(self.types)})")

    def _register(self, table: dict, node):
        node.schema = self
        node.top_level = True
        table[node.name] = node
        return node

    def add_element(self, element: Element) -> Element:
        return self._register(self.elements, element)

    def add_attribute(self, attribute: Attribute) -> Attribute:
        return self._register(self.attributes, attribute)

    def add_type(self, schema_type: SchemaType) -> SchemaType:
        return self._register(self.types, schema_type)

    def add_group(self, group: Group) -> Group:
        return self._register(self.groups, group)

    def add_attribute_group(self, group: AttributeGroup) -> AttributeGroup:
        return self._register(self.attribute_groups, group)

    def _lookup(self, table: dict, qname: Optional[QName]):
        if qname is None or qname.namespace != self.target_namespace:
            return None
        return table.get(qname.local)

    def get_element(self, qname: QName) -> Optional[Element]:
        return self._lookup(self.elements, qname)

    def get_attribute(self, qname: QName) -> Optional[Attribute]:
        return self._lookup(self.attributes, qname)

    def get_type(self, qname: QName) -> Optional[SchemaType]:
        return self._lookup(self.types, qname)

    def get_group(self, qname: QName) -> Optional[Group]:
        return self._lookup(self.groups, qname)

    def get_attribute_group(self, qname: QName) -> Optional[AttributeGroup]:
        return self._lookup(self.attribute_groups, qname)


def child_nodes(node: SchemaNode) -> list[SchemaNode]:
    """Direct structural children of a node, in document order."""
    children: list = []
    if isinstance(node, (Element, Attribute)):
        children.append(node.schema_type)
    elif isinstance(node, SimpleType):
        children.append(node.content)
    elif isinstance(node, SimpleTypeRestriction):
        children.append(node.base_type)
        children.extend(node.facets)
    elif isinstance(node, SimpleTypeList):
        children.append(node.item_type)
    elif isinstance(node, SimpleTypeUnion):
        children.extend(node.base_types)
    elif isinstance(node, ComplexType):
        children.append(node.content_model)
        children.append(node.particle)
        children.extend(node.attributes)
        children.append(node.any_attribute)
    elif isinstance(node, (SimpleContent, ComplexContent)):
        children.append(node.content)
    elif isinstance(node, (ComplexContentExtension, ComplexContentRestriction)):
        children.append(node.particle)
        children.extend(node.attributes)
        children.append(node.any_attribute)
    elif isinstance(node, (SimpleContentExtension, SimpleContentRestriction)):
        if isinstance(node, SimpleContentRestriction):
            children.append(node.base_type)
            children.extend(node.facets)
        children.extend(node.attributes)
        children.append(node.any_attribute)
    elif isinstance(node, GroupParticle):
        children.extend(node.items)
    elif isinstance(node, Group):
        children.append(node.particle)
    elif isinstance(node, AttributeGroup):
        children.extend(node.attributes)
        children.append(node.any_attribute)
    return [child for child in children if child is not None]


def iter_nodes(schema: Schema) -> Iterator[SchemaNode]:
    """Walk every node reachable from the schema's top-level components."""
    roots: list[SchemaNode] = [
        *schema.elements.values(),
        *schema.attributes.values(),
        *schema.types.values(),
        *schema.groups.values(),
        *schema.attribute_groups.values(),
    ]
    stack = list(reversed(roots))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(child_nodes(node)))


def sequence_children(element: Element) -> list[Element]:
    """Child elements of an element whose type is a complex type with a sequence."""
    schema_type = element.schema_type
    if isinstance(schema_type, ComplexType) and isinstance(schema_type.particle, Sequence):
        return [item for item in schema_type.particle.items if isinstance(item, Element)]
    return []

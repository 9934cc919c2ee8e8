#!/usr/bin/env python3
"""Extract self-contained XML Schema fragments from a source schema.

The extractor copies elements and types from a source schema into a target
schema, inlining every referenced element, type, group and attribute group
as anonymous structure. The target schema never contains references or named
types; only the elements requested as top-level roots keep a top-level
declaration.

Extraction is two-phase. ``extract_element``/``extract_type`` create the root
target nodes and register work items; ``drain`` then processes work items in
FIFO order, each one copying a single source node and registering work items
for its children. Every work item carries the path of top-level named source
components it was reached through, which is how circular type references are
detected.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional

from ....core.config import ExtractionConfig, extraction_config
from .errors import ErrorClass, ParserError
from .model import (
    All,
    AnyAttribute,
    Attribute,
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
    GroupParticle,
    GroupRef,
    QName,
    Schema,
    SchemaNode,
    SchemaType,
    Sequence,
    SimpleContent,
    SimpleContentExtension,
    SimpleContentRestriction,
    SimpleType,
    SimpleTypeList,
    SimpleTypeRestriction,
    SimpleTypeUnion,
    Wildcard,
    is_builtin,
    xsd,
)

logger = logging.getLogger(__name__)

ANY_TYPE = xsd("anyType")
STRING_TYPE = xsd("string")

# (component kind, qualified name) of a top-level named source node
ComponentKey = tuple[str, QName]


@dataclass
class WorkItem:
    """A pending copy of source into target."""
    target: SchemaNode
    source: SchemaNode
    path: tuple[ComponentKey, ...]


def component_key(node: SchemaNode) -> Optional[ComponentKey]:
    """Key of a top-level named component, None for local and anonymous nodes."""
    if isinstance(node, Element):
        kind = "element"
    elif isinstance(node, Attribute):
        kind = "attribute"
    elif isinstance(node, (SimpleType, ComplexType)):
        kind = "type"
    elif isinstance(node, Group):
        kind = "group"
    else:
        return None
    if not node.top_level or node.name is None:
        return None
    return kind, node.qname


def _copy_any_attribute(source: Optional[AnyAttribute]) -> Optional[AnyAttribute]:
    if source is None:
        return None
    return AnyAttribute(namespace=source.namespace, process_contents=source.process_contents)


def _copy_facets(source: list[Facet]) -> list[Facet]:
    return [Facet(kind=facet.kind, value=facet.value, fixed=facet.fixed) for facet in source]


class XmlSchemaExtractor:
    """Copies source schema structure into a target schema as inlined anonymous types.

    Usage:
        extractor = XmlSchemaExtractor(target_schema, source_schema)
        extractor.extract_element(source_schema.get_element(name), top_level=True)
        extractor.drain()
    """

    def __init__(self, target_schema: Schema, source_schema: Schema,
                 config: Optional[ExtractionConfig] = None):
        self.target_schema = target_schema
        self.source_schema = source_schema
        self.config = config or extraction_config

        self._queue: deque[WorkItem] = deque()
        self._current_path: tuple[ComponentKey, ...] = ()
        self._processed = 0

        # One handler per concrete source node class
        self._handlers: dict[type, Callable[[SchemaNode, SchemaNode], None]] = {
            ElementRef: self._handle_ref,
            AttributeRef: self._handle_ref,
            Element: self._handle_element,
            Attribute: self._handle_attribute,
            SimpleType: self._handle_simple_type,
            SimpleTypeRestriction: self._handle_simple_type_restriction,
            SimpleTypeList: self._handle_simple_type_list,
            SimpleTypeUnion: self._handle_simple_type_union,
            ComplexType: self._handle_complex_type,
            SimpleContent: self._handle_content_model,
            ComplexContent: self._handle_content_model,
            SimpleContentExtension: self._handle_simple_content_extension,
            SimpleContentRestriction: self._handle_simple_content_restriction,
            ComplexContentExtension: self._handle_complex_content_extension,
            ComplexContentRestriction: self._handle_complex_content_restriction,
            Sequence: self._handle_group_particle,
            Choice: self._handle_group_particle,
            All: self._handle_group_particle,
            Wildcard: self._handle_wildcard,
        }

        # Field copies not covered by handlers
        self._copiers: dict[type, Callable[[SchemaNode, SchemaNode], None]] = {
            Element: self._copy_element_fields,
            Attribute: self._copy_attribute_fields,
            ComplexType: self._copy_complex_type_fields,
            ComplexContent: self._copy_complex_content_fields,
            SimpleTypeRestriction: self._copy_restriction_fields,
            SimpleContentRestriction: self._copy_restriction_fields,
            SimpleContentExtension: self._copy_extension_fields,
            ComplexContentExtension: self._copy_extension_fields,
            ComplexContentRestriction: self._copy_extension_fields,
            Sequence: self._copy_particle_fields,
            Choice: self._copy_particle_fields,
            All: self._copy_particle_fields,
            Wildcard: self._copy_wildcard_fields,
        }

    def extract_element(self, element: Element, top_level: bool) -> Element:
        """Register a copy of a source element; returns the (still empty) target element."""
        result = Element(name=element.name, schema=self.target_schema)
        if top_level:
            self.target_schema.add_element(result)
        elif element.top_level and self.target_schema.element_form_default != "qualified":
            # global elements are always namespace qualified on the wire
            result.form = "qualified"

        logger.debug(f"Extracting element {element.qname} (top_level={top_level})")
        self._current_path = ()
        self._enqueue(result, element)
        return result

    def extract_type(self, name: str, source_type: SchemaType, top_level: bool) -> Element:
        """Register an element named ``name`` whose type is a copy of source_type."""
        result = Element(name=name, schema=self.target_schema)
        if top_level:
            self.target_schema.add_element(result)

        logger.debug(f"Extracting type {source_type.qname} as element {name!r} (top_level={top_level})")
        self._current_path = ()
        result.schema_type = self._create(source_type)
        return result

    def drain(self):
        """Copy all registered objects from source schema to target schema.

        Raises:
            ParserError: On dangling references, circular references or
                unsupported schema constructs
        """
        while self._queue:
            # get objects in FIFO insertion order
            item = self._queue.popleft()
            self._current_path = item.path

            self._processed += 1
            if self._processed > self.config.max_work_items:
                raise ParserError(
                    f"Schema extraction exceeded {self.config.max_work_items} copied nodes",
                    error_class=ErrorClass.NODE_CONSTRUCTION_FAILURE,
                )

            handler = self._handlers.get(type(item.source))
            if handler is None:
                raise ParserError(f"Unsupported type {type(item.source).__name__}",
                                  error_class=ErrorClass.NODE_CONSTRUCTION_FAILURE)
            handler(item.target, item.source)

        self._current_path = ()
        logger.debug(f"Extraction complete: {self._processed} nodes copied into "
                     f"{len(self.target_schema.elements)} top-level elements")

    # Work queue

    def _enqueue(self, target: SchemaNode, source: SchemaNode, key: Optional[ComponentKey] = None):
        """Copy plain fields now and schedule the handler for source."""
        copier = self._copiers.get(type(source))
        if copier is not None:
            copier(target, source)

        key = key or component_key(source)
        if key is not None and key in self._current_path:
            chain = ", ".join(str(name) for _, name in self._current_path)
            raise ParserError(f"Circular reference in schema type {chain}, {key[1]}",
                              error_class=ErrorClass.CIRCULAR_REFERENCE)

        path = self._current_path + (key,) if key is not None else self._current_path
        self._queue.append(WorkItem(target, source, path))

    def _create(self, source: SchemaNode, key: Optional[ComponentKey] = None) -> SchemaNode:
        """Create an empty target node for source and schedule its copy."""
        if isinstance(source, ElementRef):
            target = Element(min_occurs=source.min_occurs, max_occurs=source.max_occurs,
                             schema=self.target_schema)
        elif isinstance(source, AttributeRef):
            target = Attribute(use=source.use, default=source.default, fixed=source.fixed,
                               schema=self.target_schema)
        elif isinstance(source, Element):
            target = Element(name=source.name, form=source.form, min_occurs=source.min_occurs,
                             max_occurs=source.max_occurs, schema=self.target_schema)
        elif isinstance(source, Attribute):
            target = Attribute(name=source.name, form=source.form, schema=self.target_schema)
        elif isinstance(source, (SimpleType, ComplexType)):
            # generated types are always local and anonymous
            target = type(source)(schema=self.target_schema)
        elif type(source) in self._handlers:
            target = type(source)()
        else:
            raise ParserError(f"Error extracting type {type(source).__name__}: no target construction",
                              error_class=ErrorClass.NODE_CONSTRUCTION_FAILURE)

        self._enqueue(target, source, key)
        return target

    # Field copies

    @staticmethod
    def _copy_element_fields(target: Element, source: Element):
        target.nillable = target.nillable or source.nillable
        if target.default is None:
            target.default = source.default
        if target.fixed is None:
            target.fixed = source.fixed
        if target.top_level:
            target.abstract = source.abstract

    @staticmethod
    def _copy_attribute_fields(target: Attribute, source: Attribute):
        if target.use is None:
            target.use = source.use
        if target.default is None:
            target.default = source.default
        if target.fixed is None:
            target.fixed = source.fixed

    @staticmethod
    def _copy_complex_type_fields(target: ComplexType, source: ComplexType):
        target.mixed = source.mixed
        target.any_attribute = _copy_any_attribute(source.any_attribute)

    @staticmethod
    def _copy_complex_content_fields(target: ComplexContent, source: ComplexContent):
        target.mixed = source.mixed

    @staticmethod
    def _copy_restriction_fields(target, source):
        target.facets = _copy_facets(source.facets)
        if hasattr(source, "any_attribute"):
            target.any_attribute = _copy_any_attribute(source.any_attribute)

    @staticmethod
    def _copy_extension_fields(target, source):
        target.any_attribute = _copy_any_attribute(source.any_attribute)

    @staticmethod
    def _copy_particle_fields(target: GroupParticle, source: GroupParticle):
        target.min_occurs = source.min_occurs
        target.max_occurs = source.max_occurs

    @staticmethod
    def _copy_wildcard_fields(target: Wildcard, source: Wildcard):
        target.namespace = source.namespace
        target.process_contents = source.process_contents
        target.min_occurs = source.min_occurs
        target.max_occurs = source.max_occurs

    # Handlers

    def _handle_ref(self, target, source):
        """Copy the referenced global element or attribute into target."""
        if isinstance(source, ElementRef):
            ref_target = self.source_schema.get_element(source.ref_name)
            form_default = self.target_schema.element_form_default
        else:
            ref_target = self.source_schema.get_attribute(source.ref_name)
            form_default = self.target_schema.attribute_form_default

        # refs into other schemas are not supported
        if ref_target is None:
            raise ParserError(f"Missing ref target in source schema: {source.ref_name}",
                              error_class=ErrorClass.MISSING_REF_TARGET)

        target.name = ref_target.name
        if form_default != "qualified":
            target.form = "qualified"
        self._enqueue(target, ref_target)

    def _handle_element(self, target: Element, source: Element):
        if source.substitution_group is not None:
            # overwrite target with the substitution group head
            head = self.source_schema.get_element(source.substitution_group)
            if head is None:
                raise ParserError(f"Missing substitution group in source schema: {source.substitution_group}",
                                  error_class=ErrorClass.MISSING_REF_TARGET)
            self._enqueue(target, head)
        else:
            target.type_name, target.schema_type = self._copy_type(source.type_name, source.schema_type)

    def _handle_attribute(self, target: Attribute, source: Attribute):
        target.type_name, target.schema_type = self._copy_type(
            source.type_name, source.schema_type, simple_only=True)

    def _handle_simple_type(self, target: SimpleType, source: SimpleType):
        if source.content is not None:
            target.content = self._create(source.content)

    def _handle_simple_type_restriction(self, target: SimpleTypeRestriction, source: SimpleTypeRestriction):
        target.base_type_name, target.base_type = self._copy_type(
            source.base_type_name, source.base_type, simple_only=True)

    def _handle_simple_type_list(self, target: SimpleTypeList, source: SimpleTypeList):
        target.item_type_name, target.item_type = self._copy_type(
            source.item_type_name, source.item_type, simple_only=True)

    def _handle_simple_type_union(self, target: SimpleTypeUnion, source: SimpleTypeUnion):
        for base_type in source.base_types:
            target.base_types.append(self._create(base_type))

        # copy member types by QName
        for name in source.member_type_names:
            if is_builtin(name):
                target.member_type_names.append(name)
            else:
                simple_type = self.source_schema.get_type(name)
                if not isinstance(simple_type, SimpleType):
                    raise ParserError(f"Missing simple type in source schema: {name}",
                                      error_class=ErrorClass.MISSING_TYPE)
                target.base_types.append(self._create(simple_type))

    def _handle_complex_type(self, target: ComplexType, source: ComplexType):
        self._copy_attributes(target, source.attributes)

        if source.content_model is not None:
            target.content_model = self._create(source.content_model)

        target.particle = self._copy_particle(source.particle)

    def _handle_content_model(self, target, source):
        if source.content is None:
            raise ParserError(f"Unexpected empty content in content model {type(source).__name__}",
                              error_class=ErrorClass.NODE_CONSTRUCTION_FAILURE)
        target.content = self._create(source.content)

    def _handle_simple_content_extension(self, target: SimpleContentExtension,
                                         source: SimpleContentExtension):
        # base attributes first, then the extension's own
        target.base_type_name = self._simple_content_base(source.base_type_name, target)
        self._copy_attributes(target, source.attributes)

    def _handle_simple_content_restriction(self, target: SimpleContentRestriction,
                                           source: SimpleContentRestriction):
        self._copy_attributes(target, source.attributes)
        if source.base_type is not None:
            target.base_type = self._create(source.base_type)
        target.base_type_name = self._simple_content_base(source.base_type_name, None)

    def _handle_complex_content_restriction(self, target: ComplexContentRestriction,
                                            source: ComplexContentRestriction):
        self._copy_attributes(target, source.attributes)
        target.particle = self._copy_particle(source.particle)

        # a restriction restates the content it keeps, named bases are dropped
        base = source.base_type_name
        target.base_type_name = base if is_builtin(base) else ANY_TYPE

    def _handle_complex_content_extension(self, target: ComplexContentExtension,
                                          source: ComplexContentExtension):
        base_name = source.base_type_name
        if base_name is None or is_builtin(base_name):
            target.base_type_name = base_name or ANY_TYPE
            self._copy_attributes(target, source.attributes)
            target.particle = self._copy_particle(source.particle)
            return

        base_type = self.source_schema.get_type(base_name)
        if base_type is None:
            raise ParserError(f"Missing type in source schema: {base_name}",
                              error_class=ErrorClass.MISSING_TYPE)
        if not isinstance(base_type, ComplexType) or isinstance(base_type.content_model, SimpleContent):
            raise ParserError(f"Unsupported extension of type {base_name}",
                              error_class=ErrorClass.UNSUPPORTED_EXTENSION_BASE)

        # the target has no named base type to extend, so the base's own
        # particle and attributes are merged into the extension
        base_particle = base_type.particle
        base_attributes = list(base_type.attributes)
        base_content = base_type.content_model.content if base_type.content_model is not None else None
        if base_content is not None:
            base_particle = base_particle or base_content.particle
            base_attributes.extend(base_content.attributes)
            if not is_builtin(base_content.base_type_name):
                logger.warning(f"Only one level of inheritance is merged for {base_name}, "
                               f"content inherited from {base_content.base_type_name} is dropped")

        target.base_type_name = ANY_TYPE
        key = ("type", base_type.qname)
        self._copy_attributes(target, base_attributes, key=key)
        self._copy_attributes(target, source.attributes)
        if target.any_attribute is None:
            target.any_attribute = _copy_any_attribute(base_type.any_attribute)

        inherited = self._copy_particle(base_particle, key=key)
        own = self._copy_particle(source.particle)
        if inherited is not None and own is not None:
            target.particle = Sequence(items=[inherited, own])
        else:
            target.particle = inherited or own

    def _handle_group_particle(self, target: GroupParticle, source: GroupParticle):
        for item in source.items:
            target.items.append(self._copy_particle(item))

    def _handle_wildcard(self, target: Wildcard, source: Wildcard):
        pass

    # Helpers

    def _copy_type(self, type_name: Optional[QName], schema_type: Optional[SchemaType],
                   simple_only: bool = False) -> tuple[Optional[QName], Optional[SchemaType]]:
        """Resolve a (type name, inline type) pair to the target's (built-in name, anonymous copy)."""
        source_type = schema_type
        if type_name is not None:
            if is_builtin(type_name):
                return type_name, None
            source_type = self.source_schema.get_type(type_name)
            if source_type is None:
                raise ParserError(f"Missing type in source schema: {type_name}",
                                  error_class=ErrorClass.MISSING_TYPE)
            if simple_only and not isinstance(source_type, SimpleType):
                raise ParserError(f"Type {type_name} is not a simple type",
                                  error_class=ErrorClass.MISSING_TYPE)

        if source_type is not None:
            return None, self._create(source_type)
        return None, None

    def _copy_particle(self, particle, key: Optional[ComponentKey] = None):
        """Copy a particle, replacing group references with the group's content."""
        if particle is None:
            return None

        if isinstance(particle, GroupRef):
            group = self.source_schema.get_group(particle.ref_name)
            if group is None or group.particle is None:
                raise ParserError(f"Missing group in source schema: {particle.ref_name}",
                                  error_class=ErrorClass.MISSING_GROUP)
            copied = self._create(group.particle, key=("group", group.qname))
            copied.min_occurs = particle.min_occurs
            copied.max_occurs = particle.max_occurs
            return copied

        if not isinstance(particle, (Sequence, Choice, All, Element, ElementRef, Wildcard)):
            raise ParserError(f"Unsupported Group Particle type {type(particle).__name__}",
                              error_class=ErrorClass.UNSUPPORTED_PARTICLE_KIND)
        return self._create(particle, key=key)

    def _copy_attributes(self, target, source: list, key: Optional[ComponentKey] = None,
                         groups: tuple[QName, ...] = ()):
        """Copy attributes into target.attributes, flattening attribute group references."""
        for member in source:
            if isinstance(member, AttributeGroupRef):
                ref_name = member.ref_name
                group = self.source_schema.get_attribute_group(ref_name)
                if group is None:
                    raise ParserError(f"Missing attribute group in source schema: {ref_name}",
                                      error_class=ErrorClass.MISSING_GROUP)
                if ref_name in groups:
                    chain = ", ".join(str(name) for name in groups)
                    raise ParserError(f"Circular reference in attribute group {chain}, {ref_name}",
                                      error_class=ErrorClass.CIRCULAR_REFERENCE)
                self._copy_attributes(target, group.attributes, key, groups + (ref_name,))
                if target.any_attribute is None:
                    target.any_attribute = _copy_any_attribute(group.any_attribute)
            else:
                target.attributes.append(self._create(member, key=key))

    def _simple_content_base(self, base_name: Optional[QName], target) -> Optional[QName]:
        """Resolve a simple content base to a built-in type.

        Attributes of complex simple-content bases are merged into target
        when one is given.
        """
        seen: list[QName] = []
        while base_name is not None and not is_builtin(base_name):
            if base_name in seen:
                chain = ", ".join(str(name) for name in seen)
                raise ParserError(f"Circular reference in schema type {chain}, {base_name}",
                                  error_class=ErrorClass.CIRCULAR_REFERENCE)
            seen.append(base_name)

            base_type = self.source_schema.get_type(base_name)
            if base_type is None:
                raise ParserError(f"Missing type in source schema: {base_name}",
                                  error_class=ErrorClass.MISSING_TYPE)

            if isinstance(base_type, SimpleType):
                base_name = self._simple_type_root(base_type)
            elif isinstance(base_type, ComplexType) and isinstance(base_type.content_model, SimpleContent) \
                    and base_type.content_model.content is not None:
                content = base_type.content_model.content
                if target is not None:
                    self._copy_attributes(target, content.attributes, key=("type", base_type.qname))
                    self._copy_attributes(target, base_type.attributes, key=("type", base_type.qname))
                base_name = content.base_type_name
            else:
                raise ParserError(f"Unsupported extension of type {base_name}",
                                  error_class=ErrorClass.UNSUPPORTED_EXTENSION_BASE)
        return base_name

    def _simple_type_root(self, simple_type: SimpleType) -> QName:
        """Name of the type a simple type derives from, inline bases followed to a named one."""
        content = simple_type.content
        while isinstance(content, SimpleTypeRestriction):
            if content.base_type_name is not None:
                return content.base_type_name
            if content.base_type is None:
                break
            content = content.base_type.content
        # lists and unions have no single built-in base
        return STRING_TYPE

#!/usr/bin/env python3
"""Generate the payload schema of one SOAP operation message.

The generated schema has exactly one top-level element describing the whole
payload:

- RPC style: an element named after the operation (``<operation>Response``
  for output messages) holding the body parts. With header parts it is nested
  as ``soap-payload-envelope/soap-payload-body/<operation>`` next to a
  ``soap-payload-header`` element holding the header parts.
- Document style with a single body part and no headers: the part's element
  itself.
- Document style otherwise: a ``soap-payload-envelope`` element holding the
  body parts, or ``soap-payload-header`` and ``soap-payload-body`` elements
  when there are header parts.
"""

import logging
from typing import Optional

from ....core.config import ExtractionConfig, extraction_config
from ..schema.errors import ErrorClass, ParserError
from ..schema.extractor import XmlSchemaExtractor
from ..schema.model import (
    ComplexType,
    Element,
    QName,
    Schema,
    Sequence,
    is_builtin,
)
from ..schema.serializer import serialize_schema
from .binding import BindingMessage, MessageDirection, MessagePart, Style, Use
from .namespaces import resolve_namespace_targets

logger = logging.getLogger(__name__)

SOAP_PAYLOAD_ENVELOPE_ELEMENT = "soap-payload-envelope"
SOAP_PAYLOAD_HEADER_ELEMENT = "soap-payload-header"
SOAP_PAYLOAD_BODY_ELEMENT = "soap-payload-body"


class EnvelopeSynthesizer:
    """Builds the payload schema for a single binding message.

    Unsupported messages (multiple schemas, use="encoded") are rejected when
    the synthesizer is created, before any schema node exists.
    """

    def __init__(self, binding_message: BindingMessage, config: Optional[ExtractionConfig] = None):
        self.binding_message = binding_message
        self.config = config or extraction_config

        # no multiple schemas, WSDLs with no schemas for RPC/literal are accepted
        schemas = binding_message.schemas
        if len(schemas) > 1:
            raise ParserError("WSDL's with multiple schemas are not supported",
                              error_class=ErrorClass.MULTIPLE_SCHEMAS_UNSUPPORTED)

        if binding_message.use == Use.ENCODED:
            raise ParserError("Messages with use='encoded' are not supported",
                              error_class=ErrorClass.USE_ENCODED_UNSUPPORTED)

        if schemas:
            self.source_schema = schemas[0]
        else:
            # empty source schema with the same namespace as the WSDL
            self.source_schema = Schema(binding_message.namespace)

    def synthesize(self) -> str:
        """Generate and serialize the payload schema.

        Raises:
            ParserError: If the message cannot be expressed as a payload schema
        """
        message = self.binding_message
        logger.info(f"Generating {message.direction.value} schema for operation {message.operation_name}",
                    extra={"operation": str(message.operation_name), "direction": message.direction.value})

        # target element names for adding namespace attribute,
        # required for handling parts with type=* attributes
        namespace_targets: list[QName] = []

        generated_schema = Schema(
            self.source_schema.target_namespace,
            element_form_default=self.source_schema.element_form_default,
            attribute_form_default=self.source_schema.attribute_form_default,
        )
        extractor = XmlSchemaExtractor(generated_schema, self.source_schema, self.config)

        try:
            if message.style == Style.RPC:
                operation_name = message.operation_name
                wrapper_name = operation_name if message.direction == MessageDirection.INPUT else \
                    QName(operation_name.namespace, operation_name.local + "Response")
                namespace_targets.append(wrapper_name)
                self._create_rpc_wrapper(generated_schema, extractor, namespace_targets, wrapper_name)
            else:
                top_level = not message.has_headers and len(message.body_parts) == 1

                # headers first, namespace targets are matched in document order
                header_elements = self._part_elements(
                    message.header_parts, namespace_targets, extractor, False) if message.has_headers else None
                body_elements = self._part_elements(message.body_parts, namespace_targets, extractor, top_level)

                # if top_level, the root element was already added to the generated schema
                if not top_level:
                    self._create_payload_wrapper(generated_schema, header_elements, body_elements)

            # copy source types to target schema
            extractor.drain()

            # add namespace attributes for generated elements
            resolve_namespace_targets(generated_schema, namespace_targets, self.config)

            return serialize_schema(generated_schema, self.config)

        except ParserError as e:
            raise ParserError(
                f"Error parsing {message.direction.value} for operation {message.operation_name}: {e.message}",
                property=e.property,
                error_class=e.error_class,
            ) from e

    def _part_elements(self, parts: list[MessagePart], namespace_targets: list[QName],
                       extractor: XmlSchemaExtractor, top_level: bool) -> list[Element]:
        elements = []
        for part in parts:
            name = part.name
            if part.element_name is not None:
                source_element = self.source_schema.get_element(part.element_name)
                if source_element is None:
                    raise ParserError(f"Missing element {part.element_name} for part {name}",
                                      error_class=ErrorClass.MISSING_REF_TARGET)
                element = extractor.extract_element(source_element, top_level)

            elif part.type_name is not None and not is_builtin(part.type_name):
                source_type = self.source_schema.get_type(part.type_name)
                if source_type is None:
                    raise ParserError(f"Missing type {part.type_name} for part {name}",
                                      error_class=ErrorClass.MISSING_TYPE)
                element = extractor.extract_type(name.local, source_type, top_level)
                # part namespace is added as an attribute after the objects are copied
                namespace_targets.append(name)

            elif part.type_name is not None:
                # xs:* type, create an element with the part's type name
                element = Element(name=name.local, type_name=part.type_name, schema=extractor.target_schema)
                if top_level:
                    extractor.target_schema.add_element(element)
                namespace_targets.append(name)

            else:
                raise ParserError(f"Part {name} has neither an element nor a type",
                                  error_class=ErrorClass.MISSING_TYPE)

            elements.append(element)

        return elements

    def _create_rpc_wrapper(self, generated_schema: Schema, extractor: XmlSchemaExtractor,
                            namespace_targets: list[QName], operation_wrapper: QName):
        message = self.binding_message
        if not message.has_headers:
            # no need for a payload wrapper
            wrapper_items = self._wrapper_element(generated_schema, None, operation_wrapper.local)
        else:
            payload_items = self._wrapper_element(generated_schema, None, SOAP_PAYLOAD_ENVELOPE_ELEMENT)

            header_items = self._wrapper_element(generated_schema, payload_items, SOAP_PAYLOAD_HEADER_ELEMENT)
            header_items.extend(self._part_elements(message.header_parts, namespace_targets, extractor, False))

            body_items = self._wrapper_element(generated_schema, payload_items, SOAP_PAYLOAD_BODY_ELEMENT)
            wrapper_items = self._wrapper_element(generated_schema, body_items, operation_wrapper.local)

        wrapper_items.extend(self._part_elements(message.body_parts, namespace_targets, extractor, False))

    def _create_payload_wrapper(self, generated_schema: Schema, header_elements: Optional[list[Element]],
                                body_elements: list[Element]):
        wrapper_items = self._wrapper_element(generated_schema, None, SOAP_PAYLOAD_ENVELOPE_ELEMENT)

        if header_elements is not None:
            header_items = self._wrapper_element(generated_schema, wrapper_items, SOAP_PAYLOAD_HEADER_ELEMENT)
            header_items.extend(header_elements)
            body_items = self._wrapper_element(generated_schema, wrapper_items, SOAP_PAYLOAD_BODY_ELEMENT)
        else:
            body_items = wrapper_items

        body_items.extend(body_elements)

    @staticmethod
    def _wrapper_element(generated_schema: Schema, parent: Optional[list], name: str) -> list:
        """Create an element with an anonymous complex type and sequence, returns the sequence items.

        The element is added to parent, or as a top-level element when parent is None.
        """
        sequence = Sequence()
        element = Element(name=name, schema_type=ComplexType(particle=sequence, schema=generated_schema),
                          schema=generated_schema)
        if parent is None:
            generated_schema.add_element(element)
        else:
            parent.append(element)
        return sequence.items


def synthesize(binding_message: BindingMessage, config: Optional[ExtractionConfig] = None) -> str:
    """Generate the payload schema document for one binding message."""
    return EnvelopeSynthesizer(binding_message, config).synthesize()

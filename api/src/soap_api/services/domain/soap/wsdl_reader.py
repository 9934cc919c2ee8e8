#!/usr/bin/env python3
"""Read WSDL 1.1 documents with SOAP 1.1 or SOAP 1.2 bindings.

Only what payload schema generation and the connector summary need is read:
embedded schemas, messages, port types, SOAP bindings and services with their
SOAP ports. Non-SOAP bindings (e.g. HTTP) are read but their ports are not
offered as SOAP ports.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Union
from xml.etree.ElementTree import Element as XmlElement

from ..schema.errors import ErrorClass, ParserError
from ..schema.model import QName, Schema, XSD_NS
from ..schema.reader import NamespaceMap, parse_xml, read_schema_element
from .binding import BindingMessage, MessageDirection, MessagePart, Style, Use

logger = logging.getLogger(__name__)

WSDL_NS = "http://schemas.xmlsoap.org/wsdl/"
SOAP11_NS = "http://schemas.xmlsoap.org/wsdl/soap/"
SOAP12_NS = "http://schemas.xmlsoap.org/wsdl/soap12/"
SOAP_NAMESPACES = (SOAP11_NS, SOAP12_NS)

WSDL = f"{{{WSDL_NS}}}"


@dataclass
class WsdlPart:
    name: str
    element_name: Optional[QName] = None
    type_name: Optional[QName] = None


@dataclass
class WsdlMessage:
    name: QName
    parts: list[WsdlPart] = field(default_factory=list)

    def get_part(self, name: str) -> Optional[WsdlPart]:
        return next((part for part in self.parts if part.name == name), None)


@dataclass
class PortTypeOperation:
    name: str
    input_message: Optional[QName] = None
    output_message: Optional[QName] = None


@dataclass
class SoapBody:
    use: Use = Use.LITERAL
    parts: Optional[list[str]] = None  # None means all message parts
    namespace: Optional[str] = None


@dataclass
class SoapHeader:
    message: QName
    part: str
    use: Use = Use.LITERAL


@dataclass
class BoundMessage:
    body: SoapBody = field(default_factory=SoapBody)
    headers: list[SoapHeader] = field(default_factory=list)


@dataclass
class BoundOperation:
    name: str
    style: Optional[Style] = None
    input: Optional[BoundMessage] = None
    output: Optional[BoundMessage] = None


@dataclass
class WsdlBinding:
    name: QName
    port_type: QName
    soap_namespace: Optional[str] = None  # None for non-SOAP bindings
    style: Optional[Style] = None
    operations: list[BoundOperation] = field(default_factory=list)

    @property
    def is_soap(self) -> bool:
        return self.soap_namespace is not None


@dataclass
class WsdlPort:
    name: str
    binding: QName
    address: Optional[str] = None


@dataclass
class WsdlService:
    name: QName
    ports: list[WsdlPort] = field(default_factory=list)


@dataclass
class BindingOperation:
    """One operation of a SOAP port with its bound input and output messages."""
    name: QName
    style: Style
    input: Optional[BindingMessage] = None
    output: Optional[BindingMessage] = None


class WsdlDefinition:
    """Parsed WSDL definitions, with lookups by qualified name."""

    def __init__(self, name: Optional[str], target_namespace: str, documentation: Optional[str] = None):
        self.name = name
        self.target_namespace = target_namespace
        self.documentation = documentation
        self.schemas: list[Schema] = []
        self.messages: dict[QName, WsdlMessage] = {}
        self.port_types: dict[QName, dict[str, PortTypeOperation]] = {}
        self.bindings: dict[QName, WsdlBinding] = {}
        self.services: dict[QName, WsdlService] = {}

    @property
    def qname(self) -> Optional[QName]:
        if self.name is None:
            return None
        return QName(self.target_namespace, self.name)

    def soap_ports(self, service: WsdlService) -> list[WsdlPort]:
        ports = []
        for port in service.ports:
            binding = self.bindings.get(port.binding)
            if binding is not None and binding.is_soap:
                ports.append(port)
        return ports

    def get_port(self, service_name: QName, port_name: str) -> WsdlPort:
        service = self.services.get(service_name)
        if service is None:
            raise ParserError(f"Missing service {service_name}", property="serviceName",
                              error_class=ErrorClass.INVALID_WSDL)
        port = next((port for port in self.soap_ports(service) if port.name == port_name), None)
        if port is None:
            raise ParserError(f"Missing SOAP port {port_name} in service {service_name}", property="portName",
                              error_class=ErrorClass.INVALID_WSDL)
        return port

    def binding_operations(self, service_name: QName, port_name: str) -> list[BindingOperation]:
        """Operations bound by a SOAP port, in binding order.

        Raises:
            ParserError: If the service, port, binding, port type or a
                referenced message is missing
        """
        port = self.get_port(service_name, port_name)
        binding = self.bindings.get(port.binding)
        if binding is None:
            raise ParserError(f"Missing binding {port.binding} for port {port_name}",
                              error_class=ErrorClass.INVALID_WSDL)
        port_type = self.port_types.get(binding.port_type)
        if port_type is None:
            raise ParserError(f"Missing portType {binding.port_type} for binding {binding.name}",
                              error_class=ErrorClass.INVALID_WSDL)

        operations = []
        for bound in binding.operations:
            abstract = port_type.get(bound.name)
            if abstract is None:
                raise ParserError(f"Missing operation {bound.name} in portType {binding.port_type}",
                                  error_class=ErrorClass.INVALID_WSDL)

            # operation style overrides binding style
            style = bound.style or binding.style or Style.DOCUMENT
            name = QName(self.target_namespace, bound.name)
            operation = BindingOperation(name=name, style=style)
            if bound.input is not None and abstract.input_message is not None:
                operation.input = self._binding_message(name, MessageDirection.INPUT, style,
                                                        bound.input, abstract.input_message)
            if bound.output is not None and abstract.output_message is not None:
                operation.output = self._binding_message(name, MessageDirection.OUTPUT, style,
                                                         bound.output, abstract.output_message)
            operations.append(operation)
        return operations

    def _message(self, name: QName) -> WsdlMessage:
        message = self.messages.get(name)
        if message is None:
            raise ParserError(f"Missing message {name}", error_class=ErrorClass.INVALID_WSDL)
        return message

    def _message_part(self, part: WsdlPart, namespace: Optional[str]) -> MessagePart:
        if part.element_name is not None:
            return MessagePart(name=part.element_name, element_name=part.element_name)
        return MessagePart(name=QName(namespace or self.target_namespace, part.name), type_name=part.type_name)

    def _binding_message(self, operation_name: QName, direction: MessageDirection, style: Style,
                         bound: BoundMessage, message_name: QName) -> BindingMessage:
        message = self._message(message_name)
        body = bound.body

        if body.parts is None:
            wsdl_parts = list(message.parts)
        else:
            wsdl_parts = []
            for part_name in body.parts:
                part = message.get_part(part_name)
                if part is None:
                    raise ParserError(f"Missing part {part_name} in message {message_name}",
                                      error_class=ErrorClass.INVALID_WSDL)
                wsdl_parts.append(part)

        header_parts = []
        use = body.use
        for header in bound.headers:
            part = self._message(header.message).get_part(header.part)
            if part is None:
                raise ParserError(f"Missing header part {header.part} in message {header.message}",
                                  error_class=ErrorClass.INVALID_WSDL)
            header_parts.append(self._message_part(part, body.namespace))
            if header.use == Use.ENCODED:
                use = Use.ENCODED

        # header parts are not repeated in the body
        header_names = {(header.message, header.part) for header in bound.headers}
        body_parts = [self._message_part(part, body.namespace) for part in wsdl_parts
                      if (message_name, part.name) not in header_names]

        return BindingMessage(
            operation_name=operation_name,
            direction=direction,
            style=style,
            use=use,
            body_parts=body_parts,
            header_parts=header_parts,
            schemas=self.schemas,
            namespace=self.target_namespace,
        )


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _namespace(tag: str) -> str:
    return tag[1:].split("}", 1)[0] if tag.startswith("{") else ""


class WsdlReader:
    """Builds a WsdlDefinition from a parsed WSDL document."""

    def __init__(self, scopes: dict[XmlElement, NamespaceMap]):
        self.scopes = scopes

    def read(self, root: XmlElement) -> WsdlDefinition:
        if root.tag != f"{WSDL}definitions":
            raise ParserError(f"Root element is not a WSDL 1.1 definitions element: {root.tag}",
                              error_class=ErrorClass.INVALID_WSDL)

        documentation = root.find(f"{WSDL}documentation")
        definition = WsdlDefinition(
            name=root.get("name"),
            target_namespace=root.get("targetNamespace", ""),
            documentation=documentation.text.strip() if documentation is not None and documentation.text else None,
        )
        tns = definition.target_namespace

        for types in root.findall(f"{WSDL}types"):
            for schema in types.findall(f"{{{XSD_NS}}}schema"):
                definition.schemas.append(read_schema_element(schema, self.scopes))

        for node in root.findall(f"{WSDL}message"):
            message = WsdlMessage(QName(tns, node.get("name", "")))
            for part in node.findall(f"{WSDL}part"):
                message.parts.append(WsdlPart(
                    name=part.get("name", ""),
                    element_name=self._qname(part, "element"),
                    type_name=self._qname(part, "type"),
                ))
            definition.messages[message.name] = message

        for node in root.findall(f"{WSDL}portType"):
            operations = {}
            for operation in node.findall(f"{WSDL}operation"):
                name = operation.get("name", "")
                input_node = operation.find(f"{WSDL}input")
                output_node = operation.find(f"{WSDL}output")
                operations[name] = PortTypeOperation(
                    name=name,
                    input_message=self._qname(input_node, "message") if input_node is not None else None,
                    output_message=self._qname(output_node, "message") if output_node is not None else None,
                )
            definition.port_types[QName(tns, node.get("name", ""))] = operations

        for node in root.findall(f"{WSDL}binding"):
            binding = self._binding(node, tns)
            definition.bindings[binding.name] = binding

        for node in root.findall(f"{WSDL}service"):
            service = WsdlService(QName(tns, node.get("name", "")))
            for port in node.findall(f"{WSDL}port"):
                address = next((child.get("location") for child in port
                                if _local(child.tag) == "address" and _namespace(child.tag) in SOAP_NAMESPACES), None)
                service.ports.append(WsdlPort(
                    name=port.get("name", ""),
                    binding=self._required_qname(port, "binding"),
                    address=address,
                ))
            definition.services[service.name] = service

        logger.info(f"Read WSDL {definition.name!r} with {len(definition.services)} services, "
                    f"{len(definition.bindings)} bindings and {len(definition.schemas)} schemas")
        return definition

    def _qname(self, node: XmlElement, attr: str) -> Optional[QName]:
        value = node.get(attr)
        if value is None:
            return None
        prefix, _, local = value.rpartition(":")
        scope = self.scopes.get(node, {})
        if prefix not in scope:
            if prefix:
                raise ParserError(f"Unknown namespace prefix {prefix!r} in {attr}={value!r}",
                                  error_class=ErrorClass.INVALID_WSDL)
            return QName("", local)
        return QName(scope[prefix], local)

    def _required_qname(self, node: XmlElement, attr: str) -> QName:
        qname = self._qname(node, attr)
        if qname is None:
            raise ParserError(f"Missing {attr} attribute on {_local(node.tag)} {node.get('name')!r}",
                              error_class=ErrorClass.INVALID_WSDL)
        return qname

    @staticmethod
    def _style(value: Optional[str]) -> Optional[Style]:
        if value is None:
            return None
        try:
            return Style(value.lower())
        except ValueError as e:
            raise ParserError(f"Unknown SOAP style {value!r}", error_class=ErrorClass.INVALID_WSDL) from e

    @staticmethod
    def _use(value: Optional[str]) -> Use:
        if value is None:
            return Use.LITERAL
        try:
            return Use(value.lower())
        except ValueError as e:
            raise ParserError(f"Unknown SOAP use {value!r}", error_class=ErrorClass.INVALID_WSDL) from e

    def _binding(self, node: XmlElement, tns: str) -> WsdlBinding:
        binding = WsdlBinding(
            name=QName(tns, node.get("name", "")),
            port_type=self._required_qname(node, "type"),
        )
        for child in node:
            if _local(child.tag) == "binding" and _namespace(child.tag) in SOAP_NAMESPACES:
                binding.soap_namespace = _namespace(child.tag)
                binding.style = self._style(child.get("style"))

        for operation in node.findall(f"{WSDL}operation"):
            bound = BoundOperation(name=operation.get("name", ""))
            for child in operation:
                if _local(child.tag) == "operation" and _namespace(child.tag) in SOAP_NAMESPACES:
                    bound.style = self._style(child.get("style"))

            input_node = operation.find(f"{WSDL}input")
            if input_node is not None:
                bound.input = self._bound_message(input_node)
            output_node = operation.find(f"{WSDL}output")
            if output_node is not None:
                bound.output = self._bound_message(output_node)
            binding.operations.append(bound)

        return binding

    def _bound_message(self, node: XmlElement) -> BoundMessage:
        bound = BoundMessage()
        for child in node:
            if _namespace(child.tag) not in SOAP_NAMESPACES:
                continue
            kind = _local(child.tag)
            if kind == "body":
                parts = child.get("parts")
                bound.body = SoapBody(
                    use=self._use(child.get("use")),
                    parts=parts.split() if parts is not None else None,
                    namespace=child.get("namespace"),
                )
            elif kind == "header":
                bound.headers.append(SoapHeader(
                    message=self._required_qname(child, "message"),
                    part=child.get("part", ""),
                    use=self._use(child.get("use")),
                ))
        return bound


def read_wsdl(content: Union[str, bytes]) -> WsdlDefinition:
    """Parse a WSDL 1.1 document.

    Raises:
        ParserError: If the document is not well-formed or not a WSDL 1.1 document
    """
    root, scopes = parse_xml(content)
    return WsdlReader(scopes).read(root)

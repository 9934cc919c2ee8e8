#!/usr/bin/env python3
"""
WSDL model service: connector summary and per-operation payload schemas.

The "info" and "generate" steps of one request share a parsed WSDL through a
SoapModelContext, which is discarded when the request ends.
"""

import logging
from typing import Optional, Union

from ..core.config import ExtractionConfig, extraction_config
from ..models.models import ApiModelSummary, OperationSchemas, Violation
from .domain.schema.errors import ErrorClass, ParserError
from .domain.schema.model import QName
from .domain.soap.binding import MessageDirection
from .domain.soap.envelope import synthesize
from .domain.soap.wsdl_reader import WsdlDefinition, read_wsdl

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "Web Services Connector"


class SoapModelContext:
    """Request-scoped holder of a parsed WSDL specification.

    The specification is parsed on first use and kept until the context
    exits, so repeated lookups within a request parse it only once.

    Usage:
        with SoapModelContext(wsdl_text) as context:
            summary = model_summary(context)
            schemas = generate_operation_schemas(context)
    """

    def __init__(self, specification: Union[str, bytes], config: Optional[ExtractionConfig] = None):
        self.specification = specification
        self.config = config or extraction_config
        self.errors: list[Violation] = []
        self._definition: Optional[WsdlDefinition] = None
        self._parsed = False

    def __enter__(self) -> "SoapModelContext":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False

    def release(self):
        self._definition = None
        self._parsed = False
        self.errors = []

    @property
    def definition(self) -> Optional[WsdlDefinition]:
        """Parsed WSDL, or None if the specification could not be parsed."""
        if not self._parsed:
            self._parsed = True
            try:
                self._definition = read_wsdl(self.specification)
            except ParserError as e:
                logger.error(f"Error parsing WSDL specification: {e.message}")
                self.errors.append(e.to_violation())
                self._definition = None
        return self._definition

    def default_service(self) -> Optional[QName]:
        """The service, if the WSDL has exactly one service with SOAP ports."""
        definition = self.definition
        if definition is None:
            return None
        services = [service for service in definition.services.values() if definition.soap_ports(service)]
        return services[0].name if len(services) == 1 else None

    def default_port(self, service_name: Optional[QName]) -> Optional[str]:
        """The port name, if the service has exactly one SOAP port."""
        definition = self.definition
        if definition is None or service_name is None or service_name not in definition.services:
            return None
        ports = definition.soap_ports(definition.services[service_name])
        return ports[0].name if len(ports) == 1 else None


def model_summary(context: SoapModelContext, service_name: Optional[QName] = None,
                  port_name: Optional[str] = None) -> ApiModelSummary:
    """
    Summarize services and ports of the WSDL held by context.

    Service and port default to the only SOAP service and port of the WSDL.
    When both are known, their operations are checked and binding errors are
    reported in the summary.

    Args:
        context: Request-scoped WSDL model
        service_name: Service selected by the user, if any
        port_name: Port selected by the user, if any

    Returns:
        ApiModelSummary with warnings and errors as violations
    """
    definition = context.definition
    if definition is None:
        return ApiModelSummary(description=DEFAULT_DESCRIPTION, errors=list(context.errors))

    if definition.documentation:
        description = definition.documentation
    elif definition.qname is not None:
        description = f"{DEFAULT_DESCRIPTION} for service {definition.qname}"
    else:
        description = DEFAULT_DESCRIPTION

    summary = ApiModelSummary(name=definition.name, description=description)

    for service in definition.services.values():
        ports = definition.soap_ports(service)
        if not ports:
            summary.warnings.append(Violation(
                message=f"Service {service.name} has no SOAP ports",
                error="missing-soap-port",
            ))
            continue
        summary.services.append(str(service.name))
        summary.ports[str(service.name)] = [port.name for port in ports]

    service_name = service_name or context.default_service()
    port_name = port_name or context.default_port(service_name)
    if service_name is not None:
        summary.default_service = str(service_name)
    summary.default_port = port_name

    if service_name is not None and port_name is not None:
        try:
            summary.default_address = definition.get_port(service_name, port_name).address
            definition.binding_operations(service_name, port_name)
        except ParserError as e:
            logger.warning(f"Error reading operations of port {port_name}: {e.message}")
            summary.errors.append(e.to_violation())

    summary.errors.extend(context.errors)
    return summary


def generate_operation_schemas(context: SoapModelContext, service_name: Optional[QName] = None,
                               port_name: Optional[str] = None) -> list[OperationSchemas]:
    """
    Generate input and output payload schemas for every operation of a port.

    A failing operation message is reported in that operation's errors and
    does not stop the remaining operations.

    Raises:
        ParserError: If the WSDL cannot be parsed, or no service and port is
            given and the WSDL has no default
    """
    definition = context.definition
    if definition is None:
        message = context.errors[0].message if context.errors else "Missing WSDL specification"
        raise ParserError(message, property="specification", error_class=ErrorClass.INVALID_WSDL)

    service_name = service_name or context.default_service()
    if service_name is None:
        raise ParserError("Missing SOAP service name", property="serviceName",
                          error_class=ErrorClass.INVALID_WSDL)
    port_name = port_name or context.default_port(service_name)
    if port_name is None:
        raise ParserError(f"Missing SOAP port name for service {service_name}", property="portName",
                          error_class=ErrorClass.INVALID_WSDL)

    results = []
    for operation in definition.binding_operations(service_name, port_name):
        result = OperationSchemas(operation=str(operation.name), style=operation.style.value)

        for message in (operation.input, operation.output):
            if message is None:
                continue
            try:
                schema = synthesize(message, context.config)
            except ParserError as e:
                logger.warning(e.message, extra={"operation": str(operation.name),
                                                 "direction": message.direction.value})
                result.errors.append(e.to_violation())
                continue

            if message.direction == MessageDirection.INPUT:
                result.input_schema = schema
            else:
                result.output_schema = schema

        results.append(result)

    logger.info(f"Generated schemas for {len(results)} operations of port {port_name}")
    return results

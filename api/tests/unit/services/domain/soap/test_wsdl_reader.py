#!/usr/bin/env python3

import pytest

from soap_api.services.domain.schema.errors import ErrorClass, ParserError
from soap_api.services.domain.schema.model import QName, xsd
from soap_api.services.domain.soap.binding import MessageDirection, Style, Use
from soap_api.services.domain.soap.wsdl_reader import SOAP12_NS, read_wsdl
from tests.fixtures.wsdl_fixtures import (
    HELLO_BODY_NS,
    HELLO_NS,
    HELLO_RPC_WSDL,
    SOAP12_RPC_WSDL,
    STOCK_QUOTE_WSDL,
    STOCK_WSDL_NS,
    STOCK_XSD_NS,
)

CALC_NS = "http://example.com/calculator"


class TestWsdlReader:
    """Test suite for reading WSDL 1.1 documents"""

    def test_definition_attributes(self):
        """Test name, namespace and documentation are read"""
        definition = read_wsdl(HELLO_RPC_WSDL)

        assert definition.name == "HelloService"
        assert definition.target_namespace == HELLO_NS
        assert definition.qname == QName(HELLO_NS, "HelloService")
        assert definition.documentation == "Hello world service"
        assert definition.schemas == []

    def test_services_and_ports(self):
        """Test services, ports and SOAP addresses"""
        definition = read_wsdl(STOCK_QUOTE_WSDL)

        service = definition.services[QName(STOCK_WSDL_NS, "StockQuoteService")]
        assert [port.name for port in service.ports] == ["StockQuotePort", "StockQuoteHttpPort"]
        assert [port.name for port in definition.soap_ports(service)] == ["StockQuotePort"]
        assert service.ports[0].address == "http://example.com/stockquote"
        assert service.ports[1].address is None

    def test_embedded_schema(self):
        """Test schemas in the types section are read"""
        definition = read_wsdl(STOCK_QUOTE_WSDL)

        schema, = definition.schemas
        assert schema.target_namespace == STOCK_XSD_NS
        assert list(schema.elements) == ["TradePriceRequest", "TradePrice", "AuthHeader"]

    def test_rpc_binding_operations(self):
        """Test RPC parts are named in the soap:body namespace"""
        definition = read_wsdl(HELLO_RPC_WSDL)

        operation, = definition.binding_operations(QName(HELLO_NS, "Hello_Service"), "Hello_Port")

        assert operation.name == QName(HELLO_NS, "sayHello")
        assert operation.style == Style.RPC

        message = operation.input
        assert message.direction == MessageDirection.INPUT
        assert message.style == Style.RPC
        assert message.use == Use.LITERAL
        assert message.namespace == HELLO_NS
        assert [part.name for part in message.body_parts] == [
            QName(HELLO_BODY_NS, "firstName"), QName(HELLO_BODY_NS, "age")
        ]
        assert [part.type_name for part in message.body_parts] == [xsd("string"), xsd("int")]
        assert not message.has_headers

        assert operation.output.direction == MessageDirection.OUTPUT
        assert [part.name.local for part in operation.output.body_parts] == ["greeting"]

    def test_document_binding_operations(self):
        """Test element parts and header parts of document operations"""
        definition = read_wsdl(STOCK_QUOTE_WSDL)

        operations = definition.binding_operations(QName(STOCK_WSDL_NS, "StockQuoteService"), "StockQuotePort")

        assert [operation.name.local for operation in operations] == [
            "GetLastTradePrice", "GetAuthenticatedPrice", "GetHistory"
        ]
        assert all(operation.style == Style.DOCUMENT for operation in operations)

        trade_price = operations[0].input
        part, = trade_price.body_parts
        assert part.name == QName(STOCK_XSD_NS, "TradePriceRequest")
        assert part.element_name == QName(STOCK_XSD_NS, "TradePriceRequest")
        assert trade_price.schemas == definition.schemas

        authenticated = operations[1].input
        assert authenticated.has_headers
        assert [part.element_name.local for part in authenticated.header_parts] == ["AuthHeader"]
        assert [part.element_name.local for part in authenticated.body_parts] == ["TradePriceRequest"]

    def test_soap12_binding(self):
        """Test SOAP 1.2 bindings, operation style and body parts selection"""
        definition = read_wsdl(SOAP12_RPC_WSDL)

        binding = definition.bindings[QName(CALC_NS, "CalculatorBinding")]
        assert binding.soap_namespace == SOAP12_NS
        assert binding.style is None

        operation, = definition.binding_operations(QName(CALC_NS, "CalculatorService"), "CalculatorPort")
        assert operation.style == Style.RPC
        assert [part.name for part in operation.input.body_parts] == [QName(CALC_NS, "b"), QName(CALC_NS, "a")]
        assert operation.output.use == Use.ENCODED

    def test_missing_service(self):
        """Test an unknown service raises ParserError naming the property"""
        definition = read_wsdl(HELLO_RPC_WSDL)

        with pytest.raises(ParserError) as exc_info:
            definition.binding_operations(QName(HELLO_NS, "Nope"), "Hello_Port")

        assert exc_info.value.property == "serviceName"
        assert exc_info.value.error_class == ErrorClass.INVALID_WSDL

    def test_non_soap_port(self):
        """Test HTTP ports are not SOAP ports"""
        definition = read_wsdl(STOCK_QUOTE_WSDL)

        with pytest.raises(ParserError) as exc_info:
            definition.binding_operations(QName(STOCK_WSDL_NS, "StockQuoteService"), "StockQuoteHttpPort")

        assert exc_info.value.property == "portName"

    def test_dangling_message(self):
        """Test a port type referencing an undeclared message"""
        wsdl = HELLO_RPC_WSDL.replace('<output message="tns:SayHelloResponse"/>',
                                      '<output message="tns:Missing"/>')
        definition = read_wsdl(wsdl)

        with pytest.raises(ParserError, match="Missing message"):
            definition.binding_operations(QName(HELLO_NS, "Hello_Service"), "Hello_Port")

    def test_not_wsdl(self):
        """Test documents that are not WSDL 1.1 definitions are rejected"""
        with pytest.raises(ParserError) as exc_info:
            read_wsdl("<definitions/>")

        assert exc_info.value.error_class == ErrorClass.INVALID_WSDL

    def test_malformed_wsdl(self):
        """Test malformed XML is rejected"""
        with pytest.raises(ParserError) as exc_info:
            read_wsdl(HELLO_RPC_WSDL[:200])

        assert exc_info.value.error_class == ErrorClass.INVALID_WSDL

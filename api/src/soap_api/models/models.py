#!/usr/bin/env python3

from pydantic import BaseModel

# Pydantic Models


class Violation(BaseModel):
    """User-facing validation entry produced from a parser error."""

    message: str
    error: str | None = None  # error class tag, e.g. 'missing-type'
    property: str | None = None  # offending configuration property, if any


class OperationSchemas(BaseModel):
    """Input and output payload schemas generated for one WSDL operation."""

    operation: str  # Clark notation QName of the operation
    style: str  # 'rpc' or 'document'
    input_schema: str | None = None
    output_schema: str | None = None
    errors: list[Violation] = []


class ApiModelSummary(BaseModel):
    """Summary of a parsed WSDL used to configure a connector."""

    name: str | None = None
    description: str | None = None
    services: list[str] = []  # Clark notation service QNames
    ports: dict[str, list[str]] = {}  # service QName -> SOAP port names
    default_service: str | None = None
    default_port: str | None = None
    default_address: str | None = None
    warnings: list[Violation] = []
    errors: list[Violation] = []

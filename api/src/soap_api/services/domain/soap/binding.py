#!/usr/bin/env python3
"""Binding message descriptions: one WSDL message as bound to a SOAP operation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..schema.model import QName, Schema


class Style(str, Enum):
    """SOAP binding style."""
    RPC = "rpc"
    DOCUMENT = "document"


class Use(str, Enum):
    """SOAP body/header use."""
    LITERAL = "literal"
    ENCODED = "encoded"


class MessageDirection(str, Enum):
    INPUT = "input"
    OUTPUT = "output"


@dataclass
class MessagePart:
    """A message part with its concrete (wire) name.

    A part refers to a global element (``element_name``) or to a type
    (``type_name``); type parts that are not declared in the schema are
    expected to be built-in XSD types.
    """
    name: QName
    element_name: Optional[QName] = None
    type_name: Optional[QName] = None


@dataclass
class BindingMessage:
    """Input or output message of one bound operation."""
    operation_name: QName
    direction: MessageDirection
    style: Style = Style.DOCUMENT
    use: Use = Use.LITERAL
    body_parts: list[MessagePart] = field(default_factory=list)
    header_parts: list[MessagePart] = field(default_factory=list)
    schemas: list[Schema] = field(default_factory=list)  # schemas of the enclosing service
    namespace: str = ""  # WSDL target namespace

    @property
    def has_headers(self) -> bool:
        return bool(self.header_parts)

"""
XML Schema Domain

Handles XML Schema operations:
- Reading XSD documents into the schema object model
- Extracting self-contained, inlined schema fragments
- Serializing generated schemas
"""

from .errors import ErrorClass, ParserError
from .extractor import XmlSchemaExtractor
from .model import QName, Schema
from .reader import read_schema
from .serializer import serialize_schema

__all__ = [
    "ErrorClass",
    "ParserError",
    "QName",
    "Schema",
    "XmlSchemaExtractor",
    "read_schema",
    "serialize_schema",
]

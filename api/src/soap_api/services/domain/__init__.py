"""
Domain Layer

This package contains the payload schema generation logic organized by domain area.
Domain services implement core algorithms and do not handle external I/O.

Domains:
- schema: XML Schema object model, reading, extraction and serialization
- soap: WSDL reading, binding messages and SOAP payload schema synthesis
"""

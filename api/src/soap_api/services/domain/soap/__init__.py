"""
SOAP Domain

Handles WSDL and SOAP binding operations:
- WSDL 1.1 reading (SOAP 1.1 and 1.2 bindings)
- Payload schema synthesis for RPC and document style messages
- Namespace markers for parts written in another namespace
"""

from .binding import BindingMessage, MessageDirection, MessagePart, Style, Use
from .envelope import EnvelopeSynthesizer, synthesize
from .namespaces import resolve_namespace_targets
from .wsdl_reader import WsdlDefinition, read_wsdl

__all__ = [
    # Binding messages
    "BindingMessage",
    "MessageDirection",
    "MessagePart",
    "Style",
    "Use",
    # Synthesis
    "EnvelopeSynthesizer",
    "synthesize",
    "resolve_namespace_targets",
    # WSDL
    "WsdlDefinition",
    "read_wsdl",
]

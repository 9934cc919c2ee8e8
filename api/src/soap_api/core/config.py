#!/usr/bin/env python3
"""
Configuration settings for payload schema extraction.

These settings can be overridden via environment variables, which are read
when an ExtractionConfig is created.
"""

import logging

from .env_utils import getenv_bool, getenv_clean, getenv_int

logger = logging.getLogger(__name__)


class ExtractionConfig:
    """Schema extraction and envelope synthesis settings.

    Attributes:
        namespace_search_depth: Levels below the top-level elements searched
            when locating an element that needs a namespace marker
        max_work_items: Upper bound on copy work items processed by one
            extractor; guards against exponential inlining of shared types
        schema_prefix: Prefix bound to the XSD namespace in serialized schemas
        pretty_print: Indent serialized schema documents
    """

    def __init__(self):
        self.namespace_search_depth = getenv_int("SOAP_NAMESPACE_SEARCH_DEPTH", 3, minimum=1)
        self.max_work_items = getenv_int("SOAP_MAX_WORK_ITEMS", 100000, minimum=1)
        self.schema_prefix = getenv_clean("SOAP_SCHEMA_PREFIX", "xs") or "xs"
        self.pretty_print = getenv_bool("SOAP_SCHEMA_PRETTY_PRINT", False)

    def __repr__(self) -> str:
        return (f"ExtractionConfig(namespace_search_depth={self.namespace_search_depth}, "
                f"max_work_items={self.max_work_items}, schema_prefix={self.schema_prefix!r}, "
                f"pretty_print={self.pretty_print})")


# Singleton instance
extraction_config = ExtractionConfig()

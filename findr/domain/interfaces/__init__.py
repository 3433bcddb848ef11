# Domain Interfaces Package
"""
Abstract base classes defining contracts for infrastructure implementations.
"""

from .parser_interface import ListingParserInterface
from .provider_interface import ProviderClientInterface

__all__ = ["ListingParserInterface", "ProviderClientInterface"]

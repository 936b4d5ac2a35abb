"""
Schema validation for reconstructed OAI-PMH documents
"""

from .validators import SchemaValidator, KnownIssue, KNOWN_ISSUES, OAI_PMH_SCHEMA_URL
from .reports import ValidationReport

__all__ = [
    'SchemaValidator',
    'KnownIssue',
    'KNOWN_ISSUES',
    'OAI_PMH_SCHEMA_URL',
    'ValidationReport'
]

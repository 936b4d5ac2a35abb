"""
OAI-PMH harvesting for the PROV metadata registry
"""

__version__ = '0.2.0'

from .client import OAIClient, HarvestError, TransportError, ResponseParseError
from .harvester import Harvester
from .models import Record, HarvestResult, TerminationReason
from .replay import ReplayClient, ReplayError

__all__ = [
    'OAIClient',
    'ReplayClient',
    'Harvester',
    'Record',
    'HarvestResult',
    'TerminationReason',
    'HarvestError',
    'TransportError',
    'ResponseParseError',
    'ReplayError'
]

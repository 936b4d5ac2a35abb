"""
Utility modules for the PROV OAI-PMH harvester
"""

from .logging_config import (
    setup_logging,
    get_contextual_logger,
    log_api_request,
    log_harvest_progress,
    init_from_environment
)

__all__ = [
    'setup_logging',
    'get_contextual_logger',
    'log_api_request',
    'log_harvest_progress',
    'init_from_environment'
]

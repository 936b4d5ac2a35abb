"""
Validation reports for reconstructed OAI-PMH documents
"""

import logging
from typing import Dict, List, Any, Optional
from datetime import datetime
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

VALID = 'VALID'
INVALID = 'INVALID'
SKIPPED = 'SKIPPED'


@dataclass
class ValidationReport:
    """Outcome of validating one document against the OAI-PMH schema"""
    status: str  # 'VALID', 'INVALID', 'SKIPPED'
    source: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    suppressed: int = 0
    suppressed_issues: List[str] = field(default_factory=list)
    reason: Optional[str] = None
    timestamp: str = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now().isoformat()

    @property
    def is_valid(self) -> bool:
        return self.status == VALID

    @property
    def is_skipped(self) -> bool:
        return self.status == SKIPPED

    def summary(self) -> str:
        """One-line description of the outcome"""
        target = self.source or 'document'
        if self.status == SKIPPED:
            return f"Validation of {target} skipped: {self.reason}"
        if self.status == VALID:
            message = f"{target} is valid according to the OAI-PMH schema"
            if self.suppressed:
                message += f", excluding {self.suppressed} known issue(s)"
            return message
        return f"{target} has {len(self.errors)} schema validation error(s)"

    def generate_console_report(self, max_errors: int = 20) -> str:
        """Human-readable report listing remaining errors"""
        icon = {VALID: '✅', INVALID: '❌', SKIPPED: '⚠️'}[self.status]
        lines = [f"{icon} {self.summary()}"]

        if self.suppressed_issues:
            lines.append(f"   Known issues ignored: {', '.join(self.suppressed_issues)}")

        for message in self.errors[:max_errors]:
            lines.append(f"   • {message}")
        if len(self.errors) > max_errors:
            lines.append(f"   ... and {len(self.errors) - max_errors} more")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'source': self.source,
            'errors': self.errors,
            'suppressed': self.suppressed,
            'suppressed_issues': self.suppressed_issues,
            'reason': self.reason,
            'timestamp': self.timestamp
        }

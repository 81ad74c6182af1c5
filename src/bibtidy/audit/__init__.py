"""Audit logging for command-line runs.

Main Components
---------------
- AuditLogger: JSONL event logger
- generate_run_id: Unique run identifier
"""

from bibtidy.audit.helpers import generate_run_id, get_package_version
from bibtidy.audit.logger import AuditLogger
from bibtidy.audit.models import LogEvent

__all__ = [
    "AuditLogger",
    "LogEvent",
    "generate_run_id",
    "get_package_version",
]

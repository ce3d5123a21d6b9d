"""
Security helpers: DSN parsing and log redaction.
"""

from .dsns import DSNConfig, parse_dsn
from .redaction import redact_params, redact_row, redact_value

__all__ = ["DSNConfig", "parse_dsn", "redact_params", "redact_row", "redact_value"]

# carrymatch/common/__init__.py
"""
Shared utilities, constants and the logger.
"""

from carrymatch.common.logger import get_logger, log_info, log_error, log_warning, log_debug
from carrymatch.common.constants import TypeMsg, USER_ID_HEADER

__all__ = [
    "get_logger",
    "log_info",
    "log_error",
    "log_warning",
    "log_debug",
    "TypeMsg",
    "USER_ID_HEADER",
]

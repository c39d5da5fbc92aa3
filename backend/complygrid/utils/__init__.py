"""
ComplyGrid Utility Functions
Shared helpers across services and routes
"""

from complygrid.utils.logging_security import sanitize_for_log, sanitize_id_for_log, sanitize_ids_for_log  # noqa: F401
from complygrid.utils.rounding import round_half_up  # noqa: F401

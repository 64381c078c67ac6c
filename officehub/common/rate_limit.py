"""Rate limiting configuration using slowapi.

A module-level Limiter shared by routers (``@limiter.limit(...)``) and wired
into the FastAPI app in main.py.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

LOGIN_RATE_LIMIT = "10/minute"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["120/minute"],
)

"""
Shared utility functions and singletons used across multiple modules.
"""

import random
import string
import time
from contextvars import ContextVar

from slowapi import Limiter
from slowapi.util import get_remote_address

# ── Shared rate-limiter instance ─────────────────────────────────────────
# Created here (not in main.py) so that route modules can import it
# without a circular dependency.
limiter = Limiter(key_func=get_remote_address)

# Request ID of the request being served, "-" outside a request. Set by
# RequestIdMiddleware and stamped onto log records by RequestIdFilter.
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")

_rng = random.SystemRandom()


def generate_job_id() -> str:
    """
    Mint an opaque pipeline job ID (e.g., 'job_1718000000000_k3x9q2a').

    Millisecond timestamp prefix plus a random base-36 suffix. No registry
    is consulted; callers carry the ID between stages themselves.
    """
    chars = string.ascii_lowercase + string.digits
    random_part = "".join(_rng.choices(chars, k=7))
    return f"job_{int(time.time() * 1000)}_{random_part}"

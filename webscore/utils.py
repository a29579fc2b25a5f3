"""Shared utility functions."""

import time
import uuid
from urllib.parse import urlparse


def extract_domain(url: str) -> str:
    """Extract domain from URL, stripping 'www.' prefix."""
    return urlparse(url).netloc.replace("www.", "")


def new_session_id() -> str:
    """Millisecond timestamp plus a random suffix, unique per request."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"

"""
Centralized Timeout Configuration

Defines timeout values for calls made to the Engenie backend.
All values in seconds.
"""

# HTTP Request Timeouts
HTTP_REQUEST_TIMEOUT = 30  # Validate, schema, intent, sales-agent calls
HTTP_ANALYSIS_TIMEOUT = 300  # /analyze runs the full vendor analysis
HTTP_IMAGE_TIMEOUT = 60  # Per-product image lookups
HTTP_SESSION_INIT_TIMEOUT = 10  # /new-search (best effort)

# Parallel Execution
THREAD_POOL_TIMEOUT = 120  # Max wait for the image fan-out to join

__all__ = [
    'HTTP_REQUEST_TIMEOUT',
    'HTTP_ANALYSIS_TIMEOUT',
    'HTTP_IMAGE_TIMEOUT',
    'HTTP_SESSION_INIT_TIMEOUT',
    'THREAD_POOL_TIMEOUT',
]

from .client_config import WorkflowConfig
from .timeouts import (
    HTTP_REQUEST_TIMEOUT,
    HTTP_ANALYSIS_TIMEOUT,
    HTTP_IMAGE_TIMEOUT,
    HTTP_SESSION_INIT_TIMEOUT,
    THREAD_POOL_TIMEOUT,
)

__all__ = [
    'WorkflowConfig',
    'HTTP_REQUEST_TIMEOUT',
    'HTTP_ANALYSIS_TIMEOUT',
    'HTTP_IMAGE_TIMEOUT',
    'HTTP_SESSION_INIT_TIMEOUT',
    'THREAD_POOL_TIMEOUT',
]

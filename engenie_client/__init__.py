# Engenie Client
# Conversational product-recommendation client for the Engenie backend

from .api import BackendClient, BackendError
from .agentic import SalesWorkflow, ConversationStep, ConversationState
from .config import WorkflowConfig

__version__ = "1.0.0"

__all__ = [
    'BackendClient',
    'BackendError',
    'SalesWorkflow',
    'ConversationStep',
    'ConversationState',
    'WorkflowConfig',
]

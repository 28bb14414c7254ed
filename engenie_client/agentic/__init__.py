# Agentic Conversation Module
# Conversation state machine, state reducer and analysis orchestration

# ============================================================================
# MODELS
# ============================================================================
from .models import (
    ConversationStep,
    MessageType,
    Intent,
    DisplayMode,
    ChatMessage,
    ConversationState,
    Notification,
    NEUTRAL_STEPS,
    create_initial_state,

    # Events
    MessageAdded,
    MessageUpdated,
    LoadingChanged,
    InputChanged,
    StepChanged,
    ValidationRecorded,
    ValidationApplied,
    CollectedDataReplaced,
    AdvancedParametersDiscovered,
    AdvancedSelectionMerged,
    AnalysisCompleted,
    FieldDescribed,
    SessionReset,
)

# ============================================================================
# STATE / SESSIONS
# ============================================================================
from .state_reducer import reduce
from .session_manager import SessionManager

# ============================================================================
# WORKFLOW
# ============================================================================
from .analysis_orchestrator import (
    AnalysisSummary,
    partition_products,
    build_analysis_input,
    fetch_product_images,
    apply_product_images,
    run_analysis,
)
from .sales_workflow import SalesWorkflow, GENERIC_ERROR_MESSAGE

__all__ = [
    # Models
    'ConversationStep',
    'MessageType',
    'Intent',
    'DisplayMode',
    'ChatMessage',
    'ConversationState',
    'Notification',
    'NEUTRAL_STEPS',
    'create_initial_state',
    # Events
    'MessageAdded',
    'MessageUpdated',
    'LoadingChanged',
    'InputChanged',
    'StepChanged',
    'ValidationRecorded',
    'ValidationApplied',
    'CollectedDataReplaced',
    'AdvancedParametersDiscovered',
    'AdvancedSelectionMerged',
    'AnalysisCompleted',
    'FieldDescribed',
    'SessionReset',
    # State / Sessions
    'reduce',
    'SessionManager',
    # Workflow
    'AnalysisSummary',
    'partition_products',
    'build_analysis_input',
    'fetch_product_images',
    'apply_product_images',
    'run_analysis',
    'SalesWorkflow',
    'GENERIC_ERROR_MESSAGE',
]

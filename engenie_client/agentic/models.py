# agentic/models.py
# Conversation state, steps and state-transition events

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Any

from pydantic import BaseModel, ConfigDict, Field

from ..api.models import (
    AdvancedParametersResult,
    AnalysisResult,
    RequirementSchema,
    ValidationResult,
)


# ============================================================================
# ENUMS
# ============================================================================

class ConversationStep(str, Enum):
    """Workflow step identifiers (wire values match the backend)"""
    GREETING = "greeting"
    INITIAL_INPUT = "initialInput"
    AWAIT_MISSING_INFO = "awaitMissingInfo"
    AWAIT_ADDITIONAL_AND_LATEST_SPECS = "awaitAdditionalAndLatestSpecs"
    AWAIT_ADVANCED_SPECS = "awaitAdvancedSpecs"
    CONFIRM_AFTER_MISSING_INFO = "confirmAfterMissingInfo"
    SHOW_SUMMARY = "showSummary"
    FINAL_ANALYSIS = "finalAnalysis"
    ANALYSIS_ERROR = "analysisError"
    DEFAULT = "default"

    @classmethod
    def coerce(cls, value: Any) -> "ConversationStep":
        """Map a backend step string to a step; unknown values become DEFAULT."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.DEFAULT


# Steps from which a product-requirements message restarts collection
NEUTRAL_STEPS = frozenset({
    ConversationStep.GREETING,
    ConversationStep.INITIAL_INPUT,
    ConversationStep.DEFAULT,
})


class MessageType(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    FEEDBACK = "feedback"


class Intent(str, Enum):
    """Intent labels from /api/intent that change routing; any other label follows next_step"""
    KNOWLEDGE_QUESTION = "knowledgeQuestion"
    PRODUCT_REQUIREMENTS = "productRequirements"
    WORKFLOW = "workflow"


class DisplayMode(str, Enum):
    EXACT = "exact"
    APPROXIMATE = "approximate"


# ============================================================================
# STATE
# ============================================================================

class ChatMessage(BaseModel):
    """Single conversation message"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique id (millisecond time + random suffix)")
    type: MessageType = Field(description="user | assistant | feedback")
    content: str = Field(description="Message text")
    timestamp: datetime = Field(default_factory=datetime.now)
    metadata: Optional[Dict[str, Any]] = Field(default=None)


class ConversationState(BaseModel):
    """
    Complete state of one conversation (one tab / search session).

    Only reduce() produces new instances; nothing mutates one in place.
    """
    model_config = ConfigDict(frozen=True)

    session_id: str
    current_step: ConversationStep = ConversationStep.GREETING
    collected_data: Dict[str, Any] = Field(default_factory=dict)
    validation_result: Optional[ValidationResult] = None
    requirement_schema: Optional[RequirementSchema] = None
    product_type: str = ""
    analysis_result: Optional[AnalysisResult] = None
    messages: List[ChatMessage] = Field(default_factory=list)
    is_loading: bool = False
    input_value: str = ""
    advanced_parameters: Optional[AdvancedParametersResult] = None
    selected_advanced_params: Dict[str, Any] = Field(default_factory=dict)
    field_descriptions: Dict[str, str] = Field(default_factory=dict)
    has_validated_before: bool = False

    @property
    def missing_fields(self) -> List[str]:
        if self.validation_result and self.validation_result.validation_alert:
            return list(self.validation_result.validation_alert.missing_fields)
        return []

    def find_message(self, message_id: str) -> Optional[ChatMessage]:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None


def create_initial_state(session_id: str) -> ConversationState:
    """Create initial conversation state"""
    return ConversationState(session_id=session_id)


@dataclass(frozen=True)
class Notification:
    """Short user-facing notice outside the conversation (toast)"""
    title: str
    description: str = ""
    variant: str = "default"


# ============================================================================
# EVENTS
# ============================================================================

@dataclass(frozen=True)
class MessageAdded:
    message: ChatMessage


@dataclass(frozen=True)
class MessageUpdated:
    message_id: str
    content: str


@dataclass(frozen=True)
class LoadingChanged:
    is_loading: bool


@dataclass(frozen=True)
class InputChanged:
    value: str


@dataclass(frozen=True)
class StepChanged:
    step: ConversationStep


@dataclass(frozen=True)
class ValidationRecorded:
    """A /validate call succeeded for this session"""


@dataclass(frozen=True)
class ValidationApplied:
    """Store a validation result together with the merged collected data"""
    validation: ValidationResult
    collected_data: Dict[str, Any]
    schema: Optional[RequirementSchema] = None
    product_type: Optional[str] = None


@dataclass(frozen=True)
class CollectedDataReplaced:
    collected_data: Dict[str, Any]


@dataclass(frozen=True)
class AdvancedParametersDiscovered:
    result: AdvancedParametersResult


@dataclass(frozen=True)
class AdvancedSelectionMerged:
    """Merge parsed advanced parameter values into collected data and the running selection"""
    selected: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AnalysisCompleted:
    analysis_result: AnalysisResult


@dataclass(frozen=True)
class FieldDescribed:
    field_name: str
    description: str


@dataclass(frozen=True)
class SessionReset:
    """Start over in the same session: everything but the session id is cleared"""

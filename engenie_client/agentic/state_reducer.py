# agentic/state_reducer.py
# Single transition function for conversation state
#
# reduce(state, event) -> new state. Total: events it does not know leave the
# state unchanged. No I/O happens here, so every transition can be tested
# without a backend.

import logging
from typing import Any

from .models import (
    AdvancedParametersDiscovered,
    AdvancedSelectionMerged,
    AnalysisCompleted,
    CollectedDataReplaced,
    ConversationState,
    FieldDescribed,
    InputChanged,
    LoadingChanged,
    MessageAdded,
    MessageUpdated,
    SessionReset,
    StepChanged,
    ValidationApplied,
    ValidationRecorded,
    create_initial_state,
)

logger = logging.getLogger(__name__)


def reduce(state: ConversationState, event: Any) -> ConversationState:
    """Apply one event to the conversation state and return the new state."""
    if isinstance(event, MessageAdded):
        return state.model_copy(update={"messages": [*state.messages, event.message]})

    if isinstance(event, MessageUpdated):
        if state.find_message(event.message_id) is None:
            logger.warning(f"[STATE] Ignoring update for unknown message {event.message_id}")
            return state
        messages = [
            message.model_copy(update={"content": event.content}) if message.id == event.message_id else message
            for message in state.messages
        ]
        return state.model_copy(update={"messages": messages})

    if isinstance(event, LoadingChanged):
        return state.model_copy(update={"is_loading": event.is_loading})

    if isinstance(event, InputChanged):
        return state.model_copy(update={"input_value": event.value})

    if isinstance(event, StepChanged):
        if event.step != state.current_step:
            logger.info(f"[STATE] {state.session_id}: {state.current_step.value} -> {event.step.value}")
        return state.model_copy(update={"current_step": event.step})

    if isinstance(event, ValidationRecorded):
        return state.model_copy(update={"has_validated_before": True})

    if isinstance(event, ValidationApplied):
        update = {
            "validation_result": event.validation,
            "collected_data": dict(event.collected_data),
        }
        if event.schema is not None:
            update["requirement_schema"] = event.schema
        if event.product_type:
            update["product_type"] = event.product_type
        return state.model_copy(update=update)

    if isinstance(event, CollectedDataReplaced):
        return state.model_copy(update={"collected_data": dict(event.collected_data)})

    if isinstance(event, AdvancedParametersDiscovered):
        return state.model_copy(update={"advanced_parameters": event.result})

    if isinstance(event, AdvancedSelectionMerged):
        return state.model_copy(update={
            "collected_data": {**state.collected_data, **event.selected},
            "selected_advanced_params": {**state.selected_advanced_params, **event.selected},
        })

    if isinstance(event, AnalysisCompleted):
        return state.model_copy(update={"analysis_result": event.analysis_result})

    if isinstance(event, FieldDescribed):
        return state.model_copy(update={
            "field_descriptions": {**state.field_descriptions, event.field_name: event.description}
        })

    if isinstance(event, SessionReset):
        return create_initial_state(state.session_id)

    logger.warning(f"[STATE] Unknown event type: {type(event).__name__}")
    return state

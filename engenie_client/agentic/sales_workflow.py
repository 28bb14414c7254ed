"""
Sales Workflow
--------------
Conversation state machine for the product-recommendation chat.

One SalesWorkflow drives one search session:
1. greeting - Welcome the user
2. initialInput - Detect product type and validate requirements
3. awaitMissingInfo - Loop until mandatory fields are given or skipped
4. awaitAdditionalAndLatestSpecs - Additional specifications
5. awaitAdvancedSpecs - Advanced parameter specifications
6. showSummary - Structured summary, then analysis
7. finalAnalysis / analysisError - Results, rerun on request

The backend decides wording and (mostly) the next step; this class decides
which endpoint to call, merges partial requirement data across turns and keeps
the conversation state consistent. All state changes go through reduce().
"""

import logging
from typing import Callable, Dict, Any, List, Optional

from ..api import (
    AdvancedParametersResult,
    AgentResponse,
    BackendClient,
    BackendError,
)
from ..tools import (
    classify_yes_no,
    compose_user_data_string,
    flatten_requirements,
    format_missing_fields,
    is_missing_info_confirmation,
    is_missing_info_decline,
    matches_command,
    merge_requirements_with_schema,
    requirements_only,
    RERUN_COMMANDS,
    SUMMARY_PROCEED_COMMANDS,
)
from .analysis_orchestrator import AnalysisSummary, run_analysis
from .models import (
    AdvancedParametersDiscovered,
    AdvancedSelectionMerged,
    AnalysisCompleted,
    ChatMessage,
    CollectedDataReplaced,
    ConversationState,
    ConversationStep,
    FieldDescribed,
    InputChanged,
    Intent,
    LoadingChanged,
    MessageAdded,
    MessageType,
    MessageUpdated,
    NEUTRAL_STEPS,
    Notification,
    SessionReset,
    StepChanged,
    ValidationApplied,
    ValidationRecorded,
    create_initial_state,
)
from .session_manager import SessionManager
from .state_reducer import reduce

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "I'm sorry, there was an error processing your message. Please try again."

StateListener = Callable[[ConversationState], None]
NotificationListener = Callable[[Notification], None]


class SalesWorkflow:
    """
    Conversation workflow for one search session.

    Turns are strictly serialized: a second handle_send_message() on the same
    workflow waits until the first one has finished.
    """

    def __init__(
        self,
        client: Optional[BackendClient] = None,
        session_id: Optional[str] = None,
        initial_input: Optional[str] = None,
        session_manager: Optional[SessionManager] = None,
        initialize_search: bool = True
    ):
        self.client = client or BackendClient()
        self._sessions = session_manager or SessionManager()
        self.session_id = session_id or self._sessions.generate_session_id()
        self._turn_lock = self._sessions.turn_lock(self.session_id)
        self._state = create_initial_state(self.session_id)
        self._state_listeners: List[StateListener] = []
        self._notification_listeners: List[NotificationListener] = []

        self._handlers: Dict[ConversationStep, Callable[[str], None]] = {
            ConversationStep.GREETING: self._handle_greeting,
            ConversationStep.INITIAL_INPUT: self._handle_initial_input,
            ConversationStep.AWAIT_ADDITIONAL_AND_LATEST_SPECS: self._handle_additional_specs,
            ConversationStep.AWAIT_ADVANCED_SPECS: self._handle_advanced_specs,
            ConversationStep.SHOW_SUMMARY: self._handle_show_summary,
            ConversationStep.FINAL_ANALYSIS: self._handle_final_analysis,
            ConversationStep.ANALYSIS_ERROR: self._handle_analysis_error,
        }

        if initialize_search:
            self.client.initialize_new_search(self.session_id)
        if initial_input:
            self.prefill_input(initial_input)

        logger.info(f"[WORKFLOW] Sales workflow ready for session {self.session_id}")

    # ========================================================================
    # STATE
    # ========================================================================

    @property
    def state(self) -> ConversationState:
        return self._state

    @property
    def current_step(self) -> ConversationStep:
        return self._state.current_step

    def _dispatch(self, event: Any) -> ConversationState:
        self._state = reduce(self._state, event)
        for listener in list(self._state_listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.error(f"[WORKFLOW] State listener failed: {e}", exc_info=True)
        return self._state

    def add_state_listener(self, listener: StateListener):
        """Register a callback receiving every new state."""
        self._state_listeners.append(listener)

    def add_notification_listener(self, listener: NotificationListener):
        """Register a callback receiving toast-style notifications."""
        self._notification_listeners.append(listener)

    def _notify(self, notification: Notification):
        logger.info(f"[WORKFLOW] Notification: {notification.title} - {notification.description}")
        for listener in list(self._notification_listeners):
            try:
                listener(notification)
            except Exception as e:
                logger.error(f"[WORKFLOW] Notification listener failed: {e}", exc_info=True)

    def _set_step(self, step: Any):
        self._dispatch(StepChanged(ConversationStep.coerce(step)))

    # ========================================================================
    # MESSAGES
    # ========================================================================

    def add_message(self, message_type: MessageType, content: str, metadata: Optional[Dict[str, Any]] = None) -> ChatMessage:
        message = ChatMessage(
            id=self._sessions.generate_message_id(),
            type=message_type,
            content=content,
            metadata=metadata
        )
        self._dispatch(MessageAdded(message))
        return message

    def update_message(self, message_id: str, content: str):
        """Replace the content of an existing message."""
        self._dispatch(MessageUpdated(message_id, content))

    def stream_assistant_message(self, content: str) -> str:
        """Append a complete assistant message and return its id."""
        return self.add_message(MessageType.ASSISTANT, content).id

    def set_input_value(self, value: str):
        self._dispatch(InputChanged(value))

    def prefill_input(self, initial_input: str) -> bool:
        """
        Put text into the input box without sending it.

        Only applies to a conversation that has no messages yet.
        """
        if self._state.messages:
            logger.info(f"[WORKFLOW] Not prefilling input for session {self.session_id}: conversation already started")
            return False
        self._dispatch(InputChanged(initial_input))
        return True

    # ========================================================================
    # BACKEND HELPERS
    # ========================================================================

    def _agent(
        self,
        step: str,
        data_context: Dict[str, Any],
        user_message: str,
        intent: Optional[str] = None
    ) -> AgentResponse:
        return self.client.generate_agent_response(step, data_context, user_message, intent, self.session_id)

    def _validate(self, user_input: str, product_type: Optional[str] = None):
        validation = self.client.validate_requirements(
            user_input,
            product_type,
            self.session_id,
            has_validated_before=self._state.has_validated_before,
            current_step=self._state.current_step.value
        )
        self._dispatch(ValidationRecorded())
        return validation

    def _product_context(self) -> Dict[str, Any]:
        return {"productType": self._state.product_type, "collectedData": self._state.collected_data}

    # ========================================================================
    # TURN HANDLING
    # ========================================================================

    def handle_send_message(self, user_input: str) -> bool:
        """
        Process one user message.

        Args:
            user_input: Raw text typed by the user

        Returns:
            False if the message was rejected (empty), True otherwise
        """
        text = (user_input or "").strip()
        if not text:
            logger.warning(f"[WORKFLOW] Rejected empty message for session {self.session_id}")
            self._notify(Notification("Empty message", "Please enter a message before sending.", "destructive"))
            return False

        with self._turn_lock:
            self.add_message(MessageType.USER, text)
            self._dispatch(InputChanged(""))
            self._dispatch(LoadingChanged(True))
            try:
                self._process_turn(text)
            except Exception as e:
                logger.error(f"[WORKFLOW] Message handling error: {e}", exc_info=True)
                self.stream_assistant_message(GENERIC_ERROR_MESSAGE)
            finally:
                self._dispatch(LoadingChanged(False))
        return True

    def _process_turn(self, text: str):
        current = self._state.current_step
        intent_result = self.client.classify_intent(text, self.session_id)
        intent = intent_result.intent
        logger.info(f"[WORKFLOW] Intent: {intent}, next step hint: {intent_result.next_step}, current step: {current.value}")

        # Short yes/no replies always answer the workflow, never a knowledge question
        if intent == Intent.KNOWLEDGE_QUESTION.value and classify_yes_no(text):
            logger.info(f"[WORKFLOW] Overriding knowledgeQuestion intent for short reply: {text}")
            intent = Intent.WORKFLOW.value

        if intent == Intent.KNOWLEDGE_QUESTION.value:
            response = self._agent(current.value, self._product_context(), text, Intent.KNOWLEDGE_QUESTION.value)
            self.stream_assistant_message(response.content)
            return

        target = ConversationStep.coerce(intent_result.next_step) if intent_result.next_step else current

        if intent_result.next_step == ConversationStep.SHOW_SUMMARY.value and self._summarize_and_analyze():
            return

        if intent == Intent.PRODUCT_REQUIREMENTS.value:
            target = ConversationStep.INITIAL_INPUT if current in NEUTRAL_STEPS else current

        logger.info(f"[WORKFLOW] Target step: {target.value}")
        # awaitMissingInfo runs only from the fallback, when already in that step
        handler = self._handlers.get(target)
        if handler is None:
            handler = self._handle_missing_info if current == ConversationStep.AWAIT_MISSING_INFO else self._handle_default
        handler(text)

    def _summarize_and_analyze(self) -> bool:
        """Structure the collected requirements and analyze right away, without an agent intro."""
        self._set_step(ConversationStep.SHOW_SUMMARY)
        if not self._state.collected_data:
            logger.warning("[WORKFLOW] No collected data available for summary, continuing with normal flow")
            return False
        try:
            structured = self.client.structure_requirements(
                compose_user_data_string(requirements_only(self._state.collected_data))
            )
        except BackendError as e:
            logger.error(f"[WORKFLOW] Error in direct structure and analysis flow: {e}")
            return False

        self.add_message(MessageType.ASSISTANT, f"\n\n{structured.structured_requirements}\n\n")
        self.perform_analysis()
        return True

    # ========================================================================
    # STEP HANDLERS
    # ========================================================================

    def _handle_greeting(self, text: str):
        response = self._agent(ConversationStep.GREETING.value, {}, text)
        self.stream_assistant_message(response.content)
        self._set_step(ConversationStep.INITIAL_INPUT)

    def _handle_initial_input(self, text: str):
        try:
            validation = self._validate(text)
            product_type = validation.product_type
            if not product_type:
                response = self._agent(ConversationStep.INITIAL_INPUT.value, {}, "No product type detected.")
                self.stream_assistant_message(response.content)
                self._set_step(ConversationStep.INITIAL_INPUT)
                return

            schema = self.client.get_requirement_schema(product_type)
            flat = flatten_requirements(validation.provided_requirements)
            merged = merge_requirements_with_schema(flat, schema)

            if validation.has_alert:
                self._dispatch(ValidationApplied(validation, merged, schema, product_type))
                self.stream_assistant_message(validation.validation_alert.message)
                self._set_step(ConversationStep.AWAIT_MISSING_INFO)
                return

            response = self._agent(
                "initialInputWithSpecs",
                {"productType": product_type, "requirements": flat},
                f"Product type detected: {product_type}. All mandatory requirements provided."
            )
            self._dispatch(ValidationApplied(validation, merged, schema, product_type))
            self.stream_assistant_message(response.content)
            self._set_step(response.next_step or ConversationStep.AWAIT_ADDITIONAL_AND_LATEST_SPECS)
        except BackendError as e:
            logger.error(f"[WORKFLOW] Initial input error: {e}")
            response = self._agent(ConversationStep.DEFAULT.value, {}, "Error during initial processing.")
            self.stream_assistant_message(response.content)
            self._set_step(ConversationStep.INITIAL_INPUT)

    def _handle_missing_info(self, text: str):
        state = self._state
        try:
            if is_missing_info_confirmation(text):
                response = self._agent(
                    ConversationStep.CONFIRM_AFTER_MISSING_INFO.value,
                    self._product_context(),
                    "User confirmed to proceed without providing missing mandatory fields."
                )
                self.stream_assistant_message(response.content)
                self._set_step(ConversationStep.AWAIT_ADDITIONAL_AND_LATEST_SPECS)
                return

            if is_missing_info_decline(text):
                missing = state.missing_fields
                formatted = format_missing_fields(missing)
                response = self._agent(
                    "askForMissingFields",
                    {"productType": state.product_type, "missingFields": formatted, "missingFieldsList": missing},
                    f"User wants to provide missing fields: {formatted}"
                )
                self.stream_assistant_message(response.content)
                self._set_step(ConversationStep.AWAIT_MISSING_INFO)
                return

            combined = f"{compose_user_data_string(state.collected_data)} {text}"
            known_type = state.validation_result.product_type if state.validation_result else None
            validation = self._validate(combined, known_type)
            updated = merge_requirements_with_schema(
                {**state.collected_data, **flatten_requirements(validation.provided_requirements)},
                state.requirement_schema
            )
            self._dispatch(ValidationApplied(validation, updated))

            if validation.has_alert:
                self.stream_assistant_message(validation.validation_alert.message)
                self._set_step(ConversationStep.AWAIT_MISSING_INFO)
                return

            response = self._agent(
                ConversationStep.CONFIRM_AFTER_MISSING_INFO.value,
                {"productType": state.product_type, "collectedData": updated},
                "All mandatory requirements provided."
            )
            self.stream_assistant_message(response.content)
            self._set_step(response.next_step or ConversationStep.AWAIT_ADDITIONAL_AND_LATEST_SPECS)
        except BackendError as e:
            logger.error(f"[WORKFLOW] Missing info processing error: {e}")
            response = self._agent(ConversationStep.DEFAULT.value, {}, "Error processing your input.")
            self.stream_assistant_message(response.content)

    def _handle_additional_specs(self, text: str):
        response = self._agent(
            ConversationStep.AWAIT_ADDITIONAL_AND_LATEST_SPECS.value,
            self._product_context(),
            text
        )
        self.stream_assistant_message(response.content)

        if not response.next_step:
            self._set_step(ConversationStep.AWAIT_ADDITIONAL_AND_LATEST_SPECS)
            return

        next_step = ConversationStep.coerce(response.next_step)
        if next_step == ConversationStep.AWAIT_ADVANCED_SPECS:
            if not self._adopt_discovered_parameters(response):
                self._discover_advanced_parameters()
        self._set_step(next_step)

        if next_step == ConversationStep.SHOW_SUMMARY:
            self.show_summary_and_proceed(intro_already_streamed=True)

    def _handle_advanced_specs(self, text: str):
        state = self._state
        try:
            parameters = state.advanced_parameters
            if parameters is not None and parameters.unique_parameters:
                selection = self.client.add_advanced_parameters(
                    state.product_type,
                    text,
                    parameters.unique_parameters
                )
                if selection.total_selected > 0:
                    self._dispatch(AdvancedSelectionMerged(dict(selection.selected_parameters)))
                    logger.info(f"[WORKFLOW] Accumulated {selection.total_selected} advanced parameter(s)")

                response = self._agent(
                    ConversationStep.AWAIT_ADVANCED_SPECS.value,
                    {
                        "productType": state.product_type,
                        "selectedParameters": selection.selected_parameters,
                        "totalSelected": selection.total_selected,
                        "availableParameters": parameters.unique_parameters
                    },
                    text
                )
            else:
                response = self._agent(
                    ConversationStep.AWAIT_ADVANCED_SPECS.value,
                    {"productType": state.product_type},
                    text
                )
                self._adopt_discovered_parameters(response)

            if response.content.strip():
                self.stream_assistant_message(response.content)

            if response.next_step == ConversationStep.SHOW_SUMMARY.value:
                self._set_step(ConversationStep.SHOW_SUMMARY)
                self.show_summary_and_proceed(intro_already_streamed=not response.content.strip())
            elif response.next_step:
                self._set_step(response.next_step)
        except BackendError as e:
            logger.error(f"[WORKFLOW] Advanced parameters error: {e}")
            response = self._agent(ConversationStep.AWAIT_ADVANCED_SPECS.value, {}, "Error processing advanced parameters.")
            self.stream_assistant_message(response.content)

    def _handle_show_summary(self, text: str):
        if matches_command(text, SUMMARY_PROCEED_COMMANDS):
            self.perform_analysis()
        else:
            logger.info(f"[WORKFLOW] Waiting for summary confirmation, got: {text}")

    def _handle_final_analysis(self, text: str):
        if matches_command(text, RERUN_COMMANDS):
            self.perform_analysis()

    def _handle_analysis_error(self, text: str):
        if matches_command(text, RERUN_COMMANDS, exact=True):
            self.perform_analysis()
            return
        response = self._agent(ConversationStep.ANALYSIS_ERROR.value, {}, "Please type 'rerun' to try again.")
        self.stream_assistant_message(response.content)

    def _handle_default(self, text: str):
        response = self._agent(ConversationStep.DEFAULT.value, {}, text)
        self.stream_assistant_message(response.content)

    # ========================================================================
    # ADVANCED PARAMETERS
    # ========================================================================

    def _adopt_discovered_parameters(self, response: AgentResponse) -> bool:
        """Keep parameters the sales agent already discovered during this turn."""
        parameters = response.discovered_parameters or (response.model_extra or {}).get("availableParameters")
        if not parameters:
            return False
        result = AdvancedParametersResult(
            product_type=self._state.product_type or None,
            unique_parameters=list(parameters),
            total_unique_parameters=len(parameters)
        )
        self._dispatch(AdvancedParametersDiscovered(result))
        logger.info(f"[WORKFLOW] Adopted {len(parameters)} advanced parameter(s) from agent response")
        return True

    def _discover_advanced_parameters(self):
        product_type = self._state.product_type
        if not product_type:
            return
        try:
            result = self.client.discover_advanced_parameters(product_type, self.session_id)
        except BackendError as e:
            logger.warning(f"[WORKFLOW] Advanced parameter discovery failed for {product_type}: {e}")
            return
        self._dispatch(AdvancedParametersDiscovered(result))
        logger.info(f"[WORKFLOW] Discovered {len(result.unique_parameters)} advanced parameter(s) for {product_type}")

    # ========================================================================
    # SUMMARY / ANALYSIS
    # ========================================================================

    def show_summary_and_proceed(self, skip_intro: bool = False, intro_already_streamed: bool = False):
        """
        Show the structured requirements summary, then run the analysis.

        Args:
            skip_intro: Do not ask the agent for a summary intro
            intro_already_streamed: The agent intro was streamed earlier in this turn
        """
        with self._turn_lock:
            self._dispatch(LoadingChanged(True))
            try:
                collected = self._state.collected_data
                structured = self.client.structure_requirements(
                    compose_user_data_string(requirements_only(collected))
                )

                if not skip_intro and not intro_already_streamed:
                    intro = self._agent(ConversationStep.SHOW_SUMMARY.value, collected, "Summary of requirements is ready.")
                    self.stream_assistant_message(intro.content)

                self.add_message(MessageType.ASSISTANT, f"\n\n{structured.structured_requirements}\n\n")
                self.perform_analysis()
            except BackendError as e:
                logger.error(f"[WORKFLOW] Summary error: {e}")
                response = self._agent(ConversationStep.SHOW_SUMMARY.value, {}, "Error generating summary.")
                self.stream_assistant_message(response.content)
                self._set_step(ConversationStep.SHOW_SUMMARY)
            finally:
                self._dispatch(LoadingChanged(False))

    def perform_analysis(self) -> Optional[AnalysisSummary]:
        """
        Run the final analysis for the collected requirements.

        Returns:
            The match summary, or None when the analysis failed
        """
        with self._turn_lock:
            self._dispatch(LoadingChanged(True))
            try:
                analysis, summary = run_analysis(
                    self.client,
                    self._state.product_type,
                    self._state.collected_data
                )
                response = self._agent(
                    ConversationStep.FINAL_ANALYSIS.value,
                    {"analysisResult": analysis.to_wire(), "displayMode": summary.display_mode.value},
                    f"Analysis complete. {summary.message}."
                )
                self.stream_assistant_message(response.content)
                self._dispatch(AnalysisCompleted(analysis))
                self._set_step(ConversationStep.INITIAL_INPUT)
                self._notify(Notification("Analysis Complete", summary.message))
                return summary
            except BackendError as e:
                logger.error(f"[ANALYSIS] Analysis error: {e}")
                response = self._agent(ConversationStep.ANALYSIS_ERROR.value, {}, "An error occurred during final analysis.")
                self.stream_assistant_message(response.content)
                self._set_step(ConversationStep.ANALYSIS_ERROR)
                return None
            finally:
                self._dispatch(LoadingChanged(False))

    def retry_analysis(self) -> Optional[AnalysisSummary]:
        """Run the analysis again with the current requirements."""
        logger.info(f"[ANALYSIS] Retrying analysis for session {self.session_id}")
        return self.perform_analysis()

    # ========================================================================
    # SIDE PANEL OPERATIONS
    # ========================================================================

    def describe_field(self, field_name: str) -> str:
        """
        Get a human-readable description of a requirement field.

        Descriptions are cached per session.

        Raises:
            BackendError: If the description cannot be fetched
        """
        cached = self._state.field_descriptions.get(field_name)
        if cached is not None:
            return cached

        result = self.client.get_field_description(field_name, self._state.product_type or None)
        self._dispatch(FieldDescribed(field_name, result.description))
        return result.description

    def add_additional_requirements(self, user_input: str) -> str:
        """
        Parse free-text additional requirements and merge them into the collected data.

        Returns:
            The backend explanation of what was understood

        Raises:
            BackendError: If the requirements cannot be processed
        """
        with self._turn_lock:
            state = self._state
            result = self.client.additional_requirements(state.product_type, user_input)
            merged = merge_requirements_with_schema(
                {**state.collected_data, **flatten_requirements(result.provided_requirements)},
                state.requirement_schema
            )
            self._dispatch(CollectedDataReplaced(merged))
            return result.explanation

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def new_search(self):
        """Start over in the same session."""
        with self._turn_lock:
            self._dispatch(SessionReset())
            self.client.initialize_new_search(self.session_id)
            logger.info(f"[SESSION] New search started for session {self.session_id}")

    def close(self):
        """Forget the session's validation history and release the HTTP session."""
        with self._turn_lock:
            self._dispatch(SessionReset())
            self._sessions.release(self.session_id)
            self.client.close()
            logger.info(f"[SESSION] Closed session {self.session_id}")

    def __enter__(self) -> "SalesWorkflow":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


# Example usage
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    print("\n" + "=" * 70)
    print("ENGENIE SALES WORKFLOW - STEP-BY-STEP CONVERSATION")
    print("=" * 70)

    with SalesWorkflow() as workflow:
        for message in [
            "Hello",
            "I need a pressure transmitter 0-10 inH2O 4-20mA HART",
            "no",
        ]:
            print(f"\nUser: {message}")
            workflow.handle_send_message(message)
            print(f"Engenie: {workflow.state.messages[-1].content[:200]}")
            print(f"Current Step: {workflow.current_step.value}")

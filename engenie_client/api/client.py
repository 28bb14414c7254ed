# api/client.py
"""
HTTP client for the Engenie backend

Single point of contact between the conversation workflow and the backend
REST API. Every method performs one HTTP call, normalizes the response keys
to camelCase and validates the body into a typed model.

Failure policy:
- Calls the workflow cannot proceed without (validate, schema, analyze,
  structuring, advanced parameters, images) raise BackendError.
- Calls the workflow can tolerate failing (intent classification, agent
  phrasing, session initialization) never raise and return a safe fallback.
"""

import logging
from typing import Dict, Any, List, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import WorkflowConfig, HTTP_SESSION_INIT_TIMEOUT
from .models import (
    AdditionalRequirementsResult,
    AdvancedParametersResult,
    AdvancedParametersSelection,
    AgentResponse,
    AnalysisImageResult,
    AnalysisResult,
    FieldDescription,
    IntentClassificationResult,
    RequirementSchema,
    StructuredRequirements,
    ValidationResult,
)
from .normalization import convert_keys_to_camel_case, normalize_user_input

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

AGENT_FALLBACK_CONTENT = "I'm having trouble connecting to my brain right now. Please try again in a moment."
AWAIT_MISSING_INFO_STEP = "awaitMissingInfo"


class BackendError(Exception):
    """Raised when a backend call the workflow depends on fails"""

    def __init__(self, message: str, status_code: Optional[int] = None, endpoint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.endpoint = endpoint

    def __str__(self) -> str:
        return self.message


class BackendClient:
    """
    Engenie backend client.

    Holds one requests.Session so TCP connections and the backend session
    cookie are reused across calls. Idempotent GETs are retried with
    exponential backoff; POSTs are sent once.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None
    ):
        self.base_url = (base_url or WorkflowConfig.BASE_URL).rstrip("/")
        self.timeout = timeout or WorkflowConfig.REQUEST_TIMEOUT
        self.headers = {
            "Content-Type": "application/json",
            "Accept": "application/json"
        }

        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(
                pool_connections=10,
                pool_maxsize=10,
                max_retries=Retry(
                    total=WorkflowConfig.MAX_RETRIES,
                    backoff_factor=WorkflowConfig.BACKOFF_FACTOR,
                    status_forcelist=[429, 500, 502, 503, 504],
                    allowed_methods=frozenset(["GET"]),
                    raise_on_status=False
                )
            )
            session.mount('http://', adapter)
            session.mount('https://', adapter)
        self._session = session

        logger.info(f"[API] BackendClient initialized for {self.base_url}")

    # ========================================================================
    # TRANSPORT
    # ========================================================================

    def _request(
        self,
        method: str,
        endpoint: str,
        data: Optional[dict] = None,
        params: Optional[dict] = None,
        timeout: Optional[int] = None
    ) -> requests.Response:
        url = f"{self.base_url}{endpoint}"
        timeout = timeout or self.timeout
        if method.upper() == "GET":
            return self._session.get(url, headers=self.headers, params=params, timeout=timeout)
        if method.upper() == "POST":
            return self._session.post(url, headers=self.headers, json=data, timeout=timeout)
        raise ValueError(f"Unsupported HTTP method: {method}")

    def _call(
        self,
        method: str,
        endpoint: str,
        default_error: str,
        data: Optional[dict] = None,
        params: Optional[dict] = None,
        timeout: Optional[int] = None
    ) -> Any:
        """
        Perform a call and return the camelCase-normalized JSON body.

        Raises:
            BackendError: transport failure, non-2xx status or non-JSON body.
                The backend's own "error" field is used as the message when
                it sends one.
        """
        try:
            response = self._request(method, endpoint, data=data, params=params, timeout=timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"[API] {method} {endpoint} failed: {e}")
            raise BackendError(default_error, endpoint=endpoint) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.ok:
            backend_message = body.get("error") if isinstance(body, dict) else None
            logger.error(f"[API] {method} {endpoint} returned {response.status_code}: {body if body is not None else response.text}")
            raise BackendError(backend_message or default_error, status_code=response.status_code, endpoint=endpoint)

        if body is None:
            logger.error(f"[API] {method} {endpoint} returned a non-JSON body")
            raise BackendError(default_error, status_code=response.status_code, endpoint=endpoint)

        return convert_keys_to_camel_case(body)

    @staticmethod
    def _parse(model: Type[ModelT], payload: Any, default_error: str, endpoint: str) -> ModelT:
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            logger.error(f"[API] Unexpected response shape from {endpoint}: {e}")
            raise BackendError(default_error, endpoint=endpoint) from e

    def close(self):
        """Close the HTTP session and release pooled connections."""
        if getattr(self, "_session", None) is not None:
            self._session.close()
            logger.info("[API] BackendClient session closed")

    def __enter__(self) -> "BackendClient":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # ========================================================================
    # SESSION
    # ========================================================================

    def initialize_new_search(self, search_session_id: str) -> bool:
        """
        Initialize an independent search session on the backend.

        Best effort: failures are logged and reported as False, never raised.
        """
        try:
            self._call(
                "POST",
                "/new-search",
                "Failed to initialize new search session",
                data={"search_session_id": search_session_id, "reset": True},
                timeout=HTTP_SESSION_INIT_TIMEOUT
            )
            logger.info(f"[SESSION] Initialized search session: {search_session_id}")
            return True
        except BackendError as e:
            logger.error(f"[SESSION] Failed to initialize search session {search_session_id}: {e}")
            return False

    # ========================================================================
    # REQUIREMENTS
    # ========================================================================

    def validate_requirements(
        self,
        user_input: str,
        product_type: Optional[str] = None,
        search_session_id: Optional[str] = None,
        has_validated_before: bool = False,
        current_step: Optional[str] = None
    ) -> ValidationResult:
        """
        Validate user requirements.

        Args:
            user_input: Raw user text (normalized before sending)
            product_type: Known product type, sent only when present
            search_session_id: Session this validation belongs to
            has_validated_before: Whether this session already validated once
            current_step: Workflow step; awaitMissingInfo always counts as a repeat

        Returns:
            ValidationResult
        """
        payload: Dict[str, Any] = {
            "user_input": normalize_user_input(user_input),
            "is_repeat": has_validated_before or current_step == AWAIT_MISSING_INFO_STEP,
            "reset": False,
        }
        if product_type:
            payload["product_type"] = product_type
        if search_session_id:
            payload["search_session_id"] = search_session_id

        body = self._call("POST", "/validate", "Validation failed", data=payload)
        return self._parse(ValidationResult, body, "Validation failed", "/validate")

    def get_requirement_schema(self, product_type: str) -> RequirementSchema:
        """Fetch the requirement schema for a product type. Blank types yield an empty schema."""
        if not product_type or not product_type.strip():
            return RequirementSchema()

        body = self._call("GET", "/schema", "Schema fetch failed", params={"product_type": product_type})
        return self._parse(RequirementSchema, body, "Schema fetch failed", "/schema")

    def additional_requirements(self, product_type: str, user_input: str) -> AdditionalRequirementsResult:
        """Parse additional requirements text for a product type."""
        body = self._call(
            "POST",
            "/additional_requirements",
            "Failed to process additional requirements.",
            data={"product_type": product_type, "user_input": user_input}
        )
        return self._parse(AdditionalRequirementsResult, body, "Failed to process additional requirements.", "/additional_requirements")

    def structure_requirements(self, full_input: str) -> StructuredRequirements:
        """Turn the flattened requirements string into a readable summary."""
        body = self._call(
            "POST",
            "/structure_requirements",
            "Requirement structuring failed",
            data={"full_input": normalize_user_input(full_input)}
        )
        return self._parse(StructuredRequirements, body, "Requirement structuring failed", "/structure_requirements")

    def get_field_description(self, field: str, product_type: Optional[str]) -> FieldDescription:
        """Fetch a human-readable description for a schema field."""
        body = self._call(
            "POST",
            "/get_field_description",
            "Failed to fetch field description.",
            data={"field": field, "product_type": product_type}
        )
        return self._parse(FieldDescription, body, "Failed to fetch field description.", "/get_field_description")

    # ========================================================================
    # ADVANCED PARAMETERS
    # ========================================================================

    def discover_advanced_parameters(
        self,
        product_type: str,
        search_session_id: Optional[str] = None
    ) -> AdvancedParametersResult:
        """Discover advanced parameters from top vendors for a product type."""
        payload: Dict[str, Any] = {"product_type": product_type}
        if search_session_id:
            payload["search_session_id"] = search_session_id

        body = self._call("POST", "/api/advanced_parameters", "Failed to discover advanced parameters", data=payload)
        return self._parse(AdvancedParametersResult, body, "Failed to discover advanced parameters", "/api/advanced_parameters")

    def add_advanced_parameters(
        self,
        product_type: str,
        user_input: str,
        available_parameters: List[Any]
    ) -> AdvancedParametersSelection:
        """Parse the user's advanced parameter selection."""
        body = self._call(
            "POST",
            "/api/add_advanced_parameters",
            "Failed to process advanced parameters",
            data={
                "product_type": product_type,
                "user_input": user_input,
                "available_parameters": available_parameters
            }
        )
        return self._parse(AdvancedParametersSelection, body, "Failed to process advanced parameters", "/api/add_advanced_parameters")

    # ========================================================================
    # ANALYSIS
    # ========================================================================

    def analyze_products(self, user_input: str) -> AnalysisResult:
        """
        Run the vendor/product analysis.

        The input is sent verbatim: numbers, units and punctuation are needed
        for product type detection and requirement matching.
        """
        body = self._call(
            "POST",
            "/analyze",
            "Analysis failed",
            data={"user_input": user_input},
            timeout=WorkflowConfig.ANALYSIS_TIMEOUT
        )
        return self._parse(AnalysisResult, body, "Analysis failed", "/analyze")

    def get_analysis_product_images(
        self,
        vendor: str,
        product_type: str,
        product_name: str,
        model_families: List[str]
    ) -> AnalysisImageResult:
        """Fetch images and vendor logo for one analyzed product."""
        body = self._call(
            "POST",
            "/api/get_analysis_product_images",
            "Failed to fetch analysis images",
            data={
                "vendor": vendor,
                "product_type": product_type,
                "product_name": product_name,
                "model_families": model_families
            },
            timeout=WorkflowConfig.IMAGE_TIMEOUT
        )
        return self._parse(AnalysisImageResult, body, "Failed to fetch analysis images", "/api/get_analysis_product_images")

    # ========================================================================
    # CONVERSATION (soft failures)
    # ========================================================================

    def classify_intent(self, user_input: str, search_session_id: Optional[str] = None) -> IntentClassificationResult:
        """
        Classify user intent and the suggested next workflow step.

        Never raises: any failure yields intent "other" with no next step.
        """
        payload: Dict[str, Any] = {"userInput": user_input}
        if search_session_id:
            payload["search_session_id"] = search_session_id

        try:
            body = self._call("POST", "/api/intent", "Intent classification failed", data=payload)
            return self._parse(IntentClassificationResult, body, "Intent classification failed", "/api/intent")
        except BackendError as e:
            logger.error(f"[API] Intent classification error: {e}")
            return IntentClassificationResult.fallback()

    def generate_agent_response(
        self,
        step: str,
        data_context: Dict[str, Any],
        user_message: str,
        intent: Optional[str] = None,
        search_session_id: Optional[str] = None
    ) -> AgentResponse:
        """
        Ask the sales agent to phrase the response for a workflow step.

        Never raises: any failure yields a generic apology with no next step.
        """
        payload: Dict[str, Any] = {
            "step": step,
            "dataContext": data_context,
            "userMessage": user_message,
        }
        if intent:
            payload["intent"] = intent
        if search_session_id:
            payload["search_session_id"] = search_session_id
            logger.info(f"[SESSION_{search_session_id}] Generating agent response for step: {step}")

        try:
            body = self._call("POST", "/api/sales-agent", "Agent response failed", data=payload)
            return self._parse(AgentResponse, body, "Agent response failed", "/api/sales-agent")
        except BackendError as e:
            logger.error(f"[API] LLM agent response error: {e}")
            return AgentResponse(content=AGENT_FALLBACK_CONTENT, next_step=None)

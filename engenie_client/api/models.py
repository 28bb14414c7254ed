# api/models.py
# Pydantic models for Engenie backend responses
#
# Every response body is key-normalized to camelCase before it reaches these
# models, so the aliases are generated with the same camelCase converter.
# Attribute access stays snake_case on the Python side.

from typing import Dict, List, Optional, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .normalization import to_camel_case


class WireModel(BaseModel):
    """Base model: camelCase aliases, snake_case attributes, unknown keys kept"""
    model_config = ConfigDict(
        alias_generator=to_camel_case,
        populate_by_name=True,
        extra="allow",
        protected_namespaces=(),
    )

    def to_wire(self) -> Dict[str, Any]:
        """Dump back to the camelCase shape the backend and UI expect"""
        return self.model_dump(by_alias=True, exclude_none=True)


# ============================================================================
# VALIDATION / SCHEMA
# ============================================================================

class ValidationAlert(WireModel):
    """Alert returned by /validate when mandatory fields are missing"""
    message: str = Field(default="", description="User-facing message listing what is missing")
    missing_fields: List[str] = Field(default_factory=list, description="Missing mandatory field names")


class ValidationResult(WireModel):
    """Result of /validate"""
    product_type: Optional[str] = Field(default=None, description="Detected product type")
    provided_requirements: Dict[str, Any] = Field(default_factory=dict, description="Requirements extracted from input")
    validation_alert: Optional[ValidationAlert] = Field(default=None, description="Present when mandatory fields are missing")
    is_complete: Optional[bool] = Field(default=None, description="Backend completeness flag")

    @field_validator("validation_alert", mode="before")
    @classmethod
    def _coerce_alert(cls, value: Any) -> Any:
        if value in (None, "", False):
            return None
        if isinstance(value, str):
            return {"message": value}
        return value

    @field_validator("provided_requirements", mode="before")
    @classmethod
    def _coerce_requirements(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @property
    def has_alert(self) -> bool:
        return self.validation_alert is not None


class RequirementSchema(WireModel):
    """Product-type scoped schema from /schema"""
    mandatory_requirements: Dict[str, Any] = Field(default_factory=dict, description="Mandatory fields")
    optional_requirements: Dict[str, Any] = Field(default_factory=dict, description="Optional fields")

    def all_keys(self) -> List[str]:
        return list(self.mandatory_requirements.keys()) + list(self.optional_requirements.keys())


class StructuredRequirements(WireModel):
    """Result of /structure_requirements"""
    structured_requirements: Any = Field(default="", description="Human-readable requirements summary")


class AdditionalRequirementsResult(WireModel):
    """Result of /additional_requirements"""
    explanation: str = Field(default="", description="Explanation of the parsed requirements")
    provided_requirements: Dict[str, Any] = Field(default_factory=dict, description="Parsed requirements")


class FieldDescription(WireModel):
    """Result of /get_field_description"""
    description: str = Field(default="", description="Human-readable field description")


# ============================================================================
# INTENT / SALES AGENT
# ============================================================================

class IntentClassificationResult(WireModel):
    """Result of /api/intent"""
    intent: str = Field(default="other", description="greeting | knowledgeQuestion | productRequirements | workflow | chitchat | other")
    next_step: Optional[str] = Field(default=None, description="Backend-suggested workflow step")
    resume_workflow: bool = Field(default=False, description="Whether the workflow should resume after this turn")

    @classmethod
    def fallback(cls) -> "IntentClassificationResult":
        return cls(intent="other", next_step=None, resume_workflow=False)


class AgentResponse(WireModel):
    """Result of /api/sales-agent"""
    content: str = Field(default="", description="Assistant message text")
    next_step: Optional[str] = Field(default=None, description="Backend-decided next step")
    maintain_workflow: Optional[bool] = Field(default=None, description="Whether the workflow position is kept")
    discovered_parameters: Optional[List[Any]] = Field(default=None, description="Advanced parameters found during this turn")

    @field_validator("content", mode="before")
    @classmethod
    def _coerce_content(cls, value: Any) -> Any:
        return "" if value is None else value


# ============================================================================
# ADVANCED PARAMETERS
# ============================================================================

class VendorParametersResult(WireModel):
    """Parameters found for a single vendor"""
    vendor: str = ""
    parameters: List[Any] = Field(default_factory=list)
    source_url: Optional[str] = None


class AdvancedParametersResult(WireModel):
    """Result of /api/advanced_parameters"""
    product_type: Optional[str] = None
    vendor_parameters: List[VendorParametersResult] = Field(default_factory=list)
    unique_parameters: List[Any] = Field(default_factory=list, description="Unique parameter names across vendors")
    total_vendors_searched: int = 0
    total_unique_parameters: int = 0
    fallback: Optional[bool] = None


class AdvancedParametersSelection(WireModel):
    """Result of /api/add_advanced_parameters"""
    selected_parameters: Dict[str, Any] = Field(default_factory=dict, description="Parameter name -> user-supplied value")
    explanation: str = ""
    friendly_response: str = ""
    total_selected: int = 0


# ============================================================================
# ANALYSIS
# ============================================================================

class ProductImage(WireModel):
    """Single product image"""
    url: str = ""
    title: Optional[str] = None
    source: Optional[str] = None
    thumbnail: Optional[str] = None
    domain: Optional[str] = None


class VendorLogo(WireModel):
    """Vendor logo image"""
    url: str = ""
    thumbnail: Optional[str] = None
    source: Optional[str] = None
    title: Optional[str] = None
    domain: Optional[str] = None


class ProductImageFields(WireModel):
    """Post-hoc image enrichment shared by ranked products and vendor matches"""
    image_url: Optional[str] = None
    top_image: Optional[ProductImage] = None
    vendor_logo: Optional[VendorLogo] = None
    all_images: Optional[List[ProductImage]] = None


class ProductMatch(ProductImageFields):
    """Single vendor match from the vendor analysis"""
    vendor: str = ""
    product_name: str = ""
    model_family: Optional[Any] = None
    match_score: Optional[float] = None
    requirements_match: Optional[bool] = None
    reasoning: Optional[str] = None
    limitations: Optional[str] = None


class RankedProduct(ProductImageFields):
    """Single product in the overall ranking"""
    vendor: str = ""
    product_name: str = ""
    product_type: Optional[str] = None
    model_family: Optional[Any] = None
    rank: Optional[int] = None
    overall_score: Optional[float] = None
    requirements_match: Optional[bool] = None
    key_strengths: Optional[Any] = None
    concerns: Optional[Any] = None

    @property
    def key(self) -> tuple:
        return (self.vendor, self.product_name)


class VendorAnalysis(WireModel):
    vendor_matches: List[ProductMatch] = Field(default_factory=list)


class OverallRanking(WireModel):
    ranked_products: List[RankedProduct] = Field(default_factory=list)
    markdown_analysis: Optional[Any] = None


class AnalysisResult(WireModel):
    """Result of /analyze"""
    product_type: Optional[str] = None
    vendor_analysis: VendorAnalysis = Field(default_factory=VendorAnalysis)
    overall_ranking: OverallRanking = Field(default_factory=OverallRanking)

    @field_validator("vendor_analysis", "overall_ranking", mode="before")
    @classmethod
    def _coerce_missing_section(cls, value: Any) -> Any:
        return {} if value is None else value


class AnalysisImageResult(WireModel):
    """Result of /api/get_analysis_product_images"""
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    product_name: Optional[str] = None
    model_families: List[str] = Field(default_factory=list)
    top_image: Optional[ProductImage] = None
    vendor_logo: Optional[VendorLogo] = None
    all_images: List[ProductImage] = Field(default_factory=list)
    total_found: int = 0
    unique_count: int = 0
    best_count: int = 0

    @field_validator("all_images", "model_families", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> Any:
        return [] if value is None else value

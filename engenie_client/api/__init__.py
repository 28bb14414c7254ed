# api/__init__.py
# Engenie backend client and response models

from .client import BackendClient, BackendError, AGENT_FALLBACK_CONTENT
from .models import (
    AdditionalRequirementsResult,
    AdvancedParametersResult,
    AdvancedParametersSelection,
    AgentResponse,
    AnalysisImageResult,
    AnalysisResult,
    FieldDescription,
    IntentClassificationResult,
    OverallRanking,
    ProductImage,
    ProductMatch,
    RankedProduct,
    RequirementSchema,
    StructuredRequirements,
    ValidationAlert,
    ValidationResult,
    VendorAnalysis,
    VendorLogo,
)
from .normalization import convert_keys_to_camel_case, normalize_user_input, to_camel_case

__all__ = [
    'BackendClient',
    'BackendError',
    'AGENT_FALLBACK_CONTENT',
    'AdditionalRequirementsResult',
    'AdvancedParametersResult',
    'AdvancedParametersSelection',
    'AgentResponse',
    'AnalysisImageResult',
    'AnalysisResult',
    'FieldDescription',
    'IntentClassificationResult',
    'OverallRanking',
    'ProductImage',
    'ProductMatch',
    'RankedProduct',
    'RequirementSchema',
    'StructuredRequirements',
    'ValidationAlert',
    'ValidationResult',
    'VendorAnalysis',
    'VendorLogo',
    'convert_keys_to_camel_case',
    'normalize_user_input',
    'to_camel_case',
]

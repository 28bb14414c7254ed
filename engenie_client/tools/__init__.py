# tools/__init__.py
# Pure helpers used by the conversation workflow

from .requirement_tools import (
    compose_user_data_string,
    flatten_requirements,
    merge_requirements_with_schema,
    requirements_only,
    format_missing_fields
)

from .intent_tools import (
    classify_yes_no,
    is_missing_info_confirmation,
    is_missing_info_decline,
    matches_command,
    SUMMARY_PROCEED_COMMANDS,
    RERUN_COMMANDS
)

__all__ = [
    # Requirement Tools
    'compose_user_data_string',
    'flatten_requirements',
    'merge_requirements_with_schema',
    'requirements_only',
    'format_missing_fields',
    # Intent Tools
    'classify_yes_no',
    'is_missing_info_confirmation',
    'is_missing_info_decline',
    'matches_command',
    'SUMMARY_PROCEED_COMMANDS',
    'RERUN_COMMANDS'
]

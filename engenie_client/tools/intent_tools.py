# tools/intent_tools.py
# Short-reply classification used by every workflow step
#
# Free-text yes/no detection lives here only; steps call these helpers
# instead of keeping their own patterns.

import re
from typing import Iterable, Optional

_SHORT_YES_RE = re.compile(r"^\s*(?:yes|y|yeah|yep|sure|ok|okay)[\.\!\?\s]*$", re.IGNORECASE)
_SHORT_NO_RE = re.compile(r"^\s*(?:no|n|nope|skip)[\.\!\?\s]*$", re.IGNORECASE)

# awaitMissingInfo: "skip" means "continue without the missing fields"
_MISSING_INFO_CONFIRM_RE = re.compile(r"^(?:yes|y|skip|proceed|continue)$", re.IGNORECASE)
_MISSING_INFO_DECLINE_RE = re.compile(r"^(?:no|n|nope)$", re.IGNORECASE)

SUMMARY_PROCEED_COMMANDS = ("yes", "proceed", "continue", "run", "analyze", "ok")
RERUN_COMMANDS = ("rerun", "run", "runagain")

YES = "yes"
NO = "no"


def classify_yes_no(user_message: str) -> Optional[str]:
    """
    Detect if user message is a short yes/no reply.

    Args:
        user_message: User's input message

    Returns:
        'yes', 'no', or None
    """
    if not user_message:
        return None
    if _SHORT_YES_RE.match(user_message):
        return YES
    if _SHORT_NO_RE.match(user_message):
        return NO
    return None


def is_missing_info_confirmation(user_message: str) -> bool:
    """User agrees to continue without providing the missing mandatory fields."""
    return bool(_MISSING_INFO_CONFIRM_RE.match(user_message.strip()))


def is_missing_info_decline(user_message: str) -> bool:
    """User wants to provide the missing mandatory fields."""
    return bool(_MISSING_INFO_DECLINE_RE.match(user_message.strip()))


def _compact(user_message: str) -> str:
    return re.sub(r"\s", "", user_message.lower())


def matches_command(user_message: str, commands: Iterable[str], exact: bool = False) -> bool:
    """
    Match a message against command keywords, ignoring case and whitespace.

    Args:
        user_message: User's input message
        commands: Keywords such as "rerun" or "proceed"
        exact: Require the whole message to equal a keyword instead of containing one
    """
    compact = _compact(user_message)
    if exact:
        return compact in commands
    return any(command in compact for command in commands)

"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for potential issues and return warnings.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    # Unknown top-level sections are ignored by the schema
    known_sections = {"api", "ranking", "logging", "service_name"}
    for key in config_dict:
        if key not in known_sections:
            warning_messages.append(f"Unknown configuration section '{key}' will be ignored")

    ranking = config_dict.get("ranking", {})
    if isinstance(ranking, dict):
        max_candidates = ranking.get("max_candidates", 50)
        if isinstance(max_candidates, int) and max_candidates > 200:
            warning_messages.append(
                f"Large ranking.max_candidates ({max_candidates}) may slow down candidate lists"
            )

        if ranking.get("budget_weight") == 0:
            warning_messages.append(
                "ranking.budget_weight is 0: budget no longer influences candidate order"
            )

    api = config_dict.get("api", {})
    if isinstance(api, dict):
        host = api.get("host")
        if isinstance(host, str) and host.strip() == "0.0.0.0":
            warning_messages.append(
                "api.host is 0.0.0.0: the service trusts X-User-Id and must sit behind an "
                "authenticating gateway"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """
    Emit warning messages using Python's warnings module.

    Args:
        warning_messages: List of warning messages to emit
    """
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)

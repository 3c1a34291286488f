"""
Constants for kube-dump.

This module defines the fixed strings and default values used across the
codebase so the CLI, config loader and library agree on them.
"""

# =============================================================================
# kubectl Commands
# =============================================================================

KUBECTL = "kubectl"
LIST_RESOURCES_ARGS = ["api-resources", "--no-headers"]
GET_ALL_NAMESPACES_ARGS = ["get", "--all-namespaces"]
CONTEXT_FLAG = "--context"

# api-resources columns
FIELDS_WITHOUT_SHORTNAMES = 4  # NAME APIVERSION NAMESPACED KIND
FIELDS_WITH_SHORTNAMES = 5     # NAME SHORTNAMES APIVERSION NAMESPACED KIND

# =============================================================================
# Output Layout
# =============================================================================

RESOURCE_LOG_SUFFIX = ".log"
COMBINED_LOG_NAME = "log.txt"
LOG_SEPARATOR = b"\n\n"

# =============================================================================
# Default Configuration Values
# =============================================================================

DEFAULT_OUTPUT_DIR = "resources"
DEFAULT_MAX_WORKERS = 2
DEFAULT_LOG_LEVEL = "INFO"

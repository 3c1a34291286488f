"""
kube-dump shared library.
"""
# Import constants module for easy access
from . import constants
from .config import generate_sample_config, load_config
from .constants import (
    COMBINED_LOG_NAME,
    DEFAULT_MAX_WORKERS,
    DEFAULT_OUTPUT_DIR,
    KUBECTL,
)
from .k8s import (
    KubectlError,
    build_get_command,
    build_list_command,
    fetch_resource,
    list_api_resources,
    parse_api_resources,
)
from .models import CommandOutput, FetchSummary, Resource
from .utils import (
    AggregationError,
    ProgressTracker,
    concatenate_logs,
    fan_out_fetch,
    setup_logging,
)

__all__ = [
    # Constants
    'constants',
    'COMBINED_LOG_NAME',
    'DEFAULT_MAX_WORKERS',
    'DEFAULT_OUTPUT_DIR',
    'KUBECTL',
    # Models
    'Resource',
    'CommandOutput',
    'FetchSummary',
    # kubectl
    'KubectlError',
    'build_list_command',
    'build_get_command',
    'parse_api_resources',
    'list_api_resources',
    'fetch_resource',
    # Utils
    'AggregationError',
    'ProgressTracker',
    'fan_out_fetch',
    'concatenate_logs',
    'setup_logging',
    # Config
    'load_config',
    'generate_sample_config',
]

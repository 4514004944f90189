"""
Common utilities for the netts library.

This module provides shared functionality used across all other modules:
- Exception and warning hierarchy
- ID mapping between event identifiers and NetworkIt integer IDs
- Input validation for event logs and window parameters
- Logging configuration
"""

from .exceptions import (
    NetworkAnalysisError,
    ValidationError,
    DataFormatError,
    GraphConstructionError,
    ConfigurationError,
    MeasureFunctionError,
    ComputationError,
    PermutationRetryError,
    NettsWarning,
    ConfigurationWarning,
    UnsupportedCombinationWarning,
    validate_parameter,
    require_positive
)

from .id_mapper import IDMapper
from .validators import (
    EVENT_COLUMNS,
    validate_event_frame,
    validate_timestamps,
    check_window_parameters
)

from .logging_config import (
    setup_logging,
    get_logger,
    log_function_entry,
    log_performance_metric,
    LoggingTimer,
    JSONFormatter
)

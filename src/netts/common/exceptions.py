"""
Exception and warning hierarchy for the netts library.

This module defines the errors raised while turning an event log into a
series of graph snapshots and measuring them, together with the non-fatal
warnings emitted for recoverable configuration problems.

Fatal conditions (invalid input, unresolvable measure functions, exhausted
permutation retries) raise exceptions derived from ``NetworkAnalysisError``.
Recoverable conditions (an empty window schedule, an unsupported option
combination that is downgraded) emit warnings derived from ``NettsWarning``.
"""

from typing import Dict, Any, Optional, List, Union
import traceback


class NetworkAnalysisError(Exception):
    """
    Base exception for all netts errors.

    Parameters
    ----------
    message : str
        Human-readable error message describing what went wrong
    details : Dict[str, Any], optional
        Additional structured information about the error
    cause : Exception, optional
        The underlying exception that caused this error
    context : Dict[str, Any], optional
        Additional context about the operation that failed

    Examples
    --------
    >>> raise NetworkAnalysisError("Snapshot construction failed")
    >>> raise NetworkAnalysisError(
    ...     "Invalid window",
    ...     details={"window_start": 0, "window_end": 10}
    ... )
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        self.message = message
        self.details = details or {}
        self.cause = cause
        self.context = context or {}

        full_message = message

        if self.details:
            detail_parts = []
            for key, value in self.details.items():
                if isinstance(value, (list, dict)) and len(str(value)) > 100:
                    detail_parts.append(f"{key}=<{type(value).__name__} with {len(value)} items>")
                else:
                    detail_parts.append(f"{key}={value}")

            if detail_parts:
                full_message += f" (Details: {', '.join(detail_parts)})"

        if self.context:
            context_parts = [f"{k}={v}" for k, v in self.context.items()]
            full_message += f" (Context: {', '.join(context_parts)})"

        super().__init__(full_message)

        if cause is not None:
            self.__cause__ = cause

    def add_context(self, **kwargs: Any) -> 'NetworkAnalysisError':
        """
        Add additional context to the exception.

        Returns
        -------
        NetworkAnalysisError
            Self, for method chaining
        """
        self.context.update(kwargs)
        return self

    def get_debug_info(self) -> Dict[str, Any]:
        """Get all available error information as a dictionary."""
        return {
            "exception_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
            "traceback": traceback.format_exc() if hasattr(self, '__traceback__') else None
        }


class ValidationError(NetworkAnalysisError):
    """
    Exception raised when an event log or its columns fail validation.

    Parameters
    ----------
    message : str
        Descriptive error message explaining the validation failure
    field : str, optional
        Name of the column or field that failed validation
    value : Any, optional
        The invalid value that caused the error
    expected : str, optional
        Description of what was expected
    details : Dict[str, Any], optional
        Additional details about the validation failure

    Examples
    --------
    >>> raise ValidationError("Column contains null values", field="source")
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        expected: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> None:
        self.field = field
        self.value = value
        self.expected = expected

        enhanced_details = details or {}
        if field is not None:
            enhanced_details["field"] = field
        if value is not None:
            enhanced_details["invalid_value"] = value
        if expected is not None:
            enhanced_details["expected"] = expected

        if field:
            enhanced_message = f"Validation error in field '{field}': {message}"
        else:
            enhanced_message = f"Validation error: {message}"

        super().__init__(enhanced_message, details=enhanced_details, **kwargs)


class DataFormatError(ValidationError):
    """
    Exception raised when an event log cannot be read or parsed.

    Parameters
    ----------
    message : str
        Description of the format error
    format_type : str, optional
        Expected format (e.g., "CSV", "DataFrame")
    file_path : str, optional
        Path to the problematic file
    """

    def __init__(
        self,
        message: str,
        format_type: Optional[str] = None,
        file_path: Optional[str] = None,
        **kwargs
    ) -> None:
        details = kwargs.get('details', {})

        if format_type:
            details["format_type"] = format_type
        if file_path:
            details["file_path"] = file_path

        kwargs["details"] = details
        super().__init__(message, **kwargs)


class GraphConstructionError(NetworkAnalysisError):
    """
    Exception raised while materializing a graph snapshot from an edge list.

    Parameters
    ----------
    message : str
        Description of the graph construction error
    node_count : int, optional
        Number of nodes in the snapshot when the error occurred
    edge_count : int, optional
        Number of edge records processed when the error occurred
    operation : str, optional
        Specific operation that failed (e.g., "add_edges")

    Examples
    --------
    >>> raise GraphConstructionError(
    ...     "Failed to add edges to graph",
    ...     operation="add_edges",
    ...     edge_count=1500
    ... )
    """

    def __init__(
        self,
        message: str,
        node_count: Optional[int] = None,
        edge_count: Optional[int] = None,
        operation: Optional[str] = None,
        **kwargs
    ) -> None:
        self.node_count = node_count
        self.edge_count = edge_count
        self.operation = operation

        context = kwargs.pop("context", None) or {}
        if node_count is not None:
            context["node_count"] = node_count
        if edge_count is not None:
            context["edge_count"] = edge_count
        if operation:
            context["operation"] = operation

        super().__init__(message, context=context, **kwargs)


class ConfigurationError(NetworkAnalysisError):
    """
    Exception raised for invalid option values or option combinations.

    Parameters
    ----------
    message : str
        Description of the configuration error
    parameter : str, optional
        Name of the problematic parameter
    value : Any, optional
        The invalid parameter value
    valid_options : List[Any], optional
        List of valid options for the parameter
    function : str, optional
        Name of the function where the error occurred

    Examples
    --------
    >>> raise ConfigurationError(
    ...     "Invalid dyad measure",
    ...     parameter="measure",
    ...     value="median",
    ...     valid_options=["weight", "sum", "mean", "proportion", "diff"]
    ... )
    """

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        value: Optional[Any] = None,
        valid_options: Optional[List[Any]] = None,
        function: Optional[str] = None,
        **kwargs
    ) -> None:
        self.parameter = parameter
        self.value = value
        self.valid_options = valid_options
        self.function = function

        details = kwargs.get('details', {})
        if parameter:
            details["parameter"] = parameter
        if value is not None:
            details["invalid_value"] = value
        if valid_options:
            details["valid_options"] = valid_options
        if function:
            details["function"] = function

        enhanced_message = message
        if parameter and valid_options:
            enhanced_message += f". Valid options for '{parameter}': {valid_options}"

        kwargs["details"] = details
        super().__init__(enhanced_message, **kwargs)


class MeasureFunctionError(ConfigurationError):
    """
    Exception raised when the supplied measure function cannot be invoked.

    Raised for a missing measure function, a non-callable object, or the
    name of a built-in measure that does not exist. This aborts the whole
    run rather than returning a partially filled result table.

    Examples
    --------
    >>> raise MeasureFunctionError(
    ...     "Measure function 'degre_mean' was not found",
    ...     parameter="measure_fn",
    ...     value="degre_mean"
    ... )
    """


class ComputationError(NetworkAnalysisError):
    """
    Exception raised when a measurement over a snapshot fails.

    Parameters
    ----------
    message : str
        Description of the computational error
    operation : str, optional
        The computational operation that failed
    window_index : int, optional
        Index of the window whose computation failed
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        window_index: Optional[int] = None,
        **kwargs
    ) -> None:
        self.operation = operation
        self.window_index = window_index

        context = kwargs.pop("context", None) or {}
        if operation:
            context["operation"] = operation
        if window_index is not None:
            context["window_index"] = window_index

        super().__init__(message, context=context, **kwargs)


class PermutationRetryError(ComputationError):
    """
    Exception raised when no self-loop-free swap is found within the retry budget.

    Small or degenerate windows (e.g. two nodes and one edge) can make an
    acceptable swap rare or impossible; the permutation loop gives up after
    ``max_retries`` rejected draws instead of looping indefinitely.

    Parameters
    ----------
    message : str
        Description of the failure
    max_retries : int, optional
        The retry budget that was exhausted
    n_events : int, optional
        Number of events in the window being permuted
    """

    def __init__(
        self,
        message: str,
        max_retries: Optional[int] = None,
        n_events: Optional[int] = None,
        **kwargs
    ) -> None:
        self.max_retries = max_retries
        self.n_events = n_events

        details = kwargs.get('details', {})
        if max_retries is not None:
            details["max_retries"] = max_retries
        if n_events is not None:
            details["n_events"] = n_events

        kwargs["details"] = details
        super().__init__(message, operation="permute_events", **kwargs)


# Non-fatal diagnostics

class NettsWarning(UserWarning):
    """Base class for non-fatal netts diagnostics."""


class ConfigurationWarning(NettsWarning):
    """The window size exceeds the observed time range; no windows are produced."""


class UnsupportedCombinationWarning(NettsWarning):
    """An option combination is not supported and has been downgraded."""


# Convenience functions for common error patterns

def validate_parameter(
    value: Any,
    valid_options: List[Any],
    parameter_name: str,
    function_name: Optional[str] = None
) -> None:
    """
    Validate that a parameter value is in the list of valid options.

    Raises
    ------
    ConfigurationError
        If value is not in valid_options
    """
    if value not in valid_options:
        raise ConfigurationError(
            f"Invalid value for parameter '{parameter_name}': {value}",
            parameter=parameter_name,
            value=value,
            valid_options=valid_options,
            function=function_name
        )


def require_positive(
    value: Union[int, float],
    parameter_name: str,
    allow_zero: bool = False
) -> None:
    """
    Validate that a numeric parameter is positive.

    Parameters
    ----------
    value : Union[int, float]
        The numeric value to validate
    parameter_name : str
        Name of the parameter
    allow_zero : bool, default False
        Whether to allow zero values

    Raises
    ------
    ConfigurationError
        If value is not positive (or non-negative if allow_zero=True)
    """
    if allow_zero and value < 0:
        raise ConfigurationError(
            f"Parameter '{parameter_name}' must be non-negative, got {value}",
            parameter=parameter_name,
            value=value
        )
    elif not allow_zero and value <= 0:
        raise ConfigurationError(
            f"Parameter '{parameter_name}' must be positive, got {value}",
            parameter=parameter_name,
            value=value
        )

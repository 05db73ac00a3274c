"""
PCViz Custom Exception Hierarchy

Provides specific exception types for the co-citation and network pipeline.
None of these are fatal to the service: callers log them and degrade to
absent data or a seed-only graph.
"""

from typing import Optional, Dict, Any, Iterable


class PCVizException(Exception):
    """
    Base exception for all PCViz errors.

    All custom exceptions should inherit from this class.
    This allows catching all PCViz-specific errors with a single except clause.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize exception with message and optional details.

        Args:
            message: Human-readable error message
            details: Additional context (source name, url, gene, etc.)
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        """String representation with details."""
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


# =============================================================================
# Transport Errors
# =============================================================================

class TransportError(PCVizException):
    """
    A fetch from an external source failed.

    Raised for network or IO errors while retrieving a page. The scraper
    treats it as "no data"; the interaction query may retry it.
    """

    def __init__(self, source_name: str, url: str, message: str,
                 details: Optional[Dict[str, Any]] = None):
        """
        Initialize with source information.

        Args:
            source_name: Name of the external source (e.g., "iHOP", "PathwayCommons")
            url: URL that could not be fetched
            message: Error description
            details: Additional context
        """
        details = details or {}
        details.update({'source': source_name, 'url': url})
        super().__init__(message, details)
        self.source_name = source_name
        self.url = url


class TransportTimeoutError(TransportError):
    """
    A fetch exceeded the configured request timeout.

    Handled exactly like any other transport failure.
    """

    def __init__(self, source_name: str, url: str, timeout: float):
        """
        Initialize with timeout information.

        Args:
            source_name: Name of the external source
            url: URL that timed out
            timeout: Timeout threshold in seconds
        """
        message = f"{source_name} request timed out after {timeout}s"
        super().__init__(source_name, url, message, {'timeout_seconds': timeout})
        self.timeout = timeout


# =============================================================================
# Resolution & Query Errors
# =============================================================================

class ResolutionError(PCVizException):
    """
    A gene symbol could not be mapped to a source-internal identifier.

    Expected for unknown or ambiguous symbols.
    """

    def __init__(self, symbol: str, reason: str, candidates: Optional[Iterable[str]] = None):
        """
        Initialize with symbol information.

        Args:
            symbol: The gene symbol that failed to resolve
            reason: Why resolution failed
            candidates: Candidate identifiers that were checked
        """
        details: Dict[str, Any] = {'symbol': symbol, 'reason': reason}
        candidates = list(candidates or [])
        if candidates:
            details['candidates'] = len(candidates)
        super().__init__(f"Cannot resolve internal ID of {symbol}", details)
        self.symbol = symbol
        self.reason = reason
        self.candidates = candidates


class InteractionQueryError(PCVizException):
    """
    The interaction-query collaborator failed or returned unusable data.

    Graph assembly falls back to seed-only disconnected nodes.
    """

    def __init__(self, genes: Iterable[str], kind: str, reason: str,
                 original_error: Optional[Exception] = None):
        """
        Initialize with query information.

        Args:
            genes: Query genes
            kind: Graph query kind (e.g., "neighborhood")
            reason: Error description
            original_error: The underlying exception
        """
        genes = list(genes)
        details: Dict[str, Any] = {'genes': ",".join(genes), 'kind': kind}
        if original_error is not None:
            details['original_error_type'] = type(original_error).__name__
        super().__init__(f"Interaction query failed: {reason}", details)
        self.genes = genes
        self.kind = kind
        self.original_error = original_error


class PrecomputedResultError(PCVizException):
    """
    A precomputed network exists but could not be read or written.
    """

    def __init__(self, key: str, path: str, reason: str):
        """
        Initialize with storage information.

        Args:
            key: Store key (UniProt accession)
            path: File path on disk
            reason: Error description
        """
        super().__init__(f"Problem with precomputed result {key}: {reason}",
                         {'key': key, 'path': path})
        self.key = key
        self.path = path


# =============================================================================
# Data Errors
# =============================================================================

class GraphIntegrityError(PCVizException):
    """
    An edge references a node that is not part of the graph.
    """

    def __init__(self, edge_id: str, missing: Iterable[str]):
        """
        Initialize with edge information.

        Args:
            edge_id: Offending edge identifier
            missing: Endpoint identifiers without a node
        """
        missing = sorted(missing)
        super().__init__(f"Edge {edge_id} references unknown nodes: {', '.join(missing)}",
                         {'edge': edge_id})
        self.edge_id = edge_id
        self.missing = missing


class ConfigurationError(PCVizException):
    """
    Configuration error.

    Raised when configuration is invalid or missing.
    This is NOT retryable - requires fixing configuration.
    """

    def __init__(self, config_key: str, message: str, config_file: Optional[str] = None):
        """
        Initialize with configuration details.

        Args:
            config_key: Configuration key that's problematic
            message: Error description
            config_file: Path to configuration file
        """
        details = {'config_key': config_key}
        if config_file:
            details['config_file'] = config_file

        super().__init__(message, details)
        self.config_key = config_key
        self.config_file = config_file


# =============================================================================
# Helper Functions
# =============================================================================

def is_transient_error(error: Exception) -> bool:
    """
    Determine if an error is transient (retryable).

    Args:
        error: The exception to check

    Returns:
        True if error is likely transient and should be retried
    """
    transient_types = (
        TransportError,
        ConnectionError,
        TimeoutError,
    )
    return isinstance(error, transient_types)


def format_error_for_logging(error: Exception) -> Dict[str, Any]:
    """
    Format exception for structured logging.

    Args:
        error: The exception to format

    Returns:
        Dictionary with error details for logging

    Example:
        >>> logger.warning("Fetch failed", extra={"extra_fields": format_error_for_logging(e)})
    """
    base_info = {
        'error_type': type(error).__name__,
        'error_message': str(error),
        'is_transient': is_transient_error(error)
    }

    if isinstance(error, PCVizException):
        base_info.update(error.details)

    return base_info

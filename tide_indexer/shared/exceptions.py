"""
Exception hierarchy for the Tide indexer.

Exception Categories:
- RetryableException: Transient failures that may succeed on a later pass (explorer, RPC)
- NonRetryableException: Permanent failures that won't benefit from retry (bad data)
- ConfigurationException: Startup/config errors that prevent operation

The indexer never retries inline. A RetryableException degrades the affected
unit (one campaign, one registry collection) and the next scheduled pass is
the retry.
"""


class RetryableException(Exception):
    """
    Base class for exceptions that may succeed on a later pass.

    Use for transient failures like:
    - Explorer timeouts
    - Rate limiting
    - Temporary network issues
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NonRetryableException(Exception):
    """
    Base class for exceptions that won't benefit from retry.

    Use for permanent failures like:
    - Malformed log entries
    - Unexpected API payload shapes
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationException(NonRetryableException):
    """
    Exception for configuration/startup errors.

    Use when:
    - Required environment variables are missing
    - A network outside the supported set is requested
    """

    pass


class APIException(RetryableException):
    """
    Exception for external API failures.

    Raised for HTTP failures and for explorer/registry responses whose
    status is not OK.
    """

    pass


class BlockResolutionError(APIException):
    """Raised when a campaign's start or end block cannot be resolved."""

    pass


class DecodeError(NonRetryableException):
    """Raised when a raw log entry does not match the Transfer event layout."""

    pass


class ParseError(NonRetryableException):
    """
    Exception for payloads that do not match the expected schema.

    Raised at the registry and explorer boundaries so that missing or
    mistyped fields never travel further into the indexer.
    """

    pass

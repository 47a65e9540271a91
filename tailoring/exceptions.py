"""
Tailoring app exceptions

Failures of the AI pipeline, split by how the API reports them.
"""


class TailoringPipelineError(Exception):
    """
    Domain-specific exception for tailoring failures.
    """


class AIQuotaExceeded(TailoringPipelineError):
    """The AI provider refused the call because the account ran out of quota."""


class AIConfigurationError(TailoringPipelineError):
    """The AI provider has no credentials configured or rejected them."""


NOT_CONFIGURED_MESSAGE = 'AI service not configured. Please contact support.'

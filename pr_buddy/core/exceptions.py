# pr_buddy/core/exceptions.py

"""Custom exceptions for PR Buddy"""


class PRBuddyException(Exception):
    """Base exception for all service errors"""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(PRBuddyException):
    """Exception raised when configuration is invalid or missing"""
    pass


class WebhookVerificationError(PRBuddyException):
    """Exception raised when webhook signature verification fails"""
    pass


class PayloadParseError(PRBuddyException):
    """Exception raised when a webhook payload cannot be parsed"""
    pass


class GitHubServiceError(PRBuddyException):
    """Exception raised when GitHub API operations fail"""

    def __init__(self, message: str, status: int = None, details: dict = None):
        self.status = status
        super().__init__(message, details=details)


class GitHubNotFoundError(GitHubServiceError):
    """Exception raised when a requested GitHub resource does not exist"""
    pass


class LLMError(PRBuddyException):
    """Exception raised when LLM operations fail"""
    pass


class AIResponseParseError(LLMError):
    """Exception raised when an LLM response is not a valid review"""

    def __init__(self, message: str, raw_response: str = "", details: dict = None):
        self.raw_response = raw_response
        super().__init__(message, details=details)

"""
Exception hierarchy for the categorizer

StoreError and GatewayError/ParseError carry different policies at their
call sites: store failures always abort the current operation, while LLM
failures abort transfer identification but only skip a batch during
categorization.
"""


class CategorizerError(Exception):
    """Base class for all categorizer errors"""


class ConfigError(CategorizerError):
    """Raised when a configuration value is missing or invalid"""


class StoreError(CategorizerError):
    """Raised when a read or write against the transaction store fails"""


class GatewayError(CategorizerError):
    """Raised when the LLM process fails to start or exits abnormally"""


class ParseError(CategorizerError):
    """
    Raised when an LLM response is not valid JSON matching the expected schema

    Attributes:
        response_text: The raw response that failed to parse
    """

    def __init__(self, message: str, response_text: str = ""):
        self.response_text = response_text
        super().__init__(message)

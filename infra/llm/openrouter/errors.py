class LLMError(Exception):
    """Base class for failures talking to the LLM provider."""


class MalformedResponseError(LLMError):
    """The provider answered, but not with a usable chat completion."""


class MissingAPIKeyError(LLMError):
    """No API key is configured for the provider."""

"""Exceptions raised by the logic layer and mapped to HTTP errors by the routers."""


class RMMError(Exception):
    """An operation was rejected by the store."""


class NotFoundError(RMMError):
    """Referenced entity does not exist."""


class AiUnavailableError(RMMError):
    """AI generation is disabled or no provider is enabled."""


class AiProviderError(RMMError):
    """The AI provider could not be reached or returned an unusable answer."""

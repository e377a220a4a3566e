"""Exceptions raised by registry and weather clients.

None of these escape the public advisor operations; the provider chain and the
registry client catch them at their boundary and fall back.
"""


class ProviderError(Exception):
    """A remote data provider could not supply usable data."""


class ProviderConfigurationError(ProviderError):
    """A provider is missing configuration it needs (e.g. an API key)."""


class MalformedPayloadError(ProviderError):
    """A provider answered, but not in the shape we know how to read."""

"""fake-idp - signed SAML 2.0 Responses for Service Provider integration tests."""

__version__ = "0.1.0"

"""authcode: OAuth2 authorization code grant: provider and client driver."""

__version__ = "0.1.0"

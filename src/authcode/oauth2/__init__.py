# OAuth2 authorization code grant: models, stores, and the authorization server.
# Created: 2026-10-19

# Client driver for the authorization code grant.
# Created: 2026-10-19

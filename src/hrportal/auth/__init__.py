"""Authentication and authorization.

Learn: Users authenticate with email/password and receive a pair of JWTs:
- Access token: short-lived, sent as `Authorization: Bearer ...`
- Refresh token: long-lived, exchanged for a new pair (and rotated)

Password resets use a separate random token whose digest is stored on
the user. The request guard (dependencies.py) resolves the bearer token
to a User and enforces status and password-change staleness.
"""

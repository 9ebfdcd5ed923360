"""HR Portal — human-resources management backend.

This package holds the authentication and session-lifecycle core:
token issuance and rotation, password resets, the request auth guard,
role gating and the account administration endpoints built on them.
"""

__version__ = "0.1.0"

# vidtube/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- db: Database configuration and connection management
- errors: Typed API errors rendered as the standard error envelope
- responses: Success envelope helper
- security: Password hashing and JWT access/refresh tokens
"""

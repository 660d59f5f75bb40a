"""
Services Module

- credential_store: User persistence (lookups, create, restricted saves)
- media: Cloudinary upload/delete and temp upload staging
- session: Access/refresh token issuing and rotation
- accounts: Account operations used by the HTTP routers
"""

"""
Session authentication for the HTTP API.

Responsibilities:
- Seed demo accounts with bcrypt-hashed passwords.
- Resolve the logged-in user from the session and enforce the admin role.
"""

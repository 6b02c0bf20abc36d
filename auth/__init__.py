"""
auth/ -- Authentication, session and authorization package for SessionGuard.

Layer rule: auth/ imports only stdlib + third-party libraries.
It does NOT import from api/ or core/. Configuration arrives through an
AuthContext built by the application assembly (api/main.py).
"""

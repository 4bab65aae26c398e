"""
auth — User authentication module.

Provides:
  • Password hashing (bcrypt, per-call salt, configurable work factor)
  • Signed, time-bounded bearer tokens (HMAC-SHA256)
  • ``UserDirectory`` contract + in-memory implementation
  • ``AuthService`` — register / login / current user
  • ``require_user`` FastAPI dependency
"""

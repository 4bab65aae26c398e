"""HTTP surface beyond the auth routes."""

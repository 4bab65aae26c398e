"""SQLAlchemy persistence for the user directory."""

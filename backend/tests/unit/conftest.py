"""Minimal conftest for unit tests - no database, no app dependencies."""

import os

# Set required env vars before any app imports
os.environ.setdefault("OIDC_ISSUER", "https://issuer.test/")
os.environ.setdefault("OIDC_AUDIENCE", "goaltracker-api")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

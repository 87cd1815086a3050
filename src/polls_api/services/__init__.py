"""
polls_api.services

Core services resolved through the `ServiceLocator`.

Responsibilities:
- Secret hashing, token signing, role resolution and authentication.
- The access pipeline that gates every endpoint.
- Database lifecycle and the user write path.
"""

# Package marker; services are imported directly from submodules.

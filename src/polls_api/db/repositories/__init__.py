"""
polls_api.db.repositories

Thin data-access repositories; business rules live in services.
"""

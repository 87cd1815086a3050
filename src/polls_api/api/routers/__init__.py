"""
polls_api.api.routers

Plain FastAPI routers that sit outside the access pipeline (probes).
"""

"""
polls_api.api

HTTP layer: FastAPI app factory, probes and the uvicorn entrypoint.
"""

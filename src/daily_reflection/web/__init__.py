# ABOUTME: Web frontend package for the daily reflection backend.
# ABOUTME: FastAPI app factory, dependencies, auth helpers and routes.

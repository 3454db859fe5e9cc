"""Core game rules (clock, activity resolution, shop).

Kept free of FastAPI and Redis concerns so it can be reused by API routes, scripts, and tests.
"""

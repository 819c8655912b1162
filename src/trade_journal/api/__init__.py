"""
trade_journal.api

FastAPI application package (app factory, dependencies and routers).
"""

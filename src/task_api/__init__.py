"""
Task API package.

Task persistence (repositories, stores, models), request validation
(schemas) and the FastAPI application (main, routers).
"""

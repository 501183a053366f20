"""
Domain-driven layout

Each area owns schemas (pydantic), a repository (SQLAlchemy queries),
a service (business rules) and a router (FastAPI endpoints).
"""

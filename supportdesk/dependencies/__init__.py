"""FastAPI dependencies: authenticated actor and service lookups."""

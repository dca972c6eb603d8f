"""
Shared, cross-cutting code for the API.

`core/` holds small building blocks that several features use (DB wiring,
settings, errors, slugs, HTML sanitizing, blob storage). Keep feature-specific
SQL and business logic in the corresponding feature package (e.g. `posts/`).
"""

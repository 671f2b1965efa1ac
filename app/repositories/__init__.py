"""Data access layer. Repositories never commit; services own the unit of work."""

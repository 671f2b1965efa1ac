# app/services/__init__.py
"""
Service layer root package.

Each subpackage implements use-cases on top of:

- SQLAlchemy models (app.models.*)
- Repositories (app.repositories.*)
- Pydantic schemas (app.schemas.*)
- Shared service infrastructure (app.services.base.*)

Typical pattern for a service:

    class SomeService(BaseService):
        def some_use_case(self, booking_id: str):
            with self.transaction() as ctx:
                booking = self.bookings.get_for_update(booking_id)
                ...
"""

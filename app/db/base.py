"""SQLAlchemy Base class for all models."""
from app.models.base.base_model import Base


def import_models():
    """Import all models to register them with SQLAlchemy."""
    from app.models.booking import Booking, BookingVerification, VerificationAttempt  # noqa: F401
    from app.models.payment import PayoutAccount  # noqa: F401


# Import models on module load
import_models()

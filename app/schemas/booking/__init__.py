"""
Booking schemas package.

Import schemas from their modules: ``booking_response`` and ``verification``.
"""

from .users.user import User
from .tutors.tutor import Tutor

from .booking.bookings import Booking

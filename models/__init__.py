from .booking_record import Booking_Record
from .pincode_serviceability import Pincode_Serviceability

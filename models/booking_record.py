from sqlalchemy import Column, String, Text

from database import DBBaseClass, DBBase


# One row per order ever sent for booking. The unique order_id is what keeps a
# second booking attempt from reaching the courier.
class Booking_Record(DBBase, DBBaseClass):

    __tablename__ = "booking_record"

    order_id = Column(String(100), nullable=False, unique=True, index=True)
    provider_name = Column(String(50), nullable=False)
    state = Column(String(20), nullable=False)
    booking_type = Column(String(20), nullable=True)
    awb_or_tracking_id = Column(String(100), nullable=True, index=True)
    raw_provider_error = Column(Text, nullable=True)

    def to_dict(self):
        data = super().to_dict()
        data.update(
            {
                "order_id": self.order_id,
                "provider_name": self.provider_name,
                "state": self.state,
                "booking_type": self.booking_type,
                "awb_or_tracking_id": self.awb_or_tracking_id,
                "raw_provider_error": self.raw_provider_error,
            }
        )
        return data

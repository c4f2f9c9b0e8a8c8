from sqlalchemy import Column, String, Boolean

from database import DBBaseClass, DBBase


# Locally maintained serviceability for couriers without a pincode API.
# Columns follow <courier>_fm (first mile, pickup) and <courier>_lm_<mode>
# (last mile delivery per payment mode).
class Pincode_Serviceability(DBBase, DBBaseClass):

    __tablename__ = "pincode_serviceability"

    pincode = Column(String(6), nullable=False, unique=True, index=True)
    bluedart_fm = Column(Boolean, nullable=False, default=False)
    bluedart_lm_prepaid = Column(Boolean, nullable=False, default=False)
    bluedart_lm_cod = Column(Boolean, nullable=False, default=False)

from sqlalchemy import Column, Integer, String
from database import Base


# Represents company contact and identification details
class CompanyInfo(Base):
    __tablename__ = "company_info"

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String, nullable=True)
    address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    zip_code = Column(String, nullable=True)
    country = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    website = Column(String, nullable=True)
    tax_id = Column(String, nullable=True) # Tax Identification Number
    currency = Column(String(3), nullable=True, default="USD")

from sqlalchemy.orm import declarative_base
from sqlalchemy import Column, Integer, String, Text, UniqueConstraint

Base = declarative_base()


class Contact(Base):
    __tablename__ = "contacts"
    __table_args__ = (
        UniqueConstraint("country_code", "phone", name="uq_contacts_country_phone"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    phone = Column(String, nullable=False)         # 6-10 digits, no leading zero
    country_code = Column(String, nullable=False)
    created_at = Column(String, nullable=False)    # server time ISO-8601

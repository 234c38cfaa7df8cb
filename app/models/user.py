from sqlalchemy import Boolean, Column, DateTime, String

from app.database import Base, new_id, utcnow



class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_id)
    email = Column(String, nullable=False, unique=True, index=True)
    full_name = Column(String, nullable=False)
    # empty hash never matches a password check: the account cannot log in
    hashed_password = Column(String, nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from gradevault.db.base_class import Base


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)

    user = relationship("User", back_populates="teacher")
    classes = relationship("SchoolClass", back_populates="teacher", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in [self.first_name, self.last_name] if part)

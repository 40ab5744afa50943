"""
Enrollment model.

WHY: Enrollment is the student <-> class association. The composite primary
key makes a second enrollment of the same student in the same class a
unique-constraint violation.
"""

from sqlalchemy import Column, String, ForeignKey, Integer
from sqlalchemy.orm import relationship

from classroom.models.base import Base, TimestampMixin


class Enrollment(Base, TimestampMixin):
    """Student enrolled in a class."""

    __tablename__ = "enrollments"

    student_id = Column(
        String(32),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    class_id = Column(
        Integer,
        ForeignKey("classes.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    student = relationship("User", back_populates="enrollments")
    class_ = relationship("Class", back_populates="enrollments")

    def __repr__(self) -> str:
        return f"<Enrollment(student_id={self.student_id}, class_id={self.class_id})>"

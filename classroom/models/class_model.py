"""
Class model.

WHY: A class is a concrete offering of a subject, taught by one teacher,
with a bounded number of enrolled students.
"""

import enum
from sqlalchemy import Column, String, Text, ForeignKey, Integer, Enum, JSON, CheckConstraint
from sqlalchemy.orm import relationship

from classroom.models.base import Base, TimestampMixin, PrimaryKeyMixin, enum_values


DEFAULT_CLASS_CAPACITY = 50


class ClassStatus(str, enum.Enum):
    """Class lifecycle status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class Class(Base, PrimaryKeyMixin, TimestampMixin):
    """
    Class offering.

    WHY: invite_code is globally unique so students can join a class
    without knowing its id. capacity bounds the number of enrollments;
    the bound is enforced by EnrollmentService under a row lock.
    """

    __tablename__ = "classes"
    __table_args__ = (
        CheckConstraint("capacity > 0", name="class_capacity_positive"),
    )

    subject_id = Column(
        Integer,
        ForeignKey("subjects.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    teacher_id = Column(
        String(32),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    organization_id = Column(
        String(32),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    invite_code = Column(String(16), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    banner_url = Column(Text, nullable=True)
    banner_cld_pub_id = Column(String(255), nullable=True)
    capacity = Column(Integer, nullable=False, default=DEFAULT_CLASS_CAPACITY)
    status = Column(
        Enum(ClassStatus, name="class_status", values_callable=enum_values),
        nullable=False,
        default=ClassStatus.ACTIVE,
    )
    schedules = Column(JSON, nullable=False, default=list)

    subject = relationship("Subject", back_populates="classes")
    teacher = relationship("User", back_populates="taught_classes")
    organization = relationship("Organization", back_populates="classes")
    enrollments = relationship("Enrollment", back_populates="class_", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Class(id={self.id}, name={self.name})>"

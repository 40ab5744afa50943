"""
Subject model.

WHY: Subjects belong to a department and are the parent of classes.
"""

from sqlalchemy import Column, String, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from classroom.models.base import Base, TimestampMixin, PrimaryKeyMixin


class Subject(Base, PrimaryKeyMixin, TimestampMixin):
    """
    Subject taught within a department.

    WHY: department_id uses RESTRICT so a department cannot be deleted while
    subjects still reference it. organization_id is duplicated from the
    department so tenant filters never need a join; the policy checks both
    agree whenever the department is looked up.
    """

    __tablename__ = "subjects"
    __table_args__ = (
        UniqueConstraint("code", "organization_id", name="subject_code_org_unique"),
    )

    department_id = Column(
        Integer,
        ForeignKey("departments.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    organization_id = Column(
        String(32),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    code = Column(String(50), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(String(255), nullable=True)

    department = relationship("Department", back_populates="subjects")
    organization = relationship("Organization", back_populates="subjects")
    classes = relationship("Class", back_populates="subject", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Subject(id={self.id}, code={self.code})>"

"""
Task and tag models
"""
import enum
import uuid
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Table, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from zest_tasks.database import Base


class TaskPriority(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


def _enum_values(enum_cls):
    # Store "in-progress", not "IN_PROGRESS"
    return [member.value for member in enum_cls]


task_tags = Table(
    "task_tags",
    Base.metadata,
    Column("task_id", String(36), ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", String(36), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(Base):
    __tablename__ = "tags"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class Task(Base):
    """A user-owned unit of work"""
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    workflow_id = Column(String(36), ForeignKey("workflows.id", ondelete="SET NULL"), nullable=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(DateTime, nullable=True)
    priority = Column(
        SQLEnum(TaskPriority, native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=TaskPriority.MEDIUM,
    )
    status = Column(
        SQLEnum(TaskStatus, native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=TaskStatus.PENDING,
    )
    completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="tasks")
    workflow = relationship("Workflow", back_populates="tasks")
    tags = relationship("Tag", secondary=task_tags, order_by="Tag.name")

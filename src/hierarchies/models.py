from enum import Enum
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy import Enum as SAEnum
from src.database import Base
from src.shared.models import AuditMixin, CreatedAtMixin, JSONType, UUIDMixin


class HierarchyStatus(str, Enum):
    IN_DRAFT = "in-draft"
    APPROVED = "approved"
    ARCHIVED = "archived"


LIVE_STATUSES = (HierarchyStatus.IN_DRAFT, HierarchyStatus.APPROVED)


class HierarchyMetadata(Base, UUIDMixin, CreatedAtMixin):
    """One version of one hierarchy submission."""
    __tablename__ = "hierarchy_metadata"

    # Identity payload: {"company": ..., "location": ..., ...}
    user_input = Column(JSONType, nullable=False)
    project_name = Column(String, nullable=False)

    version = Column(String, nullable=False)
    version_number = Column(Integer, nullable=False, default=0)
    status = Column(
        SAEnum(
            HierarchyStatus,
            name="hierarchy_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        default=HierarchyStatus.IN_DRAFT,
        nullable=False,
    )
    is_active_draft = Column(Boolean, default=True, nullable=False)

    # Null on the chain root, the root's id on every descendant
    root_hierarchy_id = Column(Uuid(as_uuid=True), ForeignKey("hierarchy_metadata.id"), nullable=True, index=True)
    user_feedback = Column(JSONType, nullable=True)

    has_ma_update = Column(Boolean, default=False, nullable=False)
    last_ma_checked = Column(DateTime, nullable=True)

    @property
    def company(self):
        return (self.user_input or {}).get("company")

    @property
    def location(self):
        return (self.user_input or {}).get("location")


class HierarchyData(Base, AuditMixin):
    """A snapshot of the hierarchy payload owned by a metadata record."""
    __tablename__ = "hierarchy_data"

    metadata_id = Column(ForeignKey("hierarchy_metadata.id"), nullable=False, index=True)
    data = Column(JSONType, nullable=False)

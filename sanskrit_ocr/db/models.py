from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.dialects.sqlite import JSON as SQLITE_JSON
from sqlalchemy.orm import Mapped, mapped_column

from sanskrit_ocr.db.session import Base


class ProgressSnapshot(Base):
	__tablename__ = "progress_snapshots"

	session_id: Mapped[str] = mapped_column(String(36), primary_key=True)
	stage: Mapped[str] = mapped_column(String(64), nullable=False)
	current: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
	total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
	message: Mapped[str] = mapped_column(Text, nullable=False, default="")
	complete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
	results: Mapped[list] = mapped_column(SQLITE_JSON().with_variant(JSON, "postgresql"), nullable=False, default=list)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)

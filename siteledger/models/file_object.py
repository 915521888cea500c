"""
SiteLedger
Uploaded file registry.

A FileObject row is created when a client finalizes an upload it pushed
to object storage through a presigned URL. The object key encodes the
owning company (and project) and is validated before any row is written.
"""

from siteledger.models import db
from siteledger.models.base import TenantModel
from siteledger.models.soft_delete import SoftDeleteMixin


class FileObject(SoftDeleteMixin, TenantModel):
    __tablename__ = "file_objects"

    project_id = db.Column(
        db.String(36), db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=True
    )
    bucket = db.Column(db.String(255), nullable=False)
    object_key = db.Column(db.String(1024), nullable=False)
    original_filename = db.Column(db.String(255), nullable=False)
    mime_type = db.Column(db.String(255), nullable=False)
    size_bytes = db.Column(db.BigInteger, nullable=False)
    uploaded_by_user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        db.UniqueConstraint(
            "bucket", "object_key", "company_id", name="uq_file_objects_bucket_key_company"
        ),
        db.Index("ix_file_objects_project_id", "project_id"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "company_id": self.company_id,
            "project_id": self.project_id,
            "bucket": self.bucket,
            "object_key": self.object_key,
            "original_filename": self.original_filename,
            "mime_type": self.mime_type,
            "size_bytes": self.size_bytes,
            "uploaded_by_user_id": self.uploaded_by_user_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

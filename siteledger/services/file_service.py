"""File service: presign, finalize, list, download, rename and delete.

Upload flow:
    1. presign_upload   → server builds the object key, returns a PUT URL
    2. client PUTs the bytes straight to object storage
    3. finalize_upload  → server validates the key prefix and registers a
                          FileObject; finalize is idempotent per key

The key prefix check in finalize runs before anything touches the
database, so a forged key is rejected even for a project the caller
cannot see.
"""

from __future__ import annotations

import logging

from flask import current_app
from sqlalchemy import select

from siteledger.core.errors import ServiceError
from siteledger.models import db
from siteledger.models.file_object import FileObject
from siteledger.models.project import Project
from siteledger.security import policies
from siteledger.security.membership import authorize_project_access, is_member
from siteledger.security.types import Actor
from siteledger.services import audit_service, storage_service
from siteledger.services.daily_report_service import attachment_count
from siteledger.services.helpers.scoped_queries import get_scoped_or_none
from siteledger.services.idempotent import IdempotentOutcome, get_or_create
from siteledger.services.object_keys import build_object_key, validate_object_key

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 52428800  # 50 MB


def _max_upload_bytes() -> int:
    return current_app.config.get("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)


def _validate_item(item: dict) -> ServiceError | None:
    """Check one (original_filename, mime_type, size_bytes) triple."""
    if not str(item.get("original_filename") or "").strip():
        return ServiceError.bad_request("original_filename is required")
    if not str(item.get("mime_type") or "").strip():
        return ServiceError.bad_request("mime_type is required")
    size = item.get("size_bytes")
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        return ServiceError.bad_request("size_bytes must be a positive integer")
    if size > _max_upload_bytes():
        return ServiceError.bad_request(f"size_bytes must not exceed {_max_upload_bytes()}")
    return None


def _check_file_access(actor: Actor, file_object: FileObject) -> ServiceError | None:
    """Project files require membership; company-level files are open to the company."""
    if file_object.project_id is not None and not is_member(
        actor.company_id, file_object.project_id, actor.user_id
    ):
        return ServiceError.forbidden("Not a project member")
    return None


def content_disposition(filename: str) -> str:
    escaped = filename.replace("\\", "\\\\").replace('"', '\\"')
    return f'attachment; filename="{escaped}"'


# ── Presign / finalize ───────────────────────────────────────────────────────


def presign_upload(actor: Actor, data: dict):
    """Return upload URL(s) and server-generated object key(s).

    Single form: ``original_filename``, ``mime_type``, ``size_bytes``.
    Batch form:  ``files`` list of the same, requires ``project_id``.
    """
    project_id = data.get("project_id") or None
    if project_id is not None:
        decision = authorize_project_access(actor, project_id)
        if not decision.allowed:
            return None, decision.error

    signer = storage_service.get_signer()
    expires = storage_service.upload_expires()
    files = data.get("files")

    if files:
        if not isinstance(files, list):
            return None, ServiceError.bad_request("files must be a list")
        if project_id is None:
            return None, ServiceError.bad_request("Batch presign requires project_id")
        for item in files:
            if not isinstance(item, dict):
                return None, ServiceError.bad_request("files entries must be objects")
            err = _validate_item(item)
            if err:
                return None, err
        items = []
        for item in files:
            key = build_object_key(actor.company_id, project_id)
            items.append({
                "upload_url": signer.presign_upload(key, item["mime_type"], expires),
                "object_key": key,
                "original_filename": item["original_filename"],
            })
        return {"items": items}, None

    if not data.get("original_filename") or not data.get("mime_type") or not data.get("size_bytes"):
        return None, ServiceError.bad_request(
            "Single file request requires original_filename, mime_type, and size_bytes"
        )
    err = _validate_item(data)
    if err:
        return None, err

    key = build_object_key(actor.company_id, project_id)
    return {
        "upload_url": signer.presign_upload(key, data["mime_type"], expires),
        "object_key": key,
        "expires_in": expires,
    }, None


def find_file_by_key(company_id: str, bucket: str, object_key: str) -> FileObject | None:
    stmt = select(FileObject).where(
        FileObject.bucket == bucket,
        FileObject.object_key == object_key,
        FileObject.company_id == company_id,
    )
    return db.session.execute(stmt).scalar_one_or_none()


def finalize_upload(actor: Actor, data: dict) -> tuple[IdempotentOutcome | None, ServiceError | None]:
    """Register an uploaded object. Finalizing the same key twice returns the same row."""
    project_id = data.get("project_id") or None
    object_key = str(data.get("object_key") or "")

    if not validate_object_key(object_key, actor.company_id, project_id):
        logger.warning(
            "Finalize rejected, bad key prefix: company=%s user=%s project=%s",
            actor.company_id, actor.user_id, project_id,
        )
        return None, ServiceError.bad_request("Invalid object_key prefix")

    if project_id is not None:
        decision = authorize_project_access(actor, project_id)
        if not decision.allowed:
            return None, decision.error

    err = _validate_item(data)
    if err:
        return None, err

    bucket = storage_service.get_bucket()
    original_filename = str(data["original_filename"]).strip()

    def _audit(file_object: FileObject) -> None:
        audit_service.record(
            company_id=actor.company_id,
            actor_user_id=actor.user_id,
            entity_type="FILE_OBJECT",
            entity_id=file_object.id,
            action="UPLOADED",
            project_id=project_id,
            metadata={"projectId": project_id, "originalFilename": original_filename},
        )

    return get_or_create(
        label="file_object.finalize",
        lookup=lambda: find_file_by_key(actor.company_id, bucket, object_key),
        build=lambda: FileObject(
            company_id=actor.company_id,
            project_id=project_id,
            bucket=bucket,
            object_key=object_key,
            original_filename=original_filename,
            mime_type=str(data["mime_type"]).strip(),
            size_bytes=data["size_bytes"],
            uploaded_by_user_id=actor.user_id,
        ),
        on_created=_audit,
    )


# ── Listing ──────────────────────────────────────────────────────────────────


def list_project_files(actor: Actor, project_id: str):
    decision = authorize_project_access(actor, project_id)
    if not decision.allowed:
        return None, decision.error
    stmt = (
        select(FileObject)
        .where(
            FileObject.company_id == actor.company_id,
            FileObject.project_id == project_id,
            FileObject.deleted_at.is_(None),
        )
        .order_by(FileObject.created_at.desc())
    )
    return list(db.session.execute(stmt).scalars()), None


def list_company_files(actor: Actor) -> list[dict]:
    """All live files of the company, with the owning project's name when there is one."""
    stmt = (
        select(FileObject, Project.name)
        .outerjoin(
            Project,
            (Project.id == FileObject.project_id) & (Project.company_id == actor.company_id),
        )
        .where(FileObject.company_id == actor.company_id, FileObject.deleted_at.is_(None))
        .order_by(FileObject.created_at.desc())
    )
    rows = db.session.execute(stmt).all()
    result = []
    for file_object, project_name in rows:
        d = file_object.to_dict()
        d["project_name"] = project_name
        result.append(d)
    return result


# ── Single-file operations ───────────────────────────────────────────────────


def get_download_url(actor: Actor, file_object_id: str, *, preview: bool = False):
    file_object = get_scoped_or_none(FileObject, file_object_id, company_id=actor.company_id)
    if file_object is None:
        return None, ServiceError.not_found("File not found")
    err = _check_file_access(actor, file_object)
    if err:
        return None, err

    signer = storage_service.get_signer()
    expires = storage_service.download_expires()
    # Preview URLs skip Content-Disposition so the signature does not depend on the filename
    disposition = None if preview else content_disposition(file_object.original_filename)
    url = signer.presign_download(file_object.object_key, expires, disposition)
    return {"url": url, "expires_in": expires}, None


def rename_file(actor: Actor, file_object_id: str, new_name: str):
    file_object = get_scoped_or_none(FileObject, file_object_id, company_id=actor.company_id)
    if file_object is None:
        return None, ServiceError.not_found("File not found")
    err = _check_file_access(actor, file_object)
    if err:
        return None, err

    new_name = str(new_name or "").strip()
    if not new_name:
        return None, ServiceError.bad_request("File name is required")

    previous_name = file_object.original_filename
    file_object.original_filename = new_name
    db.session.commit()

    signer = storage_service.get_signer()
    # LocalStack rejects copy-to-self; only real S3 gets the metadata update
    if not getattr(signer, "endpoint_url", None):
        try:
            signer.set_content_disposition(
                file_object.object_key, content_disposition(new_name), file_object.mime_type
            )
        except Exception:
            logger.exception("Could not update object metadata for file %s", file_object.id)

    audit_service.record(
        company_id=actor.company_id,
        actor_user_id=actor.user_id,
        entity_type="FILE_OBJECT",
        entity_id=file_object.id,
        action="RENAMED",
        project_id=file_object.project_id,
        metadata={"previousName": previous_name, "newName": new_name},
    )
    return file_object, None


def delete_file(actor: Actor, file_object_id: str):
    file_object = get_scoped_or_none(FileObject, file_object_id, company_id=actor.company_id)
    if file_object is None:
        return None, ServiceError.not_found("File not found")
    if not policies.can_delete_file(actor):
        return None, ServiceError.forbidden("Only OWNER can delete files")
    if attachment_count(actor.company_id, file_object.id) > 0:
        return None, ServiceError.conflict(
            "File is attached to one or more daily reports and cannot be deleted"
        )

    file_object.soft_delete()
    db.session.commit()

    audit_service.record(
        company_id=actor.company_id,
        actor_user_id=actor.user_id,
        entity_type="FILE_OBJECT",
        entity_id=file_object.id,
        action="DELETED",
        project_id=file_object.project_id,
    )
    return True, None

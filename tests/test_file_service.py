"""
File service: presign → finalize, downloads, rename and delete.

The object signer is the FakeSigner from conftest; no network is touched.
"""

from datetime import date

import pytest

from siteledger.core.errors import ErrorKind
from siteledger.models import db
from siteledger.models.audit import AuditEvent
from siteledger.models.file_object import FileObject
from siteledger.security.types import Actor
from siteledger.services import audit_service, daily_report_service, file_service
from siteledger.services.object_keys import build_object_key, expected_prefix

PHOTO = {"original_filename": "slab.jpg", "mime_type": "image/jpeg", "size_bytes": 2048}


def _uploaded(seed, actor=None, name="slab.jpg"):
    actor = actor or seed.member_a_actor
    presigned, err = file_service.presign_upload(
        actor, {**PHOTO, "original_filename": name, "project_id": seed.project_a_id}
    )
    assert err is None
    outcome, err = file_service.finalize_upload(actor, {
        **PHOTO,
        "original_filename": name,
        "project_id": seed.project_a_id,
        "object_key": presigned["object_key"],
    })
    assert err is None
    return outcome.record


# ── Presign ──────────────────────────────────────────────────────────────────


class TestPresign:
    def test_single_project_file(self, seed, signer):
        result, err = file_service.presign_upload(
            seed.member_a_actor, {**PHOTO, "project_id": seed.project_a_id}
        )
        assert err is None
        assert result["object_key"].startswith(
            expected_prefix(seed.company_a_id, seed.project_a_id)
        )
        assert result["expires_in"] == 300
        assert result["upload_url"].startswith("https://s3.test/siteledger-test/")
        assert signer.calls[-1][0] == "put"
        assert signer.calls[-1][2] == "image/jpeg"

    def test_company_level_file(self, seed):
        result, err = file_service.presign_upload(seed.outsider_a_actor, dict(PHOTO))
        assert err is None
        assert result["object_key"].startswith(f"companies/{seed.company_a_id}/files/")

    def test_filename_never_enters_key(self, seed):
        result, _ = file_service.presign_upload(
            seed.member_a_actor,
            {**PHOTO, "original_filename": "../../etc/passwd", "project_id": seed.project_a_id},
        )
        assert "passwd" not in result["object_key"]
        assert ".." not in result["object_key"]

    def test_batch_requires_project(self, seed):
        _, err = file_service.presign_upload(seed.member_a_actor, {"files": [PHOTO, PHOTO]})
        assert err.kind == ErrorKind.BAD_REQUEST
        assert err.message == "Batch presign requires project_id"

    def test_batch_returns_distinct_keys(self, seed):
        result, err = file_service.presign_upload(
            seed.member_a_actor, {"project_id": seed.project_a_id, "files": [PHOTO, PHOTO]}
        )
        assert err is None
        keys = [item["object_key"] for item in result["items"]]
        assert len(set(keys)) == 2

    @pytest.mark.parametrize("override", [
        {"size_bytes": 0},
        {"size_bytes": 52428801},
        {"size_bytes": "big"},
        {"mime_type": ""},
    ])
    def test_invalid_single_request(self, seed, override):
        _, err = file_service.presign_upload(
            seed.member_a_actor, {**PHOTO, **override, "project_id": seed.project_a_id}
        )
        assert err.kind == ErrorKind.BAD_REQUEST

    def test_non_member_cannot_presign_for_project(self, seed, signer):
        _, err = file_service.presign_upload(
            seed.outsider_a_actor, {**PHOTO, "project_id": seed.project_a_id}
        )
        assert err.kind == ErrorKind.FORBIDDEN
        assert signer.calls == []


# ── Finalize ─────────────────────────────────────────────────────────────────


class TestFinalize:
    def test_finalize_twice_returns_same_row_and_one_audit(self, seed):
        key = build_object_key(seed.company_a_id, seed.project_a_id)
        payload = {**PHOTO, "project_id": seed.project_a_id, "object_key": key}

        first, err = file_service.finalize_upload(seed.member_a_actor, payload)
        assert err is None and first.created is True
        second, err = file_service.finalize_upload(seed.member_a_actor, payload)
        assert err is None and second.created is False

        assert second.record.id == first.record.id
        assert FileObject.query.count() == 1
        assert AuditEvent.query.filter_by(entity_type="FILE_OBJECT", action="UPLOADED").count() == 1
        assert first.record.bucket == "siteledger-test"

    def test_failed_audit_write_keeps_registered_file(self, seed, monkeypatch):
        def broken_event(**kwargs):
            raise RuntimeError("audit store unavailable")

        monkeypatch.setattr(audit_service, "AuditEvent", broken_event)
        key = build_object_key(seed.company_a_id, seed.project_a_id)
        payload = {**PHOTO, "project_id": seed.project_a_id, "object_key": key}

        first, err = file_service.finalize_upload(seed.member_a_actor, payload)
        assert err is None and first.created is True
        file_id = first.record.id
        assert db.session.get(FileObject, file_id) is not None

        second, err = file_service.finalize_upload(seed.member_a_actor, payload)
        assert err is None and second.created is False
        assert second.record.id == file_id
        assert AuditEvent.query.count() == 0

    def test_other_company_prefix_rejected_before_lookup(self, seed, monkeypatch):
        def must_not_run(*args):
            raise AssertionError("lookup ran for a forged key")

        monkeypatch.setattr(file_service, "find_file_by_key", must_not_run)
        forged = build_object_key(seed.company_b_id, seed.project_b_id)
        _, err = file_service.finalize_upload(
            seed.member_a_actor, {**PHOTO, "project_id": seed.project_a_id, "object_key": forged}
        )
        assert err.kind == ErrorKind.BAD_REQUEST
        assert err.message == "Invalid object_key prefix"
        assert FileObject.query.count() == 0

    @pytest.mark.parametrize("suffix", ["", "a/b", ".."])
    def test_malformed_key_tail_rejected(self, seed, suffix):
        key = expected_prefix(seed.company_a_id, seed.project_a_id) + suffix
        _, err = file_service.finalize_upload(
            seed.member_a_actor, {**PHOTO, "project_id": seed.project_a_id, "object_key": key}
        )
        assert err.kind == ErrorKind.BAD_REQUEST

    def test_project_key_is_not_a_company_key(self, seed):
        key = build_object_key(seed.company_a_id, seed.project_a_id)
        _, err = file_service.finalize_upload(seed.member_a_actor, {**PHOTO, "object_key": key})
        assert err.kind == ErrorKind.BAD_REQUEST

    def test_non_member_cannot_finalize_project_key(self, seed):
        key = build_object_key(seed.company_a_id, seed.project_a_id)
        _, err = file_service.finalize_upload(
            seed.outsider_a_actor, {**PHOTO, "project_id": seed.project_a_id, "object_key": key}
        )
        assert err.kind == ErrorKind.FORBIDDEN


# ── Listing & downloads ──────────────────────────────────────────────────────


class TestListAndDownload:
    def test_project_listing_and_company_listing(self, seed):
        f = _uploaded(seed)
        files, err = file_service.list_project_files(seed.member_a_actor, seed.project_a_id)
        assert err is None
        assert [x.id for x in files] == [f.id]

        rows = file_service.list_company_files(seed.owner_a_actor)
        assert rows[0]["id"] == f.id
        assert rows[0]["project_name"] == "Site A-100"
        assert file_service.list_company_files(seed.owner_b_actor) == []

    def test_download_sets_attachment_disposition(self, seed, signer):
        f = _uploaded(seed, name='site "north" \\ view.jpg')
        result, err = file_service.get_download_url(seed.member_a_actor, f.id)
        assert err is None
        assert result["expires_in"] == 3600
        op, key, disposition, _ = signer.calls[-1]
        assert op == "get" and key == f.object_key
        assert disposition == 'attachment; filename="site \\"north\\" \\\\ view.jpg"'

    def test_preview_omits_disposition(self, seed, signer):
        f = _uploaded(seed)
        file_service.get_download_url(seed.member_a_actor, f.id, preview=True)
        assert signer.calls[-1][2] is None

    def test_download_isolation(self, seed):
        f = _uploaded(seed)
        _, err = file_service.get_download_url(seed.owner_b_actor, f.id)
        assert err.kind == ErrorKind.NOT_FOUND
        _, err = file_service.get_download_url(seed.outsider_a_actor, f.id)
        assert err.kind == ErrorKind.FORBIDDEN


# ── Rename & delete ──────────────────────────────────────────────────────────


class TestRenameAndDelete:
    def test_rename_updates_name_and_object_metadata(self, seed, signer):
        f = _uploaded(seed)
        renamed, err = file_service.rename_file(seed.member_a_actor, f.id, "  pour-day.jpg ")
        assert err is None
        assert renamed.original_filename == "pour-day.jpg"
        assert signer.calls[-1] == (
            "copy", f.object_key, 'attachment; filename="pour-day.jpg"', "image/jpeg"
        )
        event = AuditEvent.query.filter_by(action="RENAMED").one()
        assert event.event_metadata == {"previousName": "slab.jpg", "newName": "pour-day.jpg"}

    def test_rename_skips_copy_on_custom_endpoint(self, seed, signer):
        signer.endpoint_url = "http://localstack:4566"
        f = _uploaded(seed)
        file_service.rename_file(seed.member_a_actor, f.id, "new.jpg")
        assert not any(call[0] == "copy" for call in signer.calls)

    def test_rename_survives_storage_failure(self, seed, signer, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("storage down")

        monkeypatch.setattr(signer, "set_content_disposition", boom)
        f = _uploaded(seed)
        renamed, err = file_service.rename_file(seed.member_a_actor, f.id, "new.jpg")
        assert err is None
        assert renamed.original_filename == "new.jpg"

    def test_rename_requires_name(self, seed):
        f = _uploaded(seed)
        _, err = file_service.rename_file(seed.member_a_actor, f.id, "   ")
        assert err.kind == ErrorKind.BAD_REQUEST
        assert err.message == "File name is required"

    def test_delete_by_other_company_member_is_not_found(self, seed, make_user):
        f = _uploaded(seed)
        member_b = Actor.from_user(make_user(seed.company_b_id))
        _, err = file_service.delete_file(member_b, f.id)
        assert err.kind == ErrorKind.NOT_FOUND
        assert db.session.get(FileObject, f.id).deleted_at is None

    def test_delete_is_owner_only(self, seed):
        f = _uploaded(seed)
        _, err = file_service.delete_file(seed.member_a_actor, f.id)
        assert err.kind == ErrorKind.FORBIDDEN

    def test_delete_soft_deletes(self, seed):
        f = _uploaded(seed)
        ok, err = file_service.delete_file(seed.owner_a_actor, f.id)
        assert err is None and ok is True
        assert db.session.get(FileObject, f.id).deleted_at is not None
        files, _ = file_service.list_project_files(seed.member_a_actor, seed.project_a_id)
        assert files == []
        _, err = file_service.get_download_url(seed.member_a_actor, f.id)
        assert err.kind == ErrorKind.NOT_FOUND

    def test_attached_file_cannot_be_deleted(self, seed):
        f = _uploaded(seed)
        outcome, _ = daily_report_service.create_or_get_draft(
            seed.member_a_actor, seed.project_a_id, date(2026, 1, 29)
        )
        daily_report_service.attach_file(seed.member_a_actor, outcome.record.id, f.id)

        _, err = file_service.delete_file(seed.owner_a_actor, f.id)
        assert err.kind == ErrorKind.CONFLICT
        assert db.session.get(FileObject, f.id).deleted_at is None

"""
Documents API: upload, download, replace, metadata update and deletion,
with the database row and the file on disk kept in step.
"""
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from conftest import TestSessionLocal, create_program, upload
from gradtracker.documents.storage import DocumentStore
from gradtracker.errors import StorageError
from gradtracker.models.document import Document


def _files(upload_dir: Path) -> list[Path]:
    return sorted(p.resolve() for p in upload_dir.rglob("*") if p.is_file())


def _document_rows() -> int:
    with TestSessionLocal() as session:
        return session.query(Document).count()


class TestUpload:
    def test_upload_stores_file_and_row(self, client, alice, upload_dir):
        resp = upload(client, alice, name="Statement of Purpose.pdf", content=b"%PDF sop", doc_type="SOP")
        assert resp.status_code == 201, resp.text
        doc = resp.json()

        assert doc["user_id"] == alice["id"]
        assert doc["file_name"] == "Statement of Purpose.pdf"
        assert doc["doc_type"] == "SOP"
        path = Path(doc["file_path"])
        assert path.read_bytes() == b"%PDF sop"
        assert path.parent == (upload_dir / str(alice["id"])).resolve()
        assert path.name.endswith("_Statement of Purpose.pdf")

    def test_same_name_twice_gets_distinct_paths(self, client, alice):
        first = upload(client, alice).json()
        second = upload(client, alice).json()
        assert first["file_path"] != second["file_path"]

    def test_disallowed_type_leaves_no_trace(self, client, alice, upload_dir):
        resp = upload(client, alice, name="virus.exe", content=b"MZ")
        assert resp.status_code == 400
        assert "not allowed" in resp.json()["detail"]
        assert _files(upload_dir) == []
        assert _document_rows() == 0

    def test_empty_file_is_rejected(self, client, alice, upload_dir):
        resp = upload(client, alice, content=b"")
        assert resp.status_code == 400
        assert _files(upload_dir) == []

    def test_upload_for_another_user_is_forbidden(self, client, alice, bob, upload_dir):
        resp = client.post(
            f"/api/users/{bob['id']}/documents",
            headers=alice["headers"],
            files={"file": ("cv.pdf", b"data", "application/pdf")},
            data={"doc_type": "CV"},
        )
        assert resp.status_code == 403
        assert _files(upload_dir) == []

    def test_commit_failure_leaves_no_file(self, app, alice, upload_dir, monkeypatch):
        def failing_commit(self):
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        monkeypatch.setattr(Session, "commit", failing_commit)
        resp = upload(TestClient(app, raise_server_exceptions=False), alice)
        monkeypatch.undo()

        assert resp.status_code == 500
        assert resp.json()["detail"] == "Internal server error"
        assert _files(upload_dir) == []
        assert _document_rows() == 0

    def test_move_failure_after_commit_removes_row(self, client, alice, upload_dir, monkeypatch):
        def failing_promote(self, staged):
            raise StorageError("disk full")

        monkeypatch.setattr(DocumentStore, "promote", failing_promote)
        resp = upload(client, alice)

        assert resp.status_code == 500
        assert "disk full" not in resp.text
        assert _files(upload_dir) == []
        assert _document_rows() == 0


class TestReadAndSearch:
    def test_list_and_search_by_type(self, client, alice):
        upload(client, alice, name="cv.pdf", doc_type="CV")
        upload(client, alice, name="sop.docx", doc_type="Statement of Purpose")
        upload(client, alice, name="lor.pdf", doc_type="Recommendation Letter")

        resp = client.get(f"/api/users/{alice['id']}/documents", headers=alice["headers"])
        assert len(resp.json()) == 3

        resp = client.get(
            f"/api/users/{alice['id']}/documents/search",
            headers=alice["headers"],
            params={"doc_type": "purpose"},
        )
        assert [d["file_name"] for d in resp.json()] == ["sop.docx"]

    def test_blank_search_is_rejected(self, client, alice):
        resp = client.get(
            f"/api/users/{alice['id']}/documents/search", headers=alice["headers"], params={"doc_type": " "}
        )
        assert resp.status_code == 400

    def test_listing_another_users_documents_is_forbidden(self, client, alice, bob):
        upload(client, bob)
        resp = client.get(f"/api/users/{bob['id']}/documents", headers=alice["headers"])
        assert resp.status_code == 403

    def test_download_returns_original_bytes(self, client, alice):
        doc = upload(client, alice, name="transcript.pdf", content=b"%PDF grades").json()
        resp = client.get(f"/api/documents/{doc['id']}/download", headers=alice["headers"])

        assert resp.status_code == 200
        assert resp.content == b"%PDF grades"
        assert "transcript.pdf" in resp.headers["content-disposition"]

    def test_download_of_missing_file_is_server_error(self, client, alice):
        doc = upload(client, alice).json()
        Path(doc["file_path"]).unlink()
        resp = client.get(f"/api/documents/{doc['id']}/download", headers=alice["headers"])
        assert resp.status_code == 500
        assert doc["file_path"] not in resp.text


class TestReplace:
    def test_replace_swaps_file_and_removes_old(self, client, alice, upload_dir):
        doc = upload(client, alice, name="cv.pdf", content=b"old").json()

        resp = client.post(
            f"/api/documents/{doc['id']}/replace",
            headers=alice["headers"],
            files={"file": ("cv-2025.pdf", b"new", "application/pdf")},
        )
        assert resp.status_code == 200, resp.text
        replaced = resp.json()

        assert replaced["file_name"] == "cv-2025.pdf"
        assert Path(replaced["file_path"]).read_bytes() == b"new"
        assert not Path(doc["file_path"]).exists()
        assert _files(upload_dir) == [Path(replaced["file_path"])]

    def test_replace_move_failure_keeps_previous_file(self, client, alice, upload_dir, monkeypatch):
        doc = upload(client, alice, name="cv.pdf", content=b"old").json()

        def failing_promote(self, staged):
            raise StorageError("disk full")

        monkeypatch.setattr(DocumentStore, "promote", failing_promote)
        resp = client.post(
            f"/api/documents/{doc['id']}/replace",
            headers=alice["headers"],
            files={"file": ("cv-2025.pdf", b"new", "application/pdf")},
        )
        monkeypatch.undo()
        assert resp.status_code == 500

        current = client.get(f"/api/documents/{doc['id']}", headers=alice["headers"]).json()
        assert current["file_path"] == doc["file_path"]
        assert current["file_name"] == "cv.pdf"
        assert _files(upload_dir) == [Path(doc["file_path"])]

    def test_replace_with_bad_type_keeps_everything(self, client, alice, upload_dir):
        doc = upload(client, alice, content=b"old").json()
        resp = client.post(
            f"/api/documents/{doc['id']}/replace",
            headers=alice["headers"],
            files={"file": ("cv.exe", b"MZ", "application/octet-stream")},
        )
        assert resp.status_code == 400
        assert _files(upload_dir) == [Path(doc["file_path"])]


class TestMetadataUpdate:
    def test_update_fields(self, client, alice):
        doc = upload(client, alice).json()
        resp = client.put(
            f"/api/documents/{doc['id']}",
            headers=alice["headers"],
            json={"doc_type": "Resume", "notes": "one page", "file_name": "resume.pdf"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert (body["doc_type"], body["notes"], body["file_name"]) == ("Resume", "one page", "resume.pdf")
        assert body["file_path"] == doc["file_path"]

    def test_point_at_existing_file_removes_old(self, client, alice, store):
        doc = upload(client, alice, content=b"old").json()
        target = store.owner_dir(alice["id"]) / "transcript.pdf"
        target.write_bytes(b"new transcript")

        resp = client.put(f"/api/documents/{doc['id']}", headers=alice["headers"], json={"file_path": str(target)})
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["file_name"] == "transcript.pdf"
        assert Path(body["file_path"]) == target.resolve()
        assert not Path(doc["file_path"]).exists()

    def test_path_outside_owner_dir_is_rejected(self, client, alice, tmp_path):
        doc = upload(client, alice).json()
        outside = tmp_path / "elsewhere.pdf"
        outside.write_bytes(b"x")

        resp = client.put(f"/api/documents/{doc['id']}", headers=alice["headers"], json={"file_path": str(outside)})
        assert resp.status_code == 400
        assert Path(doc["file_path"]).exists()

    def test_blank_file_name_is_rejected(self, client, alice):
        doc = upload(client, alice).json()
        resp = client.put(f"/api/documents/{doc['id']}", headers=alice["headers"], json={"file_name": "  "})
        assert resp.status_code == 400

    def test_rejected_update_keeps_old_file(self, client, alice, store):
        doc = upload(client, alice, content=b"old").json()
        target = store.owner_dir(alice["id"]) / "transcript.pdf"
        target.write_bytes(b"new transcript")

        resp = client.put(
            f"/api/documents/{doc['id']}",
            headers=alice["headers"],
            json={"file_path": str(target), "file_name": "  "},
        )
        assert resp.status_code == 400

        current = client.get(f"/api/documents/{doc['id']}", headers=alice["headers"]).json()
        assert current["file_path"] == doc["file_path"]
        assert Path(doc["file_path"]).read_bytes() == b"old"
        assert target.exists()

    def test_file_of_another_document_is_rejected(self, client, alice):
        first = upload(client, alice, name="a.pdf", content=b"a").json()
        second = upload(client, alice, name="b.pdf", content=b"b").json()

        resp = client.put(
            f"/api/documents/{first['id']}",
            headers=alice["headers"],
            json={"file_path": second["file_path"]},
        )
        assert resp.status_code == 400
        assert Path(first["file_path"]).read_bytes() == b"a"

        assert client.delete(f"/api/documents/{first['id']}", headers=alice["headers"]).status_code == 204
        assert Path(second["file_path"]).read_bytes() == b"b"
        resp = client.get(f"/api/documents/{second['id']}/download", headers=alice["headers"])
        assert resp.content == b"b"

    def test_failed_delete_of_old_file_keeps_row(self, client, alice, store, monkeypatch):
        doc = upload(client, alice, content=b"old").json()
        target = store.owner_dir(alice["id"]) / "transcript.pdf"
        target.write_bytes(b"new transcript")

        def failing_remove(self, path):
            raise StorageError("permission denied")

        monkeypatch.setattr(DocumentStore, "remove", failing_remove)
        resp = client.put(f"/api/documents/{doc['id']}", headers=alice["headers"], json={"file_path": str(target)})
        monkeypatch.undo()

        assert resp.status_code == 500
        current = client.get(f"/api/documents/{doc['id']}", headers=alice["headers"]).json()
        assert current["file_path"] == doc["file_path"]
        assert Path(doc["file_path"]).exists()


class TestDelete:
    def test_delete_removes_row_and_file(self, client, alice, upload_dir):
        doc = upload(client, alice).json()
        resp = client.delete(f"/api/documents/{doc['id']}", headers=alice["headers"])

        assert resp.status_code == 204
        assert client.get(f"/api/documents/{doc['id']}", headers=alice["headers"]).status_code == 404
        assert _files(upload_dir) == []

    def test_delete_tolerates_missing_file(self, client, alice):
        doc = upload(client, alice).json()
        Path(doc["file_path"]).unlink()
        assert client.delete(f"/api/documents/{doc['id']}", headers=alice["headers"]).status_code == 204

    def test_linked_document_cannot_be_deleted(self, client, alice):
        program = create_program(client, alice).json()
        doc = upload(client, alice).json()
        link = client.post(
            f"/api/programs/{program['id']}/documents",
            headers=alice["headers"],
            json={"document_id": doc["id"]},
        ).json()

        resp = client.delete(f"/api/documents/{doc['id']}", headers=alice["headers"])
        assert resp.status_code == 409
        assert resp.json() == {"detail": "Document linked to programs; unlink first", "code": "DOCUMENT_REFERENCED"}
        assert Path(doc["file_path"]).exists()

        client.delete(f"/api/program-docs/{link['id']}", headers=alice["headers"])
        assert client.delete(f"/api/documents/{doc['id']}", headers=alice["headers"]).status_code == 204

    def test_storage_failure_keeps_metadata(self, client, alice, monkeypatch):
        doc = upload(client, alice).json()

        def failing_remove(self, path):
            raise StorageError("permission denied")

        monkeypatch.setattr(DocumentStore, "remove", failing_remove)
        resp = client.delete(f"/api/documents/{doc['id']}", headers=alice["headers"])
        monkeypatch.undo()

        assert resp.status_code == 500
        assert client.get(f"/api/documents/{doc['id']}", headers=alice["headers"]).status_code == 200

"""Tests for the firebatch CLI."""

import json
import sys

import pytest

from firebatch.cli import main


def _invoke(runner, store, args, **kwargs):
    return runner.invoke(main, args, obj={"store": store}, **kwargs)


# ---------------------------------------------------------------------------
# Connection options
# ---------------------------------------------------------------------------

class TestStoreOptions:
    def test_options_after_command(self, runner, users_store, tmp_path):
        obj = {"store": users_store}
        result = runner.invoke(main, [
            "export", "users", "-o", str(tmp_path / "o.json"),
            "--project-id", "demo", "--emulator-host", "localhost:8080",
        ], obj=obj)
        assert result.exit_code == 0, result.output
        assert obj["project_id"] == "demo"
        assert obj["emulator_host"] == "localhost:8080"

    def test_options_before_command(self, runner, users_store, tmp_path):
        obj = {"store": users_store}
        result = runner.invoke(main, [
            "--credential-path", "key.json", "export", "users", "-o", str(tmp_path / "o.json"),
        ], obj=obj)
        assert result.exit_code == 0, result.output
        assert obj["credential_path"] == "key.json"

    def test_envvar(self, runner, users_store, tmp_path):
        obj = {"store": users_store}
        result = runner.invoke(main, ["export", "users", "-o", str(tmp_path / "o.json")],
                               obj=obj, env={"FIRESTORE_DATABASE": "secondary"})
        assert result.exit_code == 0, result.output
        assert obj["database"] == "secondary"


# ---------------------------------------------------------------------------
# export
# ---------------------------------------------------------------------------

class TestExport:
    def test_export(self, runner, users_store, tmp_path):
        out = tmp_path / "users.json"
        result = _invoke(runner, users_store, ["export", "users", "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert f"Exported 2 document(s) to {out}" in result.output
        assert "Exporting: 2/2 (100%)" in result.output
        docs = json.loads(out.read_text())["documents"]
        assert [d["id"] for d in docs] == ["alice", "bob"]

    def test_include_subcollections(self, runner, users_store, tmp_path):
        out = tmp_path / "users.json"
        result = _invoke(runner, users_store,
                         ["export", "users", "-o", str(out), "--include-subcollections"])
        assert result.exit_code == 0, result.output
        alice = json.loads(out.read_text())["documents"][0]
        assert "orders" in alice["subcollections"]

    def test_output_required(self, runner, users_store):
        result = _invoke(runner, users_store, ["export", "users"])
        assert result.exit_code == 2

    def test_document_path_rejected(self, runner, users_store, tmp_path):
        result = _invoke(runner, users_store, ["export", "users/alice", "-o", str(tmp_path / "o.json")])
        assert result.exit_code == 1
        assert "collection" in result.output

    def test_verbose(self, runner, users_store, tmp_path):
        result = _invoke(runner, users_store,
                         ["-v", "export", "users", "-o", str(tmp_path / "o.json")])
        assert result.exit_code == 0, result.output
        assert "Exporting users" in result.output


# ---------------------------------------------------------------------------
# import
# ---------------------------------------------------------------------------

class TestImport:
    def test_import(self, runner, store, make_docs, write_manifest_file):
        path = write_manifest_file(make_docs(300))
        result = _invoke(runner, store, ["import", path, "--batch-size", "100"])
        assert result.exit_code == 0, result.output
        assert "Imported: 300" in result.output
        assert "Failed" not in result.output
        assert len(store.commits) == 3

    def test_invalid_batch_size(self, runner, store, tmp_path):
        result = _invoke(runner, store, ["import", str(tmp_path / "missing.json"), "--batch-size", "0"])
        assert result.exit_code == 1
        assert "Batch size must be between 1 and 500" in result.output
        assert store.calls == []

    def test_missing_file(self, runner, store, tmp_path):
        result = _invoke(runner, store, ["import", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_document_failures_listed(self, runner, store, make_docs, write_manifest_file):
        docs = make_docs(3)
        docs[1]["path"] = "bad"
        path = write_manifest_file(docs)
        result = _invoke(runner, store, ["import", path])
        assert result.exit_code == 0, result.output
        assert "Imported: 2" in result.output
        assert "Failed: 1" in result.output
        assert "[1] bad:" in result.output

    def test_partial_commit(self, runner, store, make_docs, write_manifest_file):
        path = write_manifest_file(make_docs(300))
        store.fail_on_commit = {2}
        result = _invoke(runner, store, ["import", path, "--batch-size", "100"])
        assert result.exit_code == 2
        assert "were not rolled back" in result.output
        assert "Resume from document 100" in result.output
        assert len(store.docs) == 100

    def test_first_commit_fails(self, runner, store, make_docs, write_manifest_file):
        path = write_manifest_file(make_docs(10))
        store.fail_on_commit = {1}
        result = _invoke(runner, store, ["import", path])
        assert result.exit_code == 1
        assert "rolled back" not in result.output

    def test_field_values(self, runner, store, write_manifest_file):
        path = write_manifest_file([
            {"id": "a", "path": "c/a", "data": {"n": {"$fieldValue": "increment", "operand": 1}}},
        ])
        result = _invoke(runner, store, ["import", path, "--field-values"])
        assert result.exit_code == 0, result.output
        assert "$fieldValue" not in repr(store.docs["c/a"])


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------

class TestDelete:
    def test_recursive_yes(self, runner, users_store):
        result = _invoke(runner, users_store, ["delete", "users", "-r", "-y"])
        assert result.exit_code == 0, result.output
        assert "Deleted 5 document(s)" in result.output
        assert users_store.docs == {}

    def test_prompt_declined(self, runner, users_store):
        result = _invoke(runner, users_store, ["delete", "users", "--recursive"], input="n\n")
        assert result.exit_code == 0, result.output
        assert "Cancelled or no documents to delete" in result.output
        assert users_store.calls == []

    def test_prompt_accepted(self, runner, users_store):
        result = _invoke(runner, users_store, ["delete", "users", "-r"], input="y\n")
        assert result.exit_code == 0, result.output
        assert "Deleted 5 document(s)" in result.output

    def test_collection_needs_recursive(self, runner, users_store):
        result = _invoke(runner, users_store, ["delete", "users", "-y"])
        assert result.exit_code == 1
        assert "use --recursive" in result.output
        assert users_store.calls == []

    def test_document(self, runner, users_store):
        result = _invoke(runner, users_store, ["delete", "users/alice", "-y"])
        assert result.exit_code == 0, result.output
        assert "Deleted users/alice" in result.output
        assert "users/alice" not in users_store.docs

    def test_document_prompt_declined(self, runner, users_store):
        result = _invoke(runner, users_store, ["delete", "users/alice"], input="n\n")
        assert result.exit_code == 0, result.output
        assert "Cancelled" in result.output
        assert "users/alice" in users_store.docs

    def test_document_recursive_rejected(self, runner, users_store):
        result = _invoke(runner, users_store, ["delete", "users/alice", "-r", "-y"])
        assert result.exit_code == 1
        assert "--recursive can only be used with collection paths" in result.output

    @pytest.mark.parametrize("path", ["users//x", "/users", "users/"])
    def test_malformed_path(self, runner, users_store, path):
        result = _invoke(runner, users_store, ["delete", path, "-r", "-y"])
        assert result.exit_code == 1
        assert "Invalid path" in result.output

    def test_store_failure(self, runner, users_store):
        users_store.fail_on_commit = {2}
        result = _invoke(runner, users_store, ["delete", "users", "-r", "-y"])
        assert result.exit_code == 1
        assert "1 document(s) were deleted before the failure" in result.output


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------

class TestValidate:
    def test_lists_markers(self, runner, write_manifest_file):
        path = write_manifest_file([
            {"id": "a", "path": "c/a", "data": {
                "t": {"$fieldValue": "serverTimestamp"},
                "tags": {"$fieldValue": "arrayUnion", "elements": ["x"]},
            }},
            {"id": "b", "path": "c/b", "data": {"plain": 1}},
        ])
        result = runner.invoke(main, ["validate", path])
        assert result.exit_code == 0, result.output
        assert "c/a\tt\tserverTimestamp" in result.output
        assert "c/a\ttags\tarrayUnion" in result.output
        assert "c/b" not in result.output

    def test_invalid_markers(self, runner, write_manifest_file):
        path = write_manifest_file([
            {"id": "a", "path": "c/a", "data": {"n": {"$fieldValue": "increment"}}},
            {"id": "b", "path": "c/b", "data": {"t": {"$fieldValue": "delete"}}},
        ])
        result = runner.invoke(main, ["validate", path])
        assert result.exit_code == 1
        assert "c/b\tt\tdelete" in result.output
        assert "1 document(s) have invalid $fieldValue markers" in result.output

    def test_malformed_manifest(self, runner, tmp_path):
        p = tmp_path / "bad.json"
        p.write_text("{not json", encoding="utf-8")
        result = runner.invoke(main, ["validate", str(p)])
        assert result.exit_code == 1
        assert "Invalid JSON" in result.output


# ---------------------------------------------------------------------------
# console script
# ---------------------------------------------------------------------------

class TestEntryPoint:
    def test_help(self, monkeypatch, capsys):
        from firebatch import _cli_entry
        monkeypatch.setattr("sys.argv", ["firebatch", "--help"])
        with pytest.raises(SystemExit) as exc_info:
            _cli_entry.main()
        assert exc_info.value.code == 0
        assert "Usage: firebatch" in capsys.readouterr().out

    def test_missing_click(self, monkeypatch, capsys):
        from firebatch import _cli_entry
        for name in [m for m in sys.modules if m.startswith("firebatch.cli")]:
            monkeypatch.delitem(sys.modules, name)
        monkeypatch.setitem(sys.modules, "click", None)
        with pytest.raises(SystemExit) as exc_info:
            _cli_entry.main()
        assert exc_info.value.code == 1
        assert "firebatch[cli]" in capsys.readouterr().err

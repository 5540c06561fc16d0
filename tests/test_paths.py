from pathlib import Path

import pytest

from core import Request
from infrastructure.paths import (
    default_archive_path,
    generate_safe_filename,
    resolve_export_path,
    resolve_task_file_path,
)


def _request(text: str = "Build a REST API!") -> Request:
    return Request(request_id="req-1", original_request=text)


def test_generate_safe_filename():
    assert generate_safe_filename("Build a REST API!") == "build-a-rest-api"
    assert generate_safe_filename("  --Hello   World--  ") == "hello-world"
    assert generate_safe_filename("x" * 80) == "x" * 50
    assert generate_safe_filename("!!!") == ""


def test_resolve_task_file_path(tmp_path: Path):
    assert resolve_task_file_path("tasks.yaml", tmp_path) == (tmp_path / "tasks.yaml").resolve()
    absolute = tmp_path / "abs.json"
    assert resolve_task_file_path(str(absolute), "/elsewhere") == absolute.resolve()


def test_default_archive_path():
    assert default_archive_path(Path("/data/tasks.yaml")) == Path("/data/tasks-archive.yaml")


class TestExportPath:
    def test_default_name_in_base_dir(self, tmp_path: Path):
        path = resolve_export_path(_request(), fmt="json", base_dir=tmp_path)
        assert path == (tmp_path / "build-a-rest-api_tasks.json").resolve()

    def test_unnamed_request_falls_back(self, tmp_path: Path):
        path = resolve_export_path(_request("???"), fmt="html", base_dir=tmp_path)
        assert path.name == "request_tasks.html"

    def test_existing_directory_gets_filename(self, tmp_path: Path):
        out = tmp_path / "reports"
        out.mkdir()
        path = resolve_export_path(_request(), output_path=str(out), fmt="markdown")
        assert path == out.resolve() / "build-a-rest-api_tasks.md"

    def test_trailing_separator_means_directory(self, tmp_path: Path):
        path = resolve_export_path(_request(), output_path="new/", filename="status.md", base_dir=tmp_path)
        assert path == (tmp_path / "new").resolve() / "status.md"

    def test_path_with_extension_is_used_as_is(self, tmp_path: Path):
        target = tmp_path / "out" / "report.html"
        assert resolve_export_path(_request(), output_path=str(target), fmt="html") == target.resolve()

    def test_unsupported_format(self):
        with pytest.raises(ValueError):
            resolve_export_path(_request(), fmt="pdf")

"""Tests for locating, downloading and unpacking the CodeQL CLI."""

import io
import os
import stat
import tarfile
import zipfile

import pytest
import requests

from codeql_issue_maker.codeql import installer
from codeql_issue_maker.codeql.installer import (
    download_codeql,
    download_file,
    extract_archive,
    find_bundle_asset,
    get_platform_identifier,
    initialize_codeql,
    locate_codeql,
)
from codeql_issue_maker.exceptions import CodeQLInstallError


def write_executable(path, content="#!/bin/sh\necho codeql\n"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    path.chmod(0o755)
    return path


def bundle_bytes():
    """A .tar.gz holding codeql/codeql plus enough payload to pass the size check."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, data in (
            ("codeql/codeql", b"#!/bin/sh\necho codeql\n"),
            ("codeql/tools/payload.bin", os.urandom(4096)),
        ):
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


class FakeResponse:
    def __init__(self, content=b"", payload=None, status_code=200):
        self.content = content
        self.payload = payload
        self.status_code = status_code

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i : i + chunk_size]

    def json(self):
        return self.payload


class FakeSession:
    """Maps URLs to responses (or exceptions); unknown URLs return 404."""

    def __init__(self, routes):
        self.headers = {}
        self.routes = routes
        self.requested = []

    def get(self, url, **kwargs):
        self.requested.append(url)
        response = self.routes.get(url, FakeResponse(status_code=404))
        if isinstance(response, Exception):
            raise response
        return response


class TestPlatform:
    def test_identifiers(self):
        assert get_platform_identifier("linux") == "linux64"
        assert get_platform_identifier("darwin") == "osx64"
        assert get_platform_identifier("win32") == "win64"


class TestFindBundleAsset:
    def test_prefers_tar_gz(self):
        assets = [
            {"name": "codeql-bundle-linux64.tar.zst"},
            {"name": "codeql-bundle-linux64.tar.gz"},
            {"name": "codeql-bundle-osx64.tar.gz"},
        ]
        assert find_bundle_asset(assets, "linux64")["name"] == "codeql-bundle-linux64.tar.gz"

    def test_zst_only(self):
        assets = [{"name": "codeql-bundle-linux64.tar.zst"}]
        assert find_bundle_asset(assets, "linux64")["name"] == "codeql-bundle-linux64.tar.zst"

    def test_no_match(self):
        assert find_bundle_asset([{"name": "codeql-bundle-win64.zip"}], "linux64") is None


class TestLocateCodeQL:
    def test_codeql_cli_variable(self, tmp_path):
        binary = write_executable(tmp_path / "tools" / "codeql")
        env = {"CODEQL_CLI": str(binary), "PATH": ""}
        assert locate_codeql(env=env, common_paths=()) == str(binary)

    def test_codeql_cli_pointing_nowhere_is_ignored(self, tmp_path):
        env = {"CODEQL_CLI": str(tmp_path / "missing"), "PATH": str(tmp_path)}
        assert locate_codeql(env=env, common_paths=()) is None

    def test_path_lookup(self, tmp_path):
        binary = write_executable(tmp_path / "bin" / "codeql")
        found = locate_codeql(env={"PATH": str(binary.parent)}, common_paths=())
        assert found == str(binary)

    @pytest.mark.parametrize("older", ["2.20.0", "2.9.4", "2.22.2"])
    def test_common_paths_newest_first(self, tmp_path, older):
        """Versions compare numerically, not as strings."""
        write_executable(tmp_path / "cache" / older / "codeql")
        newest = write_executable(tmp_path / "cache" / "2.22.3" / "codeql")

        found = locate_codeql(
            env={"PATH": str(tmp_path / "empty")},
            common_paths=(str(tmp_path / "cache" / "*" / "codeql"),),
        )

        assert found == str(newest)


class TestDownloadFile:
    def test_writes_content(self, tmp_path):
        url = "https://example.com/codeql.zip"
        session = FakeSession({url: FakeResponse(content=b"x" * 2048)})

        path = download_file(url, tmp_path / "codeql.zip", session=session, delay=0)

        assert path.read_bytes() == b"x" * 2048

    def test_retries_then_fails(self, tmp_path):
        url = "https://example.com/codeql.zip"
        session = FakeSession({url: requests.ConnectionError("reset")})

        with pytest.raises(CodeQLInstallError) as exc_info:
            download_file(url, tmp_path / "codeql.zip", session=session, retries=3, delay=0)

        assert session.requested == [url, url, url]
        assert "reset" in exc_info.value.reason

    def test_rejects_tiny_files(self, tmp_path):
        url = "https://example.com/error.html"
        session = FakeSession({url: FakeResponse(content=b"Not Found")})

        with pytest.raises(CodeQLInstallError) as exc_info:
            download_file(url, tmp_path / "codeql.zip", session=session, delay=0)

        assert "too small" in exc_info.value.reason


class TestExtractArchive:
    def test_tar_gz(self, tmp_path):
        archive = tmp_path / "codeql-bundle-linux64.tar.gz"
        archive.write_bytes(bundle_bytes())

        extract_archive(archive, tmp_path / "out")

        assert (tmp_path / "out" / "codeql" / "codeql").is_file()

    def test_zip_keeps_permissions(self, tmp_path):
        archive = tmp_path / "codeql-linux64.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            info = zipfile.ZipInfo("codeql/codeql")
            info.external_attr = (stat.S_IFREG | 0o755) << 16
            zf.writestr(info, "#!/bin/sh\n")

        extract_archive(archive, tmp_path / "out")

        binary = tmp_path / "out" / "codeql" / "codeql"
        assert binary.is_file()
        assert binary.stat().st_mode & 0o111

    def test_unsupported_format(self, tmp_path):
        archive = tmp_path / "codeql.rar"
        archive.write_bytes(b"")
        with pytest.raises(CodeQLInstallError):
            extract_archive(archive, tmp_path / "out")


class TestDownloadCodeQL:
    release_url = "https://api.github.com/repos/github/codeql-action/releases/latest"
    bundle_url = "https://github.com/github/codeql-action/releases/download/b/codeql-bundle-linux64.tar.gz"
    cli_url = (
        "https://github.com/github/codeql-cli-binaries/releases/download/"
        "v2.22.3/codeql-linux64.zip"
    )

    @pytest.fixture(autouse=True)
    def linux(self, monkeypatch):
        monkeypatch.setattr(installer, "get_platform_identifier", lambda platform=None: "linux64")
        monkeypatch.setattr(installer.time, "sleep", lambda seconds: None)

    def release(self):
        return FakeResponse(
            payload={
                "assets": [
                    {
                        "name": "codeql-bundle-linux64.tar.gz",
                        "browser_download_url": self.bundle_url,
                    }
                ]
            }
        )

    def test_bundle_download(self, tmp_path):
        session = FakeSession(
            {self.release_url: self.release(), self.bundle_url: FakeResponse(bundle_bytes())}
        )

        binary = download_codeql(tmp_path, token="ghp_test", session=session)

        assert binary == tmp_path / "codeql" / "codeql"
        assert binary.stat().st_mode & stat.S_IXUSR
        assert not (tmp_path / "codeql-bundle-linux64.tar.gz").exists()
        assert session.headers["Authorization"] == "Bearer ghp_test"
        assert self.cli_url not in session.requested

    def test_falls_back_to_cli_archive(self, tmp_path):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr("codeql/codeql", "#!/bin/sh\n")
            zf.writestr("codeql/tools/payload.bin", os.urandom(4096))
        session = FakeSession({self.cli_url: FakeResponse(buffer.getvalue())})

        binary = download_codeql(tmp_path, session=session)

        assert binary == tmp_path / "codeql" / "codeql"
        assert session.requested[0] == self.release_url
        assert session.requested[-1] == self.cli_url

    def test_everything_fails(self, tmp_path):
        with pytest.raises(CodeQLInstallError) as exc_info:
            download_codeql(tmp_path, session=FakeSession({}))
        assert "CodeQL download failed" in str(exc_info.value)


class TestInitializeCodeQL:
    def test_prefers_installed_cli(self, tmp_path, monkeypatch):
        binary = write_executable(tmp_path / "codeql")

        def fail_download(*args, **kwargs):
            raise AssertionError("download should not be attempted")

        monkeypatch.setattr(installer, "download_codeql", fail_download)

        assert initialize_codeql(env={"CODEQL_CLI": str(binary)}) == str(binary)

    def test_downloads_when_missing(self, tmp_path, monkeypatch):
        monkeypatch.setattr(installer, "locate_codeql", lambda env=None: None)
        monkeypatch.setattr(
            installer,
            "download_codeql",
            lambda target, version, api_url, token: target / "codeql" / "codeql",
        )

        result = initialize_codeql(install_dir=tmp_path, version="2.22.3", token="t")

        assert result == str(tmp_path / "codeql" / "codeql")

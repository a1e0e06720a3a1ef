"""Unit tests for cli.py: commands run against a mocked YadClient."""

import json
from pathlib import Path
from typing import List
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner, Result

from yad_sdk.cli import cli
from yad_sdk.exceptions import ApiError, NotADirectoryError, ProtocolError
from yad_sdk.models import Link, Resource, ResourceList, ResourceType, Stats, Status

from .conftest import BASE_URL, OPERATION_HREF

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_client():
    with patch("yad_sdk.cli.YadClient") as client_cls:
        yield client_cls.return_value


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    return tmp_path / "config.json"


def _run(config_file: Path, args: List[str], **kwargs) -> Result:
    runner = CliRunner()
    return runner.invoke(cli, ["--token", "tok", "--config-file", str(config_file), *args], **kwargs)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class TestConfig:
    def test_config_saves_token(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("YAD_TOKEN", raising=False)
        runner = CliRunner()

        result = runner.invoke(cli, ["--config-file", str(config_file), "config", "--token", "saved"])

        assert result.exit_code == 0
        assert json.loads(config_file.read_text())["token"] == "saved"

    def test_token_from_config_file(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("YAD_TOKEN", raising=False)
        config_file.write_text(json.dumps({"token": "from-file", "base_url": BASE_URL}))

        with patch("yad_sdk.cli.YadClient") as client_cls:
            client_cls.return_value.stats.return_value = Stats(total_space=1, used_space=0, trash_size=0)
            result = CliRunner().invoke(cli, ["--config-file", str(config_file), "stats"])

        assert result.exit_code == 0
        config = client_cls.call_args.kwargs["config"]
        assert config.token == "from-file"
        assert config.base_url == BASE_URL

    def test_missing_token_fails(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("YAD_TOKEN", raising=False)

        result = CliRunner().invoke(cli, ["--config-file", str(config_file), "stats"])

        assert result.exit_code == 1
        assert "not configured" in result.output


# ---------------------------------------------------------------------------
# Read-only commands
# ---------------------------------------------------------------------------


class TestReadCommands:
    def test_stats(self, mock_client: MagicMock, config_file: Path) -> None:
        mock_client.stats.return_value = Stats(total_space=2048, used_space=1024, trash_size=0)

        result = _run(config_file, ["stats"])

        assert result.exit_code == 0
        assert "1.0 KB" in result.output

    def test_ls(self, mock_client: MagicMock, config_file: Path) -> None:
        mock_client.list.return_value = ResourceList(
            items=[Resource(type=ResourceType.FILE, name="notes.txt", path="disk:/notes.txt", size=10)],
            limit=20,
        )

        result = _run(config_file, ["ls", "disk:/"])

        assert result.exit_code == 0
        assert "notes.txt" in result.output
        mock_client.list.assert_called_once_with("disk:/", offset=0, limit=20)

    def test_ls_all_json(self, mock_client: MagicMock, config_file: Path) -> None:
        mock_client.list_all.return_value = ResourceList(
            items=[Resource(type=ResourceType.DIR, name="docs", path="disk:/docs")],
            limit=1,
        )

        result = _run(config_file, ["ls", "--all", "--json", "disk:/"])

        assert result.exit_code == 0
        assert json.loads(result.output) == [{"type": "dir", "name": "docs", "path": "disk:/docs"}]

    def test_ls_on_file_fails(self, mock_client: MagicMock, config_file: Path) -> None:
        mock_client.list.side_effect = NotADirectoryError("disk:/a is not a directory", path="disk:/a")

        result = _run(config_file, ["ls", "disk:/a"])

        assert result.exit_code == 1
        assert "Listing failed" in result.output
        assert "NOT_A_DIRECTORY" in result.output

    def test_op_status(self, mock_client: MagicMock, config_file: Path) -> None:
        mock_client.operation_status.return_value = Status.IN_PROGRESS

        result = _run(config_file, ["op-status", OPERATION_HREF])

        assert result.exit_code == 0
        assert "in-progress" in result.output
        assert mock_client.operation_status.call_args.args[0].operation_id == "op-123"

    def test_info(self, mock_client: MagicMock, config_file: Path) -> None:
        mock_client.info.return_value = Resource(
            type=ResourceType.FILE, name="notes.txt", path="disk:/notes.txt", md5="abc", size=10
        )

        result = _run(config_file, ["info", "--json", "disk:/notes.txt"])

        assert result.exit_code == 0
        assert json.loads(result.output)["md5"] == "abc"
        mock_client.info.assert_called_once_with("disk:/notes.txt")

    def test_info_protocol_error(self, mock_client: MagicMock, config_file: Path) -> None:
        mock_client.info.side_effect = ProtocolError("Invalid timestamp 'not-a-date'")

        result = _run(config_file, ["info", "disk:/notes.txt"])

        assert result.exit_code == 1
        assert "Info failed" in result.output


# ---------------------------------------------------------------------------
# Mutating commands
# ---------------------------------------------------------------------------


class TestMutatingCommands:
    def test_rm_completed_immediately(self, mock_client: MagicMock, config_file: Path) -> None:
        mock_client.delete.return_value = None

        result = _run(config_file, ["rm", "--permanently", "disk:/a"])

        assert result.exit_code == 0
        assert "Delete completed" in result.output
        mock_client.delete.assert_called_once_with("disk:/a", permanently=True)

    def test_rm_without_wait_prints_operation(self, mock_client: MagicMock, config_file: Path) -> None:
        mock_client.delete.return_value = Link(href=OPERATION_HREF)

        result = _run(config_file, ["--no-wait", "rm", "disk:/big"])

        assert result.exit_code == 0
        assert "op-123" in result.output
        mock_client.operation_status.assert_not_called()

    def test_cp_waits_for_operation(self, mock_client: MagicMock, config_file: Path) -> None:
        mock_client.copy.return_value = Link(href=OPERATION_HREF)
        mock_client.operation_status.side_effect = [Status.IN_PROGRESS, Status.SUCCESS]

        with patch("yad_sdk.operations.time.sleep"):
            result = _run(config_file, ["cp", "disk:/a", "disk:/b"])

        assert result.exit_code == 0
        assert "Copy completed" in result.output
        mock_client.copy.assert_called_once_with("disk:/b", "disk:/a", overwrite=True)

    def test_mkdir_resource_link_is_not_polled(self, mock_client: MagicMock, config_file: Path) -> None:
        mock_client.mkdir.return_value = Link(href=BASE_URL + "resources?path=disk%3A%2Fnew")

        result = _run(config_file, ["--wait", "mkdir", "disk:/new"])

        assert result.exit_code == 0
        assert "Mkdir completed" in result.output
        mock_client.operation_status.assert_not_called()

    def test_trash_rm_finished_immediately_is_not_polled(self, mock_client: MagicMock, config_file: Path) -> None:
        mock_client.trash_delete.return_value = None

        result = _run(config_file, ["--wait", "trash", "rm", "trash:/a"])

        assert result.exit_code == 0
        assert "Trash delete completed" in result.output
        mock_client.operation_status.assert_not_called()

    def test_upload_url_waits_for_operation(self, mock_client: MagicMock, config_file: Path) -> None:
        mock_client.upload_url.return_value = Link(href=OPERATION_HREF)
        mock_client.operation_status.return_value = Status.SUCCESS

        result = _run(config_file, ["upload-url", "https://example.com/a.zip", "disk:/a.zip"])

        assert result.exit_code == 0
        assert "Upload completed" in result.output
        mock_client.upload_url.assert_called_once_with("disk:/a.zip", "https://example.com/a.zip")
        assert mock_client.operation_status.call_args.args[0].operation_id == "op-123"

    def test_mv_failed_operation(self, mock_client: MagicMock, config_file: Path) -> None:
        mock_client.move.return_value = Link(href=OPERATION_HREF)
        mock_client.operation_status.return_value = Status.FAILURE

        result = _run(config_file, ["mv", "disk:/a", "disk:/b"])

        assert result.exit_code == 1
        assert "Move failed" in result.output

    def test_mkdir_api_error(self, mock_client: MagicMock, config_file: Path) -> None:
        mock_client.mkdir.side_effect = ApiError(409, description="Directory exists")

        result = _run(config_file, ["mkdir", "disk:/a"])

        assert result.exit_code == 1
        assert "409: Directory exists" in result.output

    def test_trash_restore(self, mock_client: MagicMock, config_file: Path) -> None:
        mock_client.trash_restore.return_value = Link(href=BASE_URL + "resources?path=disk%3A%2Fb")

        result = _run(config_file, ["trash", "restore", "trash:/a", "--name", "b"])

        assert result.exit_code == 0
        mock_client.trash_restore.assert_called_once_with("trash:/a", name="b")

    def test_trash_clear_requires_confirmation(self, mock_client: MagicMock, config_file: Path) -> None:
        result = _run(config_file, ["trash", "clear"], input="n\n")

        assert result.exit_code != 0
        mock_client.trash_clear.assert_not_called()

    def test_trash_clear_confirmed(self, mock_client: MagicMock, config_file: Path) -> None:
        mock_client.trash_clear.return_value = None

        result = _run(config_file, ["trash", "clear", "--yes"])

        assert result.exit_code == 0
        mock_client.trash_clear.assert_called_once_with()


# ---------------------------------------------------------------------------
# Transfers
# ---------------------------------------------------------------------------


class TestTransferCommands:
    def test_download_writes_file(self, mock_client: MagicMock, config_file: Path, tmp_path: Path) -> None:
        def fake_download(path, stream):
            stream.write(b"content")
            return 7

        mock_client.download.side_effect = fake_download
        target = tmp_path / "out.txt"

        result = _run(config_file, ["download", "disk:/file.txt", "-o", str(target)])

        assert result.exit_code == 0
        assert target.read_bytes() == b"content"

    def test_download_verify_mismatch(self, mock_client: MagicMock, config_file: Path, tmp_path: Path) -> None:
        mock_client.download.side_effect = lambda path, stream: stream.write(b"content") or 7
        mock_client.info.return_value = Resource(
            type=ResourceType.FILE, name="file.txt", path="disk:/file.txt", md5="0" * 32, size=7
        )

        result = _run(config_file, ["download", "disk:/file.txt", "-o", str(tmp_path / "o"), "--verify"])

        assert result.exit_code == 1
        assert "Checksum mismatch" in result.output

    def test_failed_download_keeps_existing_file(
        self, mock_client: MagicMock, config_file: Path, tmp_path: Path
    ) -> None:
        target = tmp_path / "important.txt"
        target.write_bytes(b"local data")

        def broken_download(path, stream):
            stream.write(b"partial")
            raise ApiError(404, description="Resource not found")

        mock_client.download.side_effect = broken_download

        result = _run(config_file, ["download", "disk:/missing", "-o", str(target)])

        assert result.exit_code == 1
        assert "Download failed" in result.output
        assert target.read_bytes() == b"local data"
        assert [p.name for p in tmp_path.iterdir() if p.suffix == ".part"] == []

    def test_checksum_mismatch_keeps_existing_file(
        self, mock_client: MagicMock, config_file: Path, tmp_path: Path
    ) -> None:
        target = tmp_path / "important.txt"
        target.write_bytes(b"local data")
        mock_client.download.side_effect = lambda path, stream: stream.write(b"content") or 7
        mock_client.info.return_value = Resource(
            type=ResourceType.FILE, name="important.txt", path="disk:/important.txt", md5="0" * 32, size=7
        )

        result = _run(config_file, ["download", "disk:/important.txt", "-o", str(target), "--verify"])

        assert result.exit_code == 1
        assert target.read_bytes() == b"local data"
        assert [p.name for p in tmp_path.iterdir() if p.suffix == ".part"] == []

    def test_upload(self, mock_client: MagicMock, config_file: Path, tmp_path: Path) -> None:
        local = tmp_path / "in.txt"
        local.write_bytes(b"data")

        result = _run(config_file, ["upload", str(local), "disk:/in.txt", "--no-overwrite"])

        assert result.exit_code == 0
        args, kwargs = mock_client.upload.call_args
        assert args[0] == "disk:/in.txt"
        assert kwargs == {"overwrite": False}

"""Tests for the FTP and SFTP backends."""

import ftplib
import io
from unittest.mock import Mock, patch

import paramiko
import pytest

from diffdeploy.backends import FTPBackend, SFTPBackend, get_backend
from diffdeploy.backends.ftp import FTPSession
from diffdeploy.backends.sftp import SFTPSession
from diffdeploy.exceptions import (
    DeployConfigError,
    RemoteAlreadyExistsError,
    RemoteAuthenticationError,
    RemoteError,
    RemoteNotFoundError,
    RemoteUnsupportedError,
)


class TestGetBackend:
    def test_known_protocols(self):
        assert isinstance(get_backend("ftp"), FTPBackend)
        assert isinstance(get_backend("SFTP"), SFTPBackend)

    def test_default_ports(self):
        assert get_backend("ftp").port == 21
        assert get_backend("sftp").port == 22
        assert get_backend("ftp", port=2121).port == 2121

    def test_unknown_protocol(self):
        with pytest.raises(DeployConfigError, match="Unknown protocol"):
            get_backend("webdav")


class TestFTPBackend:
    """Tests for FTPBackend.connect."""

    @patch("diffdeploy.backends.ftp.ftplib.FTP")
    def test_connect_logs_in(self, mock_ftp_class):
        ftp = Mock()
        mock_ftp_class.return_value = ftp

        session = FTPBackend(port=2121).connect("ftp.example.com", "deploy", "pw")

        ftp.connect.assert_called_once_with("ftp.example.com", 2121)
        ftp.login.assert_called_once_with("deploy", "pw")
        assert isinstance(session, FTPSession)

    @patch("diffdeploy.backends.ftp.ftplib.FTP")
    def test_bad_login(self, mock_ftp_class):
        ftp = Mock()
        ftp.login.side_effect = ftplib.error_perm("530 Login incorrect.")
        mock_ftp_class.return_value = ftp

        with pytest.raises(RemoteAuthenticationError):
            FTPBackend().connect("ftp.example.com", "deploy", "wrong")
        ftp.close.assert_called_once()

    @patch("diffdeploy.backends.ftp.ftplib.FTP")
    def test_unreachable_server(self, mock_ftp_class):
        ftp = Mock()
        ftp.connect.side_effect = ConnectionRefusedError(111, "Connection refused")
        mock_ftp_class.return_value = ftp

        with pytest.raises(RemoteError, match="Cannot connect"):
            FTPBackend().connect("ftp.example.com", "deploy", "pw")


class TestFTPSession:
    """Tests for FTP reply code translation."""

    @pytest.fixture
    def ftp(self):
        return Mock()

    @pytest.fixture
    def session(self, ftp):
        return FTPSession(ftp)

    def test_read_file(self, session, ftp):
        ftp.retrbinary.side_effect = lambda cmd, callback: callback(b'{"a": "1"}')

        assert session.read_file("push-hashes") == b'{"a": "1"}'
        assert ftp.retrbinary.call_args[0][0] == "RETR push-hashes"

    def test_read_missing_file(self, session, ftp):
        ftp.retrbinary.side_effect = ftplib.error_perm("550 No such file.")

        with pytest.raises(RemoteNotFoundError):
            session.read_file("push-hashes")

    def test_write_file(self, session, ftp):
        stream = io.BytesIO(b"X")

        session.write_file("app.js", stream)

        ftp.storbinary.assert_called_once_with("STOR app.js", stream)

    def test_write_failure(self, session, ftp):
        ftp.storbinary.side_effect = ftplib.error_perm("553 Not allowed.")

        with pytest.raises(RemoteError):
            session.write_file("app.js", io.BytesIO(b"X"))

    def test_make_existing_directory(self, session, ftp):
        ftp.mkd.side_effect = ftplib.error_perm("550 Create directory operation failed.")

        with pytest.raises(RemoteAlreadyExistsError):
            session.make_directory("assets")

    def test_make_directory_other_error(self, session, ftp):
        ftp.mkd.side_effect = ftplib.error_temp("421 Timeout.")

        with pytest.raises(RemoteError) as exc_info:
            session.make_directory("assets")
        assert not isinstance(exc_info.value, RemoteAlreadyExistsError)

    def test_set_permissions_command(self, session, ftp):
        session.set_permissions("assets/app.js", 0o644)

        ftp.sendcmd.assert_called_once_with("SITE CHMOD 644 assets/app.js")

    @pytest.mark.parametrize("code", ["502", "504"])
    def test_set_permissions_unsupported(self, session, ftp, code):
        ftp.sendcmd.side_effect = ftplib.error_perm(f"{code} SITE CHMOD not supported")

        with pytest.raises(RemoteUnsupportedError):
            session.set_permissions("a.txt", 0o644)

    def test_set_permissions_other_error(self, session, ftp):
        ftp.sendcmd.side_effect = ftplib.error_perm("550 Permission denied.")

        with pytest.raises(RemoteError) as exc_info:
            session.set_permissions("a.txt", 0o644)
        assert not isinstance(exc_info.value, RemoteUnsupportedError)

    def test_delete_missing(self, session, ftp):
        ftp.delete.side_effect = ftplib.error_perm("550 Delete operation failed.")
        ftp.rmd.side_effect = ftplib.error_perm("550 Remove directory failed.")

        with pytest.raises(RemoteNotFoundError):
            session.delete_file("old")
        with pytest.raises(RemoteNotFoundError):
            session.delete_directory("old")

    def test_delete_other_error(self, session, ftp):
        ftp.delete.side_effect = ftplib.error_temp("450 Busy.")

        with pytest.raises(RemoteError) as exc_info:
            session.delete_file("old")
        assert not isinstance(exc_info.value, RemoteNotFoundError)

    def test_change_directory_missing(self, session, ftp):
        ftp.cwd.side_effect = ftplib.error_perm("550 Failed to change directory.")

        with pytest.raises(RemoteNotFoundError):
            session.change_directory("/www")

    def test_close_falls_back_when_quit_fails(self, session, ftp):
        ftp.quit.side_effect = EOFError()

        session.close()

        ftp.close.assert_called_once()


class TestSFTPBackend:
    """Tests for SFTPBackend.connect."""

    @patch("diffdeploy.backends.sftp.paramiko.SSHClient")
    def test_connect(self, mock_client_class):
        client = Mock()
        mock_client_class.return_value = client

        session = SFTPBackend().connect("example.com", "deploy", "pw")

        kwargs = client.connect.call_args.kwargs
        assert kwargs["hostname"] == "example.com"
        assert kwargs["port"] == 22
        assert kwargs["username"] == "deploy"
        assert kwargs["password"] == "pw"
        client.open_sftp.assert_called_once()
        assert isinstance(session, SFTPSession)

    @patch("diffdeploy.backends.sftp.paramiko.SSHClient")
    def test_bad_login(self, mock_client_class):
        client = Mock()
        client.connect.side_effect = paramiko.AuthenticationException("denied")
        mock_client_class.return_value = client

        with pytest.raises(RemoteAuthenticationError):
            SFTPBackend().connect("example.com", "deploy", "wrong")
        client.close.assert_called_once()


class TestSFTPSession:
    """Tests for SFTP error translation."""

    @pytest.fixture
    def sftp(self):
        return Mock()

    @pytest.fixture
    def session(self, sftp):
        return SFTPSession(Mock(), sftp)

    def test_read_missing_file(self, session, sftp):
        sftp.open.side_effect = FileNotFoundError(2, "No such file")

        with pytest.raises(RemoteNotFoundError):
            session.read_file("push-hashes")

    def test_write_file(self, session, sftp):
        stream = io.BytesIO(b"X")

        session.write_file("app.js", stream)

        sftp.putfo.assert_called_once_with(stream, "app.js")

    def test_make_existing_directory(self, session, sftp):
        sftp.mkdir.side_effect = OSError("Failure")
        sftp.stat.return_value = Mock(st_mode=0o40755)

        with pytest.raises(RemoteAlreadyExistsError):
            session.make_directory("assets")

    def test_make_directory_failure(self, session, sftp):
        sftp.mkdir.side_effect = PermissionError(13, "Permission denied")
        sftp.stat.side_effect = FileNotFoundError(2, "No such file")

        with pytest.raises(RemoteError) as exc_info:
            session.make_directory("assets")
        assert not isinstance(exc_info.value, RemoteAlreadyExistsError)

    def test_set_permissions(self, session, sftp):
        session.set_permissions("a.txt", 0o644)

        sftp.chmod.assert_called_once_with("a.txt", 0o644)

    def test_set_permissions_unsupported(self, session, sftp):
        sftp.chmod.side_effect = OSError("Operation unsupported")

        with pytest.raises(RemoteUnsupportedError):
            session.set_permissions("a.txt", 0o644)

    def test_delete_missing_file(self, session, sftp):
        sftp.remove.side_effect = FileNotFoundError(2, "No such file")
        sftp.stat.side_effect = FileNotFoundError(2, "No such file")

        with pytest.raises(RemoteNotFoundError):
            session.delete_file("old.txt")

    def test_delete_file_on_directory_is_not_found(self, session, sftp):
        sftp.remove.side_effect = OSError("Failure")
        sftp.stat.return_value = Mock(st_mode=0o40755)

        with pytest.raises(RemoteNotFoundError):
            session.delete_file("docs")

    def test_delete_missing_directory(self, session, sftp):
        sftp.rmdir.side_effect = FileNotFoundError(2, "No such file")

        with pytest.raises(RemoteNotFoundError):
            session.delete_directory("docs")

    def test_delete_non_empty_directory(self, session, sftp):
        sftp.rmdir.side_effect = OSError("Failure")

        with pytest.raises(RemoteError) as exc_info:
            session.delete_directory("docs")
        assert not isinstance(exc_info.value, RemoteNotFoundError)

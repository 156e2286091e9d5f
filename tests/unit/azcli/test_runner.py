"""
Unit tests for the Azure CLI runner.
"""

import subprocess

import pytest

from azac.azcli.exceptions import (
    AzNotInstalledError,
    CommandFailureError,
    NotLoggedInError,
    RemoteError,
    ResponseParseError,
)
from azac.azcli.runner import AzCli, describe_command


class FakeAz:
    """Stands in for subprocess.run, answering az commands from a table."""

    def __init__(self, logged_in=True):
        self.calls = []
        self.logged_in = logged_in
        self.responses = {}

    def respond(self, prefix, stdout="", returncode=0, stderr=""):
        self.responses[tuple(prefix)] = (returncode, stdout, stderr)

    def __call__(self, cmd, capture_output, text, check):
        args = list(cmd[1:])
        self.calls.append(args)
        if args[:2] == ["account", "show"]:
            code = 0 if self.logged_in else 1
            return subprocess.CompletedProcess(cmd, code, "{}", "")
        for prefix, (code, stdout, stderr) in self.responses.items():
            if tuple(args[:len(prefix)]) == prefix:
                return subprocess.CompletedProcess(cmd, code, stdout, stderr)
        return subprocess.CompletedProcess(cmd, 0, "", "")


@pytest.fixture
def fake_az(monkeypatch):
    """Patch subprocess.run with a FakeAz."""
    fake = FakeAz()
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


class TestDescribeCommand:
    """Test suite for command rendering."""

    def test_masks_value(self):
        """Test the argument after --value is masked."""
        rendered = describe_command(["keyvault", "secret", "set", "--name", "n", "--value", "s3cr3t"])

        assert "s3cr3t" not in rendered
        assert rendered.endswith("--value ***REDACTED***")

    def test_masks_inline_value(self):
        """Test a --value=... argument is masked."""
        rendered = describe_command(["appconfig", "kv", "set", "--key=k", "--value=-s3cr3t", "--yes"])

        assert "s3cr3t" not in rendered
        assert rendered == "appconfig kv set --key=k --value=***REDACTED*** --yes"

    def test_other_arguments_kept(self):
        """Test other arguments are rendered as given."""
        assert describe_command(["appconfig", "kv", "list"]) == "appconfig kv list"


class TestAzCli:
    """Test suite for AzCli."""

    def test_run_json(self, fake_az):
        """Test stdout is decoded as JSON and -o json is appended."""
        fake_az.respond(["appconfig", "kv", "list"], stdout='[{"key": "a"}]')

        result = AzCli().run_json(["appconfig", "kv", "list", "--name", "store"])

        assert result == [{"key": "a"}]
        assert fake_az.calls[-1][-2:] == ["-o", "json"]

    def test_login_checked_once(self, fake_az):
        """Test az account show runs once per runner."""
        runner = AzCli()
        runner.run_raw(["version"])
        runner.run_raw(["version"])

        account_checks = [call for call in fake_az.calls if call[:2] == ["account", "show"]]
        assert len(account_checks) == 1

    def test_not_logged_in(self, fake_az):
        """Test a failed account check is reported before the command runs."""
        fake_az.logged_in = False

        with pytest.raises(NotLoggedInError):
            AzCli().run_raw(["appconfig", "kv", "list"])

        assert all(call[:2] == ["account", "show"] for call in fake_az.calls)

    def test_login_check_disabled(self, fake_az):
        """Test the account check can be turned off."""
        fake_az.logged_in = False

        AzCli(check_login=False).run_raw(["version"])

        assert fake_az.calls == [["version"]]

    def test_command_failure(self, fake_az):
        """Test a non-zero exit becomes CommandFailureError with stderr."""
        fake_az.respond(["appconfig"], returncode=3, stderr="ERROR: boom\n")

        with pytest.raises(CommandFailureError) as exc_info:
            AzCli().run_json(["appconfig", "kv", "show"])

        assert exc_info.value.code == 3
        assert exc_info.value.stderr == "ERROR: boom"
        assert isinstance(exc_info.value, RemoteError)

    def test_empty_output(self, fake_az):
        """Test empty stdout decodes to None."""
        fake_az.respond(["appconfig"], stdout="  \n")

        assert AzCli().run_json(["appconfig", "kv", "delete"]) is None

    def test_invalid_json(self, fake_az):
        """Test undecodable stdout is a parse error."""
        fake_az.respond(["appconfig"], stdout="not json")

        with pytest.raises(ResponseParseError):
            AzCli().run_json(["appconfig", "kv", "list"])

    def test_az_not_installed(self, monkeypatch):
        """Test a missing executable is reported as such."""
        def missing(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        monkeypatch.setattr(subprocess, "run", missing)

        with pytest.raises(AzNotInstalledError) as exc_info:
            AzCli(executable="az-does-not-exist").run_raw(["version"])

        assert "az-does-not-exist" in exc_info.value.message

"""
Tests for the blobsas command-line interface.
"""

import json
from urllib.parse import parse_qs, urlsplit

import pytest
import yaml
from click.testing import CliRunner

from blobsas import __version__
from blobsas.cli import cli
from blobsas.sas.permissions import PermissionSet
from blobsas.sas.query_parameters import SASQueryParameters
from blobsas.sas.signer import SASSigner
from blobsas.url.parser import BlobURLParser
from blobsas.utils import parse_iso8601

BLOB_URL = "https://acct.blob.core.windows.net/mycontainer/dir/my%20blob.txt"
CONTAINER_URL = "https://acct.blob.core.windows.net/mycontainer"
EXPIRY = "2030-01-01T00:00:00Z"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep account settings from the caller's environment out of these tests."""
    for name in ("BLOBSAS_ACCOUNT_NAME", "BLOBSAS_ACCOUNT_KEY", "BLOBSAS_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestParseCommand:
    """Test the parse command."""

    def test_blob_url(self, runner):
        """Test parsing a blob URL into JSON."""
        result = runner.invoke(cli, ["parse", BLOB_URL + "?snapshot=2011-03-09T01:42:34.9360000Z&comp=x"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["account"] == "acct"
        assert data["container"] == "mycontainer"
        assert data["blob"] == "dir/my blob.txt"
        assert data["snapshot"] == "2011-03-09T01:42:34.9360000Z"
        assert data["sas"] is None
        assert data["parameters"] == [["comp", "x"]]

    def test_url_with_sas(self, runner):
        """SAS fields are reported separately."""
        result = runner.invoke(cli, ["parse", CONTAINER_URL + "?sv=2016-05-31&sr=c&sp=rl&sig=abc%3D"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["blob"] is None
        assert data["sas"] == {"sv": "2016-05-31", "sr": "c", "sp": "rl", "sig": "abc="}

    def test_malformed_url(self, runner):
        """Test that a malformed URL exits with an error."""
        result = runner.invoke(cli, ["parse", "not a url"])

        assert result.exit_code == 1
        assert "[ERROR]" in result.output
        assert "InvalidUri" in result.output


class TestSignCommand:
    """Test the sign command."""

    def test_sign_blob(self, runner, account_key):
        """Test signing a blob URL with an explicit key."""
        result = runner.invoke(cli, ["sign", BLOB_URL, "-p", "r", "-e", EXPIRY, "-k", account_key])

        assert result.exit_code == 0
        url = result.stdout.strip()
        parts = urlsplit(url)
        assert parts.path == "/mycontainer/dir/my%20blob.txt"
        query = parse_qs(parts.query)
        assert query["sr"] == ["b"]
        assert query["sp"] == ["r"]
        assert query["se"] == [EXPIRY]
        assert query["sv"] == ["2016-05-31"]
        assert "sig" in query

    def test_sign_matches_library(self, runner, account_key):
        """The CLI signs exactly what the library signs."""
        result = runner.invoke(cli, ["sign", CONTAINER_URL, "-p", "lr", "-e", EXPIRY, "-k", account_key])

        identity = BlobURLParser().parse(CONTAINER_URL)
        expected = SASSigner().sign(
            identity,
            account_key=account_key,
            permissions=PermissionSet.parse("rl"),
            expiry=parse_iso8601(EXPIRY),
        )
        signed = SASQueryParameters.from_query_string(urlsplit(result.stdout.strip()).query)
        assert signed == expected

    def test_sign_with_options(self, runner, account_key):
        """Every optional SAS field reaches the query string."""
        result = runner.invoke(cli, [
            "sign", CONTAINER_URL,
            "-p", "rl",
            "-s", "2029-12-31T00:00:00Z",
            "-e", EXPIRY,
            "--ip", "10.0.0.1-10.0.0.9",
            "--protocol", "https",
            "-i", "policy",
            "--content-type", "text/plain",
            "--sas-version", "2015-04-05",
            "-k", account_key,
        ])

        assert result.exit_code == 0
        query = parse_qs(urlsplit(result.stdout.strip()).query)
        assert query["st"] == ["2029-12-31T00:00:00Z"]
        assert query["sip"] == ["10.0.0.1-10.0.0.9"]
        assert query["spr"] == ["https"]
        assert query["si"] == ["policy"]
        assert query["rsct"] == ["text/plain"]
        assert query["sv"] == ["2015-04-05"]

    def test_key_from_config(self, runner, tmp_path, account_key):
        """The account key can come from the config file."""
        config_file = tmp_path / "blobsas.yaml"
        config_file.write_text(yaml.dump({
            "accounts": {"acct": account_key},
            "sas": {"protocol": "https,http"},
        }))

        result = runner.invoke(cli, ["sign", BLOB_URL, "-p", "rw", "-e", EXPIRY, "--config", str(config_file)])

        assert result.exit_code == 0
        query = parse_qs(urlsplit(result.stdout.strip()).query)
        assert query["spr"] == ["https,http"]
        assert query["sp"] == ["rw"]

    def test_default_expiry(self, runner, account_key):
        """Without -e the expiry comes from the configured lifetime."""
        result = runner.invoke(cli, ["sign", BLOB_URL, "-p", "r", "-k", account_key])

        assert result.exit_code == 0
        query = parse_qs(urlsplit(result.stdout.strip()).query)
        assert query["se"][0].endswith("Z")

    def test_debug_logging_kept_off_stdout(self, runner, tmp_path, account_key):
        """Signer debug logs go to stderr; stdout holds only the URL."""
        config_file = tmp_path / "blobsas.yaml"
        config_file.write_text(yaml.dump({
            "logging": {"module_levels": {"blobsas.sas.signer": "DEBUG"}},
        }))

        result = runner.invoke(
            cli, ["sign", BLOB_URL, "-p", "r", "-e", EXPIRY, "-k", account_key, "--config", str(config_file)]
        )

        assert result.exit_code == 0
        assert result.stdout.strip().startswith(BLOB_URL + "?")
        assert len(result.stdout.strip().splitlines()) == 1
        assert "Signed service SAS" in result.stderr

    def test_missing_key(self, runner):
        """Test signing without any account key."""
        result = runner.invoke(cli, ["sign", BLOB_URL, "-p", "r", "-e", EXPIRY])

        assert result.exit_code == 1
        assert "No account key for 'acct'" in result.output

    def test_list_on_blob(self, runner, account_key):
        """List is not a blob permission."""
        result = runner.invoke(cli, ["sign", BLOB_URL, "-p", "rl", "-e", EXPIRY, "-k", account_key])

        assert result.exit_code == 1
        assert "InvalidQueryParameterValue" in result.output

    def test_invalid_key(self, runner):
        """A key that is not base64 is rejected."""
        result = runner.invoke(cli, ["sign", BLOB_URL, "-p", "r", "-e", EXPIRY, "-k", "not base64!"])

        assert result.exit_code == 1
        assert "InvalidAuthenticationInfo" in result.output

    def test_start_after_expiry(self, runner, account_key):
        """Test that start must precede expiry."""
        result = runner.invoke(cli, [
            "sign", BLOB_URL, "-p", "r", "-s", EXPIRY, "-e", "2029-01-01T00:00:00Z", "-k", account_key,
        ])

        assert result.exit_code == 1
        assert "[ERROR]" in result.output

    def test_bad_time(self, runner, account_key):
        """Times must be UTC ISO-8601."""
        result = runner.invoke(cli, ["sign", BLOB_URL, "-p", "r", "-e", "tomorrow", "-k", account_key])

        assert result.exit_code == 2
        assert "ISO-8601" in result.output


class TestConfigCommand:
    """Test the config command."""

    def test_show_config_redacts_keys(self, runner, tmp_path):
        """Test that account keys are redacted."""
        config_file = tmp_path / "blobsas.yaml"
        config_file.write_text(yaml.dump({"accounts": {"acct": "c2VjcmV0"}}))

        result = runner.invoke(cli, ["config", "--config", str(config_file)])

        assert result.exit_code == 0
        data = yaml.safe_load(result.stdout)
        assert data["accounts"] == {"acct": "***REDACTED***"}
        assert data["sas"]["version"] == "2016-05-31"
        assert "c2VjcmV0" not in result.output

    def test_invalid_config(self, runner, tmp_path):
        """Test that an invalid config file exits with an error."""
        config_file = tmp_path / "blobsas.yaml"
        config_file.write_text(yaml.dump({"sas": {"version": "latest"}}))

        result = runner.invoke(cli, ["config", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_config_syntax_error(self, runner, tmp_path):
        """A YAML syntax error is reported without a traceback."""
        config_file = tmp_path / "blobsas.yaml"
        config_file.write_text("sas: [unclosed\n")

        result = runner.invoke(cli, ["config", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "[ERROR] Invalid configuration" in result.stderr
        assert "Traceback" not in result.output


class TestVersionCommand:
    """Test version reporting."""

    def test_version_command(self, runner):
        result = runner.invoke(cli, ["version"])

        assert result.exit_code == 0
        assert result.stdout.strip() == f"blobsas version {__version__}"

    def test_version_option(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

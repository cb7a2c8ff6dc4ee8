from unittest.mock import patch

import yaml
from click.testing import CliRunner

from gaiax_credentials.cli import cli


def test_cli_group():
    """Test the main CLI group."""
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "CLI to help in the process of building and signing Gaia-X credentials" in result.output
    assert "did" in result.output
    assert "credentials" in result.output
    assert "vp" in result.output


def test_cli_version():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


@patch("gaiax_credentials.cli.configure_logging")
def test_cli_loads_config_file(mock_configure_logging, config_file):
    """The settings built from --config reach the subcommand."""
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(config_file), "--log-level", "DEBUG", "did"])

    assert result.exit_code == 0
    assert "Generated DID: did:web:example.com" in result.output
    settings = mock_configure_logging.call_args[0][0]
    assert settings.log_level == "DEBUG"
    assert settings.legal_name == "Example Corp S.L."


def test_cli_invalid_config(mocker, tmp_path):
    mock_configure_logging = mocker.patch("gaiax_credentials.cli.configure_logging")
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.safe_dump({"registration_number_type": "passport"}))

    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(config_file), "credentials"])

    assert result.exit_code == 1
    assert "invalid configuration" in result.output
    mock_configure_logging.assert_not_called()


def test_cli_missing_config_file(tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(tmp_path / "nope.yaml"), "did"])

    assert result.exit_code == 2

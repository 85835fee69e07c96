"""Tests for the ambient-proxy command."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from ambient_proxy.server.main import build_config, main


def invoke(args: list[str], env: dict[str, str] | None = None):
    """Run the CLI with the server and logging stubbed out."""
    runner = CliRunner()
    with (
        patch("ambient_proxy.server.main.run_server", new=MagicMock(return_value=None)) as run_server,
        patch("ambient_proxy.server.main.asyncio.run") as asyncio_run,
        patch("ambient_proxy.server.main.configure_logging") as configure_logging,
    ):
        result = runner.invoke(main, args, env=env)
    return result, run_server, asyncio_run, configure_logging


class TestCLIBasics:
    """Basic CLI tests."""

    def test_help(self):
        """Test --help shows help message."""
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "Run the Ambient proxy manager." in result.output
        assert "--listen" in result.output
        assert "--geoip-path" in result.output
        assert "--trust-country-header" in result.output

    def test_defaults(self):
        result, run_server, asyncio_run, configure_logging = invoke([])

        assert result.exit_code == 0, result.output
        assert "PROXY MANAGER" in result.output
        config = run_server.call_args.args[0]
        assert config.listen == "0.0.0.0:8080"
        assert config.trust_country_header is False
        asyncio_run.assert_called_once()
        configure_logging.assert_called_once_with("stackdriver", "info")

    def test_options(self):
        result, run_server, _, configure_logging = invoke(
            [
                "--listen", "127.0.0.1:9000",
                "--geoip-path", "/data/country.mmdb",
                "--us-proxy", "us.example:7000",
                "--trust-country-header",
                "--log-format", "console",
                "--log-level", "debug",
            ]
        )

        assert result.exit_code == 0, result.output
        config = run_server.call_args.args[0]
        assert config.listen == "127.0.0.1:9000"
        assert config.geoip_path == "/data/country.mmdb"
        assert config.us_proxy == "us.example:7000"
        assert config.trust_country_header is True
        assert "Country header: trusted" in result.output
        configure_logging.assert_called_once_with("console", "debug")

    def test_log_format_from_env(self):
        result, _, _, configure_logging = invoke([], env={"LOG_FORMAT": "bunyan"})

        assert result.exit_code == 0, result.output
        configure_logging.assert_called_once_with("bunyan", "info")

    def test_invalid_log_format(self):
        result, run_server, _, _ = invoke(["--log-format", "xml"])

        assert result.exit_code != 0
        run_server.assert_not_called()

    def test_invalid_listen(self):
        result, run_server, _, _ = invoke(["--listen", "localhost:http"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        run_server.assert_not_called()


class TestConfigFile:
    """Tests for --config handling."""

    def test_config_file(self, tmp_path):
        path = tmp_path / "proxy.yaml"
        path.write_text('listen: "127.0.0.1:9100"\neu_proxy: "eu.example:7000"\n')

        result, run_server, _, _ = invoke(["--config", str(path)])

        assert result.exit_code == 0, result.output
        config = run_server.call_args.args[0]
        assert config.listen == "127.0.0.1:9100"
        assert config.eu_proxy == "eu.example:7000"

    def test_flags_override_config_file(self, tmp_path):
        path = tmp_path / "proxy.toml"
        path.write_text('listen = "127.0.0.1:9100"\n')

        config = build_config(str(path), listen="127.0.0.1:9200", geoip_path=None)
        assert config.listen == "127.0.0.1:9200"

    def test_missing_config_file(self, tmp_path):
        result, run_server, _, _ = invoke(["--config", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 1
        assert "Config file not found" in result.output
        run_server.assert_not_called()

    def test_config_file_wins_over_environment(self, tmp_path):
        path = tmp_path / "proxy.yaml"
        path.write_text('listen: "127.0.0.1:9100"\nlog_format: "console"\n')

        result, run_server, _, configure_logging = invoke(
            ["--config", str(path)],
            env={"AMBIENT_PROXY_LISTEN": "127.0.0.1:9300", "LOG_FORMAT": "bunyan"},
        )

        assert result.exit_code == 0, result.output
        assert run_server.call_args.args[0].listen == "127.0.0.1:9100"
        configure_logging.assert_called_once_with("console", "info")

    def test_environment_fills_gaps_in_config_file(self, tmp_path):
        path = tmp_path / "proxy.yaml"
        path.write_text('listen: "127.0.0.1:9100"\n')

        result, run_server, _, _ = invoke(
            ["--config", str(path)],
            env={"AMBIENT_PROXY_EU_PROXY": "eu.example:7000"},
        )

        assert result.exit_code == 0, result.output
        config = run_server.call_args.args[0]
        assert config.listen == "127.0.0.1:9100"
        assert config.eu_proxy == "eu.example:7000"

    def test_flags_win_over_environment(self):
        result, run_server, _, _ = invoke(
            ["--listen", "127.0.0.1:9200"],
            env={"AMBIENT_PROXY_LISTEN": "127.0.0.1:9300"},
        )

        assert result.exit_code == 0, result.output
        assert run_server.call_args.args[0].listen == "127.0.0.1:9200"

# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
"""
Test start-up configuration loading and validation.
"""

import itertools
from pathlib import Path

import pytest
from pydantic import ValidationError

from x402_demo_server.config import (
    DEFAULT_PUBLIC_DIR,
    REQUIRED_ENV_VARS,
    InvalidSettingsError,
    MissingSettingsError,
    ServerSettings,
    load_config,
    load_config_or_exit,
)


class TestLoadConfig:
    """Test reading the payment policy from the environment."""

    def test_complete_environment(self, policy_env):
        cfg = load_config(policy_env)

        assert cfg.payment_address == policy_env["PAYMENT_ADDRESS"]
        assert cfg.token_decimals == 18
        assert cfg.max_timeout_seconds == 300
        assert cfg.payment_amount == "1000000000000000000"
        assert cfg.facilitator_contract == policy_env["FACILITATOR_CONTRACT"]
        assert cfg.description == "Test access - 1000000000000000000 USD1"

    @pytest.mark.parametrize("name", REQUIRED_ENV_VARS)
    def test_each_missing_variable_is_named(self, policy_env, name):
        del policy_env[name]

        with pytest.raises(MissingSettingsError) as exc:
            load_config(policy_env)

        assert exc.value.missing == [name]

    @pytest.mark.parametrize(
        "removed",
        [
            ("PAYMENT_ADDRESS", "TOKEN_ADDRESS"),
            ("TOKEN_DECIMALS", "MAX_TIMEOUT_SECONDS", "FACILITATOR_URL"),
            ("NETWORK", "NETWORK_NAME", "AUTHORIZATION_TYPE", "TOKEN_VERSION"),
            tuple(REQUIRED_ENV_VARS),
        ],
    )
    def test_all_missing_variables_reported_in_one_pass(self, policy_env, removed):
        for name in removed:
            del policy_env[name]

        with pytest.raises(MissingSettingsError) as exc:
            load_config(policy_env)

        assert set(exc.value.missing) == set(removed)

    def test_every_pair_of_missing_variables(self, policy_env):
        for pair in itertools.combinations(REQUIRED_ENV_VARS, 2):
            env = {k: v for k, v in policy_env.items() if k not in pair}
            with pytest.raises(MissingSettingsError) as exc:
                load_config(env)
            assert set(exc.value.missing) == set(pair)

    def test_empty_value_counts_as_missing(self, policy_env):
        policy_env["TOKEN_SYMBOL"] = ""

        with pytest.raises(MissingSettingsError) as exc:
            load_config(policy_env)

        assert exc.value.missing == ["TOKEN_SYMBOL"]

    def test_permit_requires_facilitator_contract(self, policy_env):
        del policy_env["FACILITATOR_CONTRACT"]

        with pytest.raises(MissingSettingsError) as exc:
            load_config(policy_env)

        assert exc.value.missing == ["FACILITATOR_CONTRACT"]
        assert "permit" in str(exc.value)

    def test_permit_with_empty_facilitator_contract(self, policy_env):
        policy_env["FACILITATOR_CONTRACT"] = ""

        with pytest.raises(MissingSettingsError):
            load_config(policy_env)

    @pytest.mark.parametrize("scheme", ["eip3009", "transfer", "Permit"])
    def test_other_schemes_do_not_need_facilitator_contract(self, policy_env, scheme):
        policy_env["AUTHORIZATION_TYPE"] = scheme
        del policy_env["FACILITATOR_CONTRACT"]

        cfg = load_config(policy_env)

        assert cfg.authorization_type == scheme
        assert cfg.facilitator_contract is None

    def test_facilitator_contract_allowed_under_other_schemes(self, policy_env):
        policy_env["AUTHORIZATION_TYPE"] = "eip3009"

        cfg = load_config(policy_env)

        assert cfg.facilitator_contract == policy_env["FACILITATOR_CONTRACT"]

    def test_missing_variables_reported_before_permit_rule(self, policy_env):
        del policy_env["FACILITATOR_CONTRACT"]
        del policy_env["NETWORK"]

        with pytest.raises(MissingSettingsError) as exc:
            load_config(policy_env)

        assert exc.value.missing == ["NETWORK"]

    @pytest.mark.parametrize(
        "name,value",
        [
            ("TOKEN_DECIMALS", "eighteen"),
            ("TOKEN_DECIMALS", "6.5"),
            ("TOKEN_DECIMALS", "1_8"),
            ("TOKEN_DECIMALS", "\u0661\u0668"),
            ("MAX_TIMEOUT_SECONDS", "3e2"),
            ("TOKEN_DECIMALS", "-1"),
            ("MAX_TIMEOUT_SECONDS", "soon"),
            ("MAX_TIMEOUT_SECONDS", "0"),
        ],
    )
    def test_bad_numeric_settings_are_rejected(self, policy_env, name, value):
        policy_env[name] = value

        with pytest.raises(InvalidSettingsError) as exc:
            load_config(policy_env)

        assert list(exc.value.invalid) == [name]

    def test_all_bad_numeric_settings_reported(self, policy_env):
        policy_env["TOKEN_DECIMALS"] = "x"
        policy_env["MAX_TIMEOUT_SECONDS"] = "y"

        with pytest.raises(InvalidSettingsError) as exc:
            load_config(policy_env)

        assert set(exc.value.invalid) == {"TOKEN_DECIMALS", "MAX_TIMEOUT_SECONDS"}

    def test_config_is_immutable(self, policy_config):
        with pytest.raises(ValidationError):
            policy_config.payment_amount = "1"


class TestLoadConfigOrExit:
    """Test fatal start-up behaviour."""

    def test_returns_config_when_valid(self, policy_env):
        assert load_config_or_exit(policy_env).network == "bsc"

    def test_exits_with_status_one_listing_every_missing_name(self, policy_env, capsys):
        removed = ["TOKEN_NAME", "PAYMENT_AMOUNT", "FACILITATOR_URL"]
        for name in removed:
            del policy_env[name]

        with pytest.raises(SystemExit) as exc:
            load_config_or_exit(policy_env)

        assert exc.value.code == 1
        err = capsys.readouterr().err
        assert "Missing required environment variables" in err
        for name in removed:
            assert f"  - {name}" in err

    def test_exits_when_permit_lacks_contract(self, policy_env, capsys):
        del policy_env["FACILITATOR_CONTRACT"]

        with pytest.raises(SystemExit) as exc:
            load_config_or_exit(policy_env)

        assert exc.value.code == 1
        assert "FACILITATOR_CONTRACT" in capsys.readouterr().err

    def test_exits_on_non_numeric_timeout(self, policy_env, capsys):
        policy_env["MAX_TIMEOUT_SECONDS"] = "abc"

        with pytest.raises(SystemExit) as exc:
            load_config_or_exit(policy_env)

        assert exc.value.code == 1
        assert "MAX_TIMEOUT_SECONDS" in capsys.readouterr().err


class TestServerSettings:
    """Test process-level settings."""

    def test_defaults(self, monkeypatch):
        for name in ("HOST", "PORT", "LOG_LEVEL", "PUBLIC_DIR", "OTEL_EXPORTER_OTLP_ENDPOINT", "OTEL_SERVICE_NAME"):
            monkeypatch.delenv(name, raising=False)

        settings = ServerSettings()

        assert settings.port == 3000
        assert settings.host == "0.0.0.0"
        assert settings.log_level == "INFO"
        assert settings.public_dir == DEFAULT_PUBLIC_DIR
        assert (DEFAULT_PUBLIC_DIR / "favicon.svg").is_file()
        assert settings.otel_endpoint is None
        assert settings.service_name == "x402-demo-server"

    def test_env_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("PUBLIC_DIR", str(tmp_path))

        settings = ServerSettings()

        assert settings.port == 8080
        assert settings.log_level == "DEBUG"
        assert settings.public_dir == Path(tmp_path)

from pathlib import Path

import pytest

from ord_inscriber.config import (
    MAINNET,
    SIGNET,
    TESTNET,
    ConfigurationError,
    InscriberConfig,
    get_network,
    load_inscriber_config,
    resolve_network,
)


def test_load_config_prefers_environment_over_yaml(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
        inscriber:
          network: signet
          postage: 546
          fee_rate_sat_vb: 3.5
        """
    )

    env_map = {
        "ORD_INSCRIBER_NETWORK": "mainnet",
        "ORD_INSCRIBER_POSTAGE": "1000",
    }

    config = load_inscriber_config(config_path=config_path, env=env_map)

    assert isinstance(config, InscriberConfig)
    assert config.network == MAINNET
    assert config.postage == 1000
    assert config.fee_rate_sat_vb == 3.5


def test_load_config_reads_yaml_when_env_missing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "default.yaml"
    monkeypatch.setattr("ord_inscriber.config.DEFAULT_CONFIG_PATH", config_path)
    config_path.write_text("inscriber:\n  network: signet\n  postage: 600\n")

    config = load_inscriber_config(env={})

    assert config.network == SIGNET
    assert config.postage == 600
    assert config.fee_rate_sat_vb is None


def test_defaults_without_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("ord_inscriber.config.DEFAULT_CONFIG_PATH", tmp_path / "missing.yaml")

    config = load_inscriber_config(env={})

    assert config == InscriberConfig(network=TESTNET, postage=10000, fee_rate_sat_vb=None)


def test_overrides_win(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("ord_inscriber.config.DEFAULT_CONFIG_PATH", tmp_path / "missing.yaml")

    config = load_inscriber_config(
        env={"ORD_INSCRIBER_NETWORK": "mainnet"},
        overrides={"network": "regtest", "fee_rate_sat_vb": 1},
    )

    assert config.network.hrp == "bcrt"
    assert config.fee_rate_sat_vb == 1.0


def test_explicit_missing_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_inscriber_config(config_path=tmp_path / "nope.yaml", env={})


@pytest.mark.parametrize(
    "env_map",
    [
        {"ORD_INSCRIBER_NETWORK": "litecoin"},
        {"ORD_INSCRIBER_POSTAGE": "lots"},
        {"ORD_INSCRIBER_POSTAGE": "0"},
        {"ORD_INSCRIBER_FEE_RATE": "-2"},
    ],
)
def test_invalid_values_raise(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, env_map) -> None:
    monkeypatch.setattr("ord_inscriber.config.DEFAULT_CONFIG_PATH", tmp_path / "missing.yaml")

    with pytest.raises(ConfigurationError):
        load_inscriber_config(env=env_map)


def test_non_mapping_section_is_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("inscriber: [1, 2]\n")

    with pytest.raises(ConfigurationError):
        load_inscriber_config(config_path=config_path, env={})


def test_get_network_accepts_names_and_instances() -> None:
    assert get_network("TestNet") is TESTNET
    assert get_network(MAINNET) is MAINNET


def test_resolve_network_prefers_explicit_value() -> None:
    config = InscriberConfig(network=MAINNET)

    assert resolve_network(None, config) == MAINNET
    assert resolve_network("signet", config) == SIGNET
    assert resolve_network(None) == TESTNET

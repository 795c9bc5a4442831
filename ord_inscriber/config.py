"""Network parameters and the shared configuration loader."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigurationError

__all__ = [
    "ConfigurationError",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_POSTAGE",
    "InscriberConfig",
    "MAINNET",
    "NETWORKS",
    "Network",
    "REGTEST",
    "SIGNET",
    "TESTNET",
    "get_network",
    "load_inscriber_config",
    "resolve_network",
]


@dataclass(frozen=True)
class Network:
    """Chain parameters needed to render and resolve addresses.

    ``library_name`` is the bitcoin-utils network whose base58 prefixes the
    chain uses; signet shares testnet's.
    """

    name: str
    hrp: str
    library_name: str


MAINNET = Network(name="mainnet", hrp="bc", library_name="mainnet")
TESTNET = Network(name="testnet", hrp="tb", library_name="testnet")
SIGNET = Network(name="signet", hrp="tb", library_name="testnet")
REGTEST = Network(name="regtest", hrp="bcrt", library_name="regtest")

NETWORKS: dict[str, Network] = {net.name: net for net in (MAINNET, TESTNET, SIGNET, REGTEST)}

# Sats carried by the inscription output unless the caller says otherwise.
DEFAULT_POSTAGE = 10000

DEFAULT_CONFIG_PATH = Path.home() / ".ord-inscriber.yaml"

ENV_NETWORK = "ORD_INSCRIBER_NETWORK"
ENV_POSTAGE = "ORD_INSCRIBER_POSTAGE"
ENV_FEE_RATE = "ORD_INSCRIBER_FEE_RATE"


def get_network(name: str | Network) -> Network:
    """Resolve a network by name; ``Network`` instances pass through."""

    if isinstance(name, Network):
        return name
    try:
        return NETWORKS[str(name).strip().lower()]
    except KeyError as exc:
        choices = ", ".join(sorted(NETWORKS))
        raise ConfigurationError(f"Unknown network {name!r}; expected one of: {choices}") from exc


@dataclass(frozen=True)
class InscriberConfig:
    """Resolved settings threaded explicitly through builder calls."""

    network: Network = TESTNET
    postage: int = DEFAULT_POSTAGE
    fee_rate_sat_vb: float | None = None


def resolve_network(network: str | Network | None, config: InscriberConfig | None = None) -> Network:
    """Pick the explicit ``network`` if given, else the one from ``config``."""

    if network is not None:
        return get_network(network)
    return (config or InscriberConfig()).network


def _load_config_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigurationError(f"Config file not found: {path}")
        return {}

    try:
        loaded = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:  # pragma: no cover - delegated to PyYAML
        raise ConfigurationError(f"Invalid YAML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Expected {path} to contain a YAML object with an 'inscriber' section")
    return loaded


def _coerce_postage(raw: Any, *, source: str) -> int | None:
    if raw is None:
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid postage in {source}: {raw}") from exc
    if value <= 0:
        raise ConfigurationError(f"Postage in {source} must be positive, got {value}")
    return value


def _coerce_fee_rate(raw: Any, *, source: str) -> float | None:
    if raw is None:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid fee rate in {source}: {raw}") from exc
    if value < 0:
        raise ConfigurationError(f"Fee rate in {source} must not be negative, got {value}")
    return value


def _first_value(*values: Any, default: Any = None) -> Any:
    for value in values:
        if value is not None:
            return value
    return default


def load_inscriber_config(
    *,
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> InscriberConfig:
    """Load inscriber settings from overrides, environment and optional YAML.

    Precedence is ``overrides`` first, then ``ORD_INSCRIBER_*`` environment
    variables, then the ``inscriber`` section of the YAML file, then the
    built-in defaults. The file is only required when a path is passed.
    """

    env_map = os.environ if env is None else env
    path = Path(config_path).expanduser() if config_path is not None else DEFAULT_CONFIG_PATH

    file_config = _load_config_file(path, required=config_path is not None)
    section = file_config.get("inscriber", {})
    if not isinstance(section, dict):
        raise ConfigurationError(f"Expected 'inscriber' to be a mapping in {path}")

    override_map = dict(overrides or {})

    network_name = _first_value(
        override_map.get("network"),
        env_map.get(ENV_NETWORK),
        section.get("network"),
        default=TESTNET.name,
    )
    postage = _first_value(
        _coerce_postage(override_map.get("postage"), source="overrides"),
        _coerce_postage(env_map.get(ENV_POSTAGE), source="environment"),
        _coerce_postage(section.get("postage"), source=f"{path} inscriber.postage"),
        default=DEFAULT_POSTAGE,
    )
    fee_rate = _first_value(
        _coerce_fee_rate(override_map.get("fee_rate_sat_vb"), source="overrides"),
        _coerce_fee_rate(env_map.get(ENV_FEE_RATE), source="environment"),
        _coerce_fee_rate(section.get("fee_rate_sat_vb"), source=f"{path} inscriber.fee_rate_sat_vb"),
    )

    return InscriberConfig(
        network=get_network(network_name),
        postage=postage,
        fee_rate_sat_vb=fee_rate,
    )

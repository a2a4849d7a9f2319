"""Config loader for bridgesend."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, MutableMapping, Optional

from web3 import Web3

DEFAULT_CONFIG_PATH = Path("config.json")
CONFIG_PATH_ENV = "BRIDGESEND_CONFIG"
EXPLORER_KEY_ENV_PREFIX = "ETHERSCAN_API_KEY_"


class ConfigError(ValueError):
    """Raised when configuration data is invalid or missing."""


def _require_keys(data: Mapping[str, Any], keys: Iterable[str], context: str) -> None:
    missing = [key for key in keys if key not in data]
    if missing:
        raise ConfigError(f"{context} missing required keys: {', '.join(missing)}")


def _to_checksum(value: str, *, field_name: str) -> str:
    try:
        return Web3.to_checksum_address(value)
    except Exception as exc:  # web3 raises ValueError for malformed inputs
        raise ConfigError(f"Invalid address for {field_name}: {value}") from exc


@dataclass(frozen=True)
class ChainConfig:
    """Configuration for a blockchain network."""

    slug: str
    network_id: int
    name: str
    is_root: bool = False
    rpc_url: Optional[str] = None

    def ensure_rpc_url(self) -> str:
        """Return the RPC URL or raise if it is missing."""
        if not self.rpc_url:
            raise ConfigError(f"RPC URL required for {self.slug} but not configured")
        return self.rpc_url


@dataclass(frozen=True)
class TokenConfig:
    """Bridgeable token details."""

    symbol: str
    decimals: int
    is_native: bool = False
    addresses: Mapping[str, str] = field(default_factory=dict)
    bridges: Mapping[str, str] = field(default_factory=dict)

    def bridge_address(self, slug: str) -> str:
        """Return the bridge contract used to send this token from ``slug``."""
        try:
            return self.bridges[slug]
        except KeyError as exc:
            raise ConfigError(f"No {self.symbol} bridge configured on {slug}") from exc


@dataclass(frozen=True)
class DefaultsConfig:
    """Default operational parameters."""

    deadline_minutes: int
    fee_id: str
    api_timeout: int
    poll_interval: float
    receipt_timeout: float
    replacement_scan_blocks: int
    status_max_attempts: int


@dataclass(frozen=True)
class ExplorerConfig:
    """Etherscan-compatible explorer endpoint for one network."""

    api_url: str
    api_key: Optional[str] = None


@dataclass(frozen=True)
class ApiUrlsConfig:
    """HTTP endpoints used while tracking transfers."""

    transfer_status: str
    explorers: Mapping[str, ExplorerConfig] = field(default_factory=dict)


@dataclass(frozen=True)
class SenderConfig:
    """Typed wrapper around the bridgesend configuration."""

    chains: Mapping[str, ChainConfig]
    tokens: Mapping[str, TokenConfig]
    defaults: DefaultsConfig
    api_urls: ApiUrlsConfig
    raw: Mapping[str, Any] = field(repr=False)

    @property
    def root_chain(self) -> ChainConfig:
        return next(chain for chain in self.chains.values() if chain.is_root)

    def chain(self, slug: str) -> ChainConfig:
        """Return the chain configured under ``slug``."""
        try:
            return self.chains[slug]
        except KeyError as exc:
            raise ConfigError(f"Unknown chain: {slug}") from exc

    def token(self, symbol: str) -> TokenConfig:
        """Return the token configured under ``symbol``."""
        try:
            return self.tokens[symbol]
        except KeyError as exc:
            raise ConfigError(f"Unknown token: {symbol}") from exc

    def to_dict(self) -> Dict[str, Any]:
        """Return the original configuration mapping."""
        return dict(self.raw)


def _load_json(path: Path) -> MutableMapping[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file contains invalid JSON: {path}") from exc


def _parse_chains(chains: Mapping[str, Any]) -> Dict[str, ChainConfig]:
    result: Dict[str, ChainConfig] = {}
    for slug, chain_data in chains.items():
        _require_keys(chain_data, ["network_id"], f"chain {slug}")
        result[slug] = ChainConfig(
            slug=slug,
            network_id=int(chain_data["network_id"]),
            name=str(chain_data.get("name", slug.capitalize())),
            is_root=bool(chain_data.get("is_root", False)),
            rpc_url=chain_data.get("rpc_url"),
        )
    if not result:
        raise ConfigError("chains cannot be empty")

    roots = [chain.slug for chain in result.values() if chain.is_root]
    if len(roots) != 1:
        raise ConfigError(f"exactly one root chain required, found {len(roots)}")
    return result


def _parse_tokens(tokens: Mapping[str, Any], chains: Mapping[str, ChainConfig]) -> Dict[str, TokenConfig]:
    result: Dict[str, TokenConfig] = {}
    for symbol, token_data in tokens.items():
        _require_keys(token_data, ["decimals", "bridges"], f"token {symbol}")
        bridges = {}
        for slug, address in token_data["bridges"].items():
            if slug not in chains:
                raise ConfigError(f"token {symbol} references unknown chain {slug}")
            bridges[slug] = _to_checksum(address, field_name=f"{symbol} bridge on {slug}")
        addresses = {
            slug: _to_checksum(address, field_name=f"{symbol} address on {slug}")
            for slug, address in token_data.get("addresses", {}).items()
        }
        decimals = int(token_data["decimals"])
        if decimals < 0:
            raise ConfigError(f"token {symbol} decimals must not be negative")
        result[symbol] = TokenConfig(
            symbol=symbol,
            decimals=decimals,
            is_native=bool(token_data.get("is_native", False)),
            addresses=addresses,
            bridges=bridges,
        )
    return result


def _parse_explorers(explorers: Mapping[str, Any], env: Mapping[str, str]) -> Dict[str, ExplorerConfig]:
    result: Dict[str, ExplorerConfig] = {}
    for slug, explorer_data in explorers.items():
        _require_keys(explorer_data, ["api_url"], f"explorer {slug}")
        api_key = env.get(f"{EXPLORER_KEY_ENV_PREFIX}{slug.upper()}") or explorer_data.get("api_key")
        result[slug] = ExplorerConfig(api_url=str(explorer_data["api_url"]).rstrip("/"), api_key=api_key or None)
    return result


def load_config(config_path: Optional[Path] = None, *, env: Optional[Mapping[str, str]] = None) -> SenderConfig:
    """Load and validate bridgesend configuration data."""
    env = os.environ if env is None else env
    if config_path is None:
        config_path = Path(env[CONFIG_PATH_ENV]) if env.get(CONFIG_PATH_ENV) else DEFAULT_CONFIG_PATH
    data = _load_json(config_path)

    _require_keys(data, ["chains", "tokens", "defaults", "api_urls"], "config")

    chains = _parse_chains(data["chains"])
    tokens = _parse_tokens(data["tokens"], chains)

    defaults = data["defaults"]
    _require_keys(defaults, ["deadline_minutes", "api_timeout"], "defaults")
    defaults_config = DefaultsConfig(
        deadline_minutes=int(defaults["deadline_minutes"]),
        fee_id=str(defaults.get("fee_id", "123456")),
        api_timeout=int(defaults["api_timeout"]),
        poll_interval=float(defaults.get("poll_interval", 5.0)),
        receipt_timeout=float(defaults.get("receipt_timeout", 600.0)),
        replacement_scan_blocks=int(defaults.get("replacement_scan_blocks", 20)),
        status_max_attempts=int(defaults.get("status_max_attempts", 360)),
    )
    if defaults_config.deadline_minutes <= 0:
        raise ConfigError("defaults.deadline_minutes must be positive")
    if not defaults_config.fee_id.isdigit():
        raise ConfigError("defaults.fee_id must contain only digits")
    if defaults_config.api_timeout <= 0:
        raise ConfigError("defaults.api_timeout must be positive")
    if defaults_config.poll_interval <= 0:
        raise ConfigError("defaults.poll_interval must be positive")
    if defaults_config.status_max_attempts <= 0:
        raise ConfigError("defaults.status_max_attempts must be positive")

    api_urls = data["api_urls"]
    _require_keys(api_urls, ["transfer_status"], "api_urls")
    api_config = ApiUrlsConfig(
        transfer_status=str(api_urls["transfer_status"]),
        explorers=_parse_explorers(api_urls.get("explorers", {}), env),
    )

    return SenderConfig(
        chains=chains,
        tokens=tokens,
        defaults=defaults_config,
        api_urls=api_config,
        raw=data,
    )


__all__ = [
    "ApiUrlsConfig",
    "ChainConfig",
    "ConfigError",
    "DefaultsConfig",
    "ExplorerConfig",
    "SenderConfig",
    "TokenConfig",
    "load_config",
]

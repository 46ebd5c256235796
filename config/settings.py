from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Dict, Optional
from pathlib import Path
from web3 import Web3
import json


# Open USDT, the bridge asset routed through the Superchain universal router
DEFAULT_BRIDGE_ASSET_ADDRESS = "0x1217BfE6c773EEC6cc4A38b5Dc45B92292B6E189"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Database settings
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "superswap_indexer"
    store_connect_attempts: int = 5

    # Attribution settings
    bridge_asset_address: str = DEFAULT_BRIDGE_ASSET_ADDRESS.lower()

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator('bridge_asset_address', mode='before')
    @classmethod
    def normalize_bridge_asset_address(cls, v):
        """Reject malformed addresses and store the lowercase form used for comparisons."""
        if not isinstance(v, str) or not Web3.is_address(v):
            raise ValueError(f"Invalid bridge asset address: {v!r}")
        return v.lower()

    class Config:
        env_file = ".env"
        env_prefix = "SUPERSWAP_"


class ChainConfig:
    """Chain-specific configuration."""

    def __init__(
        self,
        chain_id: int,
        name: str,
        domain: int,
        contracts: Dict[str, str],
        start_block: int = 0,
        features: Optional[Dict] = None
    ):
        self.chain_id = chain_id
        self.name = name
        self.domain = domain  # Messaging protocol domain id for this chain
        self.contracts = contracts  # mailbox, universal_router
        self.start_block = start_block
        self.features = features or {}

    @property
    def mailbox_address(self) -> Optional[str]:
        return self.contracts.get("mailbox")

    @property
    def router_address(self) -> Optional[str]:
        return self.contracts.get("universal_router")

    @classmethod
    def load_from_file(cls, config_path: Path) -> "ChainConfig":
        """Load chain configuration from JSON file."""
        with open(config_path, 'r') as f:
            data = json.load(f)

        return cls(
            chain_id=data["chain_id"],
            name=data["name"],
            domain=data.get("domain", data["chain_id"]),
            contracts=data.get("contracts", {}),
            start_block=data.get("start_block", 0),
            features=data.get("features")
        )


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()


def load_chain_configs(config_dir: Optional[Path] = None) -> Dict[int, ChainConfig]:
    """Load all chain configurations from JSON files in the chains/ directory."""
    configs = {}
    config_dir = config_dir or Path(__file__).parent / "chains"

    if not config_dir.exists():
        raise FileNotFoundError(
            f"Chain configuration directory not found: {config_dir}. "
            "Please create the directory and add JSON configuration files."
        )

    json_files = sorted(config_dir.glob("*.json"))
    if not json_files:
        raise FileNotFoundError(
            f"No JSON configuration files found in: {config_dir}. "
            "Please add chain configuration files (e.g., optimism.json)."
        )

    for config_file in json_files:
        chain_config = ChainConfig.load_from_file(config_file)
        configs[chain_config.chain_id] = chain_config

    return configs


def chain_id_for_domain(domain: int, chain_configs: Dict[int, ChainConfig]) -> Optional[int]:
    """Map a messaging domain back to the native chain id, if the chain is configured."""
    for chain_config in chain_configs.values():
        if chain_config.domain == domain:
            return chain_config.chain_id
    return None

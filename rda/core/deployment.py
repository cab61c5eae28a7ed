"""
Deployment - create a token and an auction, and persist them locally.

A deployment is what a local network would hold after the deploy script
ran: one token ledger whose whole initial supply belongs to the
deployer, and one reverse Dutch auction selling that token, priced in
that same token, with the deployer as seller.

Deployments are saved as JSON under `<data_dir>/deployments/<network>.json`
so the CLI can resume them between invocations.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from rda.crypto import instance_address, is_valid_address
from rda.core.auction import AuctionConfig, Custody, ReverseDutchAuction
from rda.core.clock import Clock
from rda.core.config import NetworkConfig, config_to_dict
from rda.core.ledger import AssetRegistry, TokenLedger
from rda.utils.logger import get_logger

logger = get_logger("deployment")

# Nonces used to derive instance addresses from the deployer
TOKEN_NONCE = 0
AUCTION_NONCE = 1

DEPLOYMENT_VERSION = 1


@dataclass
class Deployment:
    """
    Everything created by one deploy.

    Attributes:
        network: Network name the deployment belongs to
        registry: Asset ledgers by address
        token: The token being sold (and used as payment)
        auction: The auction instance
        accounts: Named local accounts (name -> address)
        timestamp: ISO-8601 time of deployment
    """
    network: str
    registry: AssetRegistry
    token: TokenLedger
    auction: ReverseDutchAuction
    accounts: Dict[str, str] = field(default_factory=dict)
    timestamp: str = ""

    @property
    def owner(self) -> str:
        return self.token.owner

    def account(self, name: str) -> str:
        """Resolve an account name (or pass through an address)."""
        if name in self.accounts:
            return self.accounts[name]
        if is_valid_address(name):
            return name
        raise KeyError(f"Unknown account: {name}")

    def to_dict(self) -> dict:
        return {
            "version": DEPLOYMENT_VERSION,
            "network": self.network,
            "token": self.token.address,
            "auction": self.auction.address,
            "owner": self.owner,
            "initialSupply": str(self.token.initial_supply),
            "timestamp": self.timestamp,
            "accounts": dict(self.accounts),
            "ledgers": [ledger.to_dict() for ledger in self.registry],
            "auction_state": self.auction.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict, clock: Optional[Clock] = None) -> "Deployment":
        if data.get("version") != DEPLOYMENT_VERSION:
            raise ValueError(f"Unsupported deployment version: {data.get('version')}")

        registry = AssetRegistry()
        for ledger_data in data["ledgers"]:
            registry.register(TokenLedger.from_dict(ledger_data))

        auction_data = data["auction_state"]
        custody = Custody(registry, auction_data["address"])
        auction = ReverseDutchAuction.from_dict(auction_data, custody, clock=clock)

        return cls(
            network=data["network"],
            registry=registry,
            token=registry.get(data["token"]),
            auction=auction,
            accounts=dict(data.get("accounts", {})),
            timestamp=data.get("timestamp", ""),
        )


def deploy(
    config: NetworkConfig,
    deployer: str,
    now: int,
    clock: Optional[Clock] = None,
    accounts: Optional[Dict[str, str]] = None,
) -> Deployment:
    """
    Deploy a token and an auction for it.

    Args:
        config: Token and auction parameters
        deployer: Address that owns the supply and sells the lot
        now: Auction start time
        clock: Clock handed to the auction
        accounts: Extra named accounts to remember

    Returns:
        Deployment
    """
    if not is_valid_address(deployer):
        raise ValueError(f"Invalid deployer address: {deployer}")

    registry = AssetRegistry()
    token = TokenLedger(
        address=instance_address(deployer, TOKEN_NONCE),
        name=config.token_name,
        symbol=config.token_symbol,
        owner=deployer,
        initial_supply=config.initial_supply_units,
        decimals=config.token_decimals,
    )
    registry.register(token)
    logger.info(f"{config.token_name} ({config.token_symbol}) deployed to {token.address}")

    auction_config = AuctionConfig(
        sale_asset=token.address,
        payment_asset=token.address,
        seller=deployer,
        starting_price=config.starting_price_units,
        price_decrease_per_second=config.price_decrease_units,
        start_time=now,
        duration=config.duration,
    )
    custody = Custody(registry, instance_address(deployer, AUCTION_NONCE))
    auction = ReverseDutchAuction(auction_config, custody, clock=clock)
    logger.info(f"Auction deployed to {auction.address} (ends at {auction_config.end_time})")

    named = {"deployer": deployer}
    named.update(accounts or {})
    return Deployment(
        network=config.network,
        registry=registry,
        token=token,
        auction=auction,
        accounts=named,
        timestamp=datetime.fromtimestamp(now, tz=timezone.utc).isoformat(),
    )


def save_deployment(deployment: Deployment, path: Path, config: Optional[NetworkConfig] = None) -> Path:
    """Write a deployment to JSON, creating parent directories."""
    data = deployment.to_dict()
    if config is not None:
        data["config"] = config_to_dict(config)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))
    logger.debug(f"Saved deployment to {path}")
    return path


def load_deployment(path: Path, clock: Optional[Clock] = None) -> Deployment:
    """
    Load a deployment saved by save_deployment.

    Raises:
        FileNotFoundError: if nothing was deployed on this network
    """
    if not path.exists():
        raise FileNotFoundError(f"No deployment found at {path}")
    deployment = Deployment.from_dict(json.loads(path.read_text()), clock=clock)
    logger.debug(f"Loaded deployment from {path}: {deployment.auction!r}")
    return deployment

"""
RDA CLI - Command Line Interface for the Reverse Dutch Auction

Main entry point for all CLI commands. State lives in a deployment file
under the data directory, so each command loads it, acts, and saves it.
"""

import json
import logging
from pathlib import Path

import click

from rda.utils.logger import setup_logging, get_logger

logger = get_logger("cli")

DEFAULT_DATA_DIR = "~/.rda"


def _load(ctx):
    """Load the current network's deployment, or explain how to create one."""
    from rda.core.deployment import load_deployment

    try:
        return load_deployment(ctx.obj["deployment_path"], clock=ctx.obj["clock"])
    except FileNotFoundError:
        click.echo(f"❌ No deployment found for network {ctx.obj['config'].network}")
        click.echo("   Create one with: rda deploy")
        ctx.exit(1)


def _save(ctx, deployment) -> None:
    from rda.core.deployment import save_deployment

    save_deployment(deployment, ctx.obj["deployment_path"], ctx.obj["config"])


def _parse_amount(ctx, token, amount: str) -> int:
    from rda.core.ledger import parse_units

    try:
        return parse_units(amount, token.decimals)
    except ValueError as exc:
        click.echo(f"❌ Invalid amount: {exc}")
        ctx.exit(1)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--log-file", is_flag=True, help="Also write logs to <log_dir>/rda.log")
@click.option("--data-dir", default=None, help=f"Data directory (default {DEFAULT_DATA_DIR})")
@click.option("--network", default=None, help="Network name (deployment file to use)")
@click.option("--config", "config_path", default=None, help="Path to a .json or .toml config file")
@click.option("--now", type=int, default=None, help="Override the current unix time")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, log_file, data_dir, network, config_path, now):
    """Reverse Dutch Auction - descending-price token sale"""
    from rda.core.clock import ManualClock, SystemClock
    from rda.core.config import load_config

    try:
        config = load_config(config_path)
    except ValueError as exc:
        raise click.ClickException(str(exc))

    # Explicit flag > config file / RDA_DATA_DIR > built-in default
    if data_dir is not None:
        config.data_dir = Path(data_dir)
    elif "data_dir" not in config.overrides:
        config.data_dir = Path(DEFAULT_DATA_DIR)
    config.data_dir = config.data_dir.expanduser()
    if not config.log_dir.is_absolute():
        config.log_dir = config.data_dir / config.log_dir
    if network:
        config.network = network

    level = logging.DEBUG if debug else logging.WARNING
    setup_logging(level=level, log_dir=str(config.log_dir), log_to_file=log_file)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["data_dir"] = config.data_dir
    ctx.obj["deployment_path"] = config.deployment_path
    ctx.obj["clock"] = ManualClock(now) if now is not None else SystemClock()
    logger.debug(f"Network {config.network}: deployment file {config.deployment_path}")


# =============================================================================
# Account Commands
# =============================================================================


@cli.group()
def account():
    """Local account management commands"""
    pass


def _create_account(data_dir: Path, name: str) -> dict:
    from rda.crypto import generate_keypair

    kp = generate_keypair()
    account_data = {
        "name": name,
        "address": kp.address,
        "public_key": kp.public_key_hex,
    }
    account_path = data_dir / "accounts" / f"{name}.json"
    account_path.parent.mkdir(parents=True, exist_ok=True)
    account_path.write_text(json.dumps(account_data, indent=2))
    return account_data


def _get_or_create_account(data_dir: Path, name: str) -> dict:
    account_path = data_dir / "accounts" / f"{name}.json"
    if account_path.exists():
        return json.loads(account_path.read_text())
    return _create_account(data_dir, name)


@account.command("create")
@click.option("--name", default="default", help="Account name")
@click.pass_context
def account_create(ctx, name):
    """Create a new local account"""
    account_path = ctx.obj["data_dir"] / "accounts" / f"{name}.json"
    if account_path.exists():
        click.echo(f"❌ Account '{name}' already exists")
        ctx.exit(1)

    data = _create_account(ctx.obj["data_dir"], name)
    click.echo(f"✓ Account created: {name}")
    click.echo(f"  Address: {data['address']}")
    click.echo(f"  Saved to: {account_path}")


@account.command("list")
@click.pass_context
def account_list(ctx):
    """List all local accounts"""
    account_dir = ctx.obj["data_dir"] / "accounts"
    if not account_dir.exists():
        click.echo("No accounts found.")
        return

    for account_file in sorted(account_dir.glob("*.json")):
        data = json.loads(account_file.read_text())
        click.echo(f"  {data['name']}: {data['address']}")


# =============================================================================
# Deployment Commands
# =============================================================================


@cli.command("deploy")
@click.option("--starting-price", default=None, help="Starting price of the whole lot (tokens)")
@click.option("--rate", default=None, help="Price decrease per second (tokens)")
@click.option("--duration", type=int, default=None, help="Auction window in seconds")
@click.option("--force", is_flag=True, help="Replace an existing deployment")
@click.pass_context
def deploy_command(ctx, starting_price, rate, duration, force):
    """Deploy a token and a reverse Dutch auction selling it"""
    from rda.core.deployment import deploy, save_deployment

    config = ctx.obj["config"]
    if starting_price is not None:
        config.starting_price = starting_price
    if rate is not None:
        config.price_decrease_per_second = rate
    if duration is not None:
        config.duration = duration

    path = ctx.obj["deployment_path"]
    if path.exists() and not force:
        click.echo(f"❌ Network {config.network} already has a deployment ({path})")
        click.echo("   Use --force to replace it")
        ctx.exit(1)

    deployer = _get_or_create_account(ctx.obj["data_dir"], "deployer")
    buyer = _get_or_create_account(ctx.obj["data_dir"], "buyer")

    click.echo("Starting deployment process...")
    try:
        deployment = deploy(
            config,
            deployer["address"],
            now=ctx.obj["clock"].now(),
            accounts={"buyer": buyer["address"]},
        )
    except ValueError as exc:
        click.echo(f"❌ Deployment failed: {exc}")
        ctx.exit(1)

    save_deployment(deployment, path, config)

    token = deployment.token
    click.echo("")
    click.echo("Deployment Summary:")
    click.echo("-" * 40)
    click.echo(f"  Network: {deployment.network}")
    click.echo(f"  Token: {token.name} ({token.symbol}) at {token.address}")
    click.echo(f"  Initial Supply: {token.format(token.initial_supply)}")
    click.echo(f"  Auction: {deployment.auction.address}")
    click.echo(f"  Deployer/Owner: {deployment.owner}")
    click.echo(f"  Saved to: {path}")
    click.echo("")
    click.echo("✅ Deployment completed successfully!")


# =============================================================================
# Auction Commands
# =============================================================================


def _print_status(ctx, deployment) -> None:
    from datetime import datetime, timezone

    auction = deployment.auction
    token = deployment.token
    now = ctx.obj["clock"].now()
    stats = auction.stats(now)

    def fmt_time(ts: int) -> str:
        return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")

    remaining = stats["time_remaining"]
    click.echo("=== Auction Status ===")
    click.echo(f"  Seller: {auction.seller}")
    click.echo(f"  Token Address: {token.address}")
    click.echo(f"  Status: {stats['status']}")
    click.echo(f"  Initial Price: {token.format(stats['starting_price'])}")
    click.echo(f"  Current Price: {token.format(stats['current_price'])}")
    click.echo(f"  Start Time: {fmt_time(stats['start_time'])}")
    click.echo(f"  End Time: {fmt_time(stats['end_time'])}")
    click.echo(f"  Time Remaining: {f'{remaining} seconds' if remaining > 0 else 'Auction ended'}")
    click.echo(f"  Auction Ended: {stats['ended']}")
    click.echo(f"  Tokens in Escrow: {token.format(stats['escrowed_amount'])}")
    if auction.sale:
        click.echo(f"  Sold To: {auction.sale.buyer} for {token.format(auction.sale.price)}")


@cli.command("status")
@click.pass_context
def status(ctx):
    """Show auction status"""
    deployment = _load(ctx)
    _print_status(ctx, deployment)


@cli.command("balance")
@click.argument("account_name", default="buyer")
@click.pass_context
def balance(ctx, account_name):
    """Show an account's token balance"""
    deployment = _load(ctx)
    try:
        address = deployment.account(account_name)
    except KeyError as exc:
        click.echo(f"❌ {exc.args[0]}")
        ctx.exit(1)
    click.echo(f"Address: {address}")
    click.echo(f"Balance: {deployment.token.format(deployment.token.balance_of(address))}")


@cli.command("fund")
@click.argument("amount")
@click.option("--to", "recipient", default="buyer", help="Account name or address to fund")
@click.pass_context
def fund(ctx, amount, recipient):
    """Transfer tokens from the owner to a buyer account"""
    deployment = _load(ctx)
    token = deployment.token
    value = _parse_amount(ctx, token, amount)

    try:
        address = deployment.account(recipient)
    except KeyError as exc:
        click.echo(f"❌ {exc.args[0]}")
        ctx.exit(1)

    owner_balance = token.balance_of(deployment.owner)
    click.echo(f"Owner balance: {token.format(owner_balance)}")
    if owner_balance < value:
        click.echo("❌ Owner has insufficient balance to fund buyer")
        ctx.exit(1)

    success, error = token.transfer(deployment.owner, address, value)
    if not success:
        click.echo(f"❌ Transfer failed: {error}")
        ctx.exit(1)

    _save(ctx, deployment)
    click.echo(f"✅ Funded {address}")
    click.echo(f"   New balance: {token.format(token.balance_of(address))} (added {token.format(value)})")


@cli.command("deposit")
@click.argument("amount")
@click.pass_context
def deposit(ctx, amount):
    """Deposit tokens from the seller into the auction escrow"""
    from rda.core.auction import AuctionError

    deployment = _load(ctx)
    auction = deployment.auction
    token = deployment.token
    value = _parse_amount(ctx, token, amount)

    token.approve(auction.seller, auction.address, value)
    try:
        escrowed = auction.deposit(value, auction.seller, now=ctx.obj["clock"].now())
    except AuctionError as exc:
        click.echo(f"❌ Deposit failed: {exc}")
        ctx.exit(1)

    _save(ctx, deployment)
    click.echo(f"✅ Deposited {token.format(value)}")
    click.echo(f"   Escrow now holds {token.format(escrowed)}")


@cli.command("buy")
@click.option("--buyer", "buyer_name", default="buyer", help="Buyer account name or address")
@click.pass_context
def buy(ctx, buyer_name):
    """Buy the whole lot at the current price"""
    from rda.core.auction import AuctionError

    deployment = _load(ctx)
    auction = deployment.auction
    token = deployment.token
    now = ctx.obj["clock"].now()

    try:
        buyer_address = deployment.account(buyer_name)
    except KeyError as exc:
        click.echo(f"❌ {exc.args[0]}")
        ctx.exit(1)

    if auction.is_ended:
        click.echo("Cannot buy: Auction has already ended.")
        ctx.exit(1)

    price = auction.current_price(now)
    if price <= 0:
        click.echo("Cannot buy: Price has reached zero.")
        ctx.exit(1)

    payment_ledger = deployment.registry.get(auction.config.payment_asset)
    buyer_balance = payment_ledger.balance_of(buyer_address)
    click.echo(f"Buyer ({buyer_address}) Balance: {token.format(buyer_balance)}")
    if buyer_balance < price:
        click.echo(f"Insufficient balance. Need {token.format(price)} but have {token.format(buyer_balance)}")
        ctx.exit(1)

    payment_ledger.approve(buyer_address, auction.address, price)
    click.echo(f"Approved {token.format(price)} for auction")

    try:
        sale = auction.buy(buyer_address, now=now)
    except AuctionError as exc:
        click.echo(f"❌ Failed to buy from auction: {exc}")
        ctx.exit(1)

    _save(ctx, deployment)
    click.echo("")
    click.echo("✅ Transaction successful!")
    click.echo(f"   Paid: {token.format(sale.price)}")
    click.echo(f"   Received: {token.format(sale.amount)}")
    click.echo(f"   Buyer new balance: {token.format(token.balance_of(buyer_address))}")
    click.echo(f"   Auction new balance: {token.format(token.balance_of(auction.address))}")


@cli.command("end")
@click.option("--caller", "caller_name", default="deployer", help="Account ending the auction")
@click.pass_context
def end(ctx, caller_name):
    """End an expired auction and return unsold tokens to the seller"""
    from rda.core.auction import AuctionError

    deployment = _load(ctx)
    auction = deployment.auction
    token = deployment.token

    if auction.is_ended:
        click.echo("Cannot end: Auction has already ended.")
        ctx.exit(1)

    try:
        caller = deployment.account(caller_name)
    except KeyError as exc:
        click.echo(f"❌ {exc.args[0]}")
        ctx.exit(1)

    try:
        returned = auction.finalize(caller, now=ctx.obj["clock"].now())
    except AuctionError as exc:
        click.echo(f"❌ Failed to end auction: {exc}")
        ctx.exit(1)

    _save(ctx, deployment)
    click.echo("✅ Auction ended successfully!")
    click.echo(f"   Returned to seller: {token.format(returned)}")
    click.echo("")
    _print_status(ctx, deployment)


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
@click.option("--scenario", type=click.Choice(["sale", "expiry"]), default="sale", help="Demo scenario to run")
def demo(scenario):
    """Run an in-memory auction from start to finish"""
    from rda.crypto import generate_keypair, instance_address
    from rda.core.auction import AuctionConfig, Custody, ReverseDutchAuction
    from rda.core.clock import ManualClock
    from rda.core.ledger import AssetRegistry, TokenLedger

    click.echo("=" * 60)
    click.echo("  REVERSE DUTCH AUCTION - DEMO")
    click.echo("=" * 60)
    click.echo()

    seller = generate_keypair().address
    buyer = generate_keypair().address
    clock = ManualClock(start=1_700_000_000)

    registry = AssetRegistry()
    lot_token = TokenLedger(instance_address(seller, 0), "Lot", "LOT", seller, initial_supply=10_000, decimals=0)
    pay_token = TokenLedger(instance_address(seller, 1), "Cash", "CSH", seller, initial_supply=2_000_000, decimals=0)
    registry.register(lot_token)
    registry.register(pay_token)
    pay_token.transfer(seller, buyer, 1_000_000)

    config = AuctionConfig(
        sale_asset=lot_token.address,
        payment_asset=pay_token.address,
        seller=seller,
        starting_price=1_000_000,
        price_decrease_per_second=1,
        start_time=clock.now(),
        duration=3600,
    )
    auction = ReverseDutchAuction(config, Custody(registry, instance_address(seller, 2)), clock=clock)
    auction.subscribe(lambda event: click.echo(f"  📣 {event}"))
    click.echo(f"📦 Auction created: start price {config.starting_price}, -1/s, 3600s window")

    lot = 1_000 if scenario == "sale" else 500
    lot_token.approve(seller, auction.address, lot)
    auction.deposit(lot, seller)
    click.echo(f"🏛️  Seller deposited {lot} LOT")

    if scenario == "sale":
        clock.advance(30)
        price = auction.current_price()
        click.echo(f"⏱️  t+30s price: {price} CSH")
        pay_token.approve(buyer, auction.address, price)
        sale = auction.buy(buyer)
        click.echo(f"💸 Buyer paid {sale.price} CSH and received {sale.amount} LOT")
    else:
        clock.advance(3600)
        click.echo(f"⏱️  t+3600s price: {auction.current_price()} CSH")
        before = lot_token.balance_of(seller)
        returned = auction.finalize(buyer)
        click.echo(f"🔚 Finalized: {returned} LOT returned (seller +{lot_token.balance_of(seller) - before})")

    click.echo()
    click.echo(f"  Status: {auction.status.name}")
    click.echo(f"  Escrow: {auction.escrowed_amount}")
    click.echo(f"  Seller: {lot_token.balance_of(seller)} LOT, {pay_token.balance_of(seller)} CSH")
    click.echo(f"  Buyer:  {lot_token.balance_of(buyer)} LOT, {pay_token.balance_of(buyer)} CSH")


if __name__ == "__main__":
    cli()

"""
qwallet CLI - validate addresses, quote fees, inspect balances and history, send coins.
"""

from __future__ import annotations

import asyncio
import sys

import typer
from loguru import logger

from qwallet.bridge.http import HttpWalletBridge
from qwallet.config import Settings, get_settings
from qwallet.feed.feed import TransactionFeed
from qwallet.feed.pagination import paginate
from qwallet.feed.rows import build_rows
from qwallet.fees import FeeCalculator
from qwallet.messages import lookup_message, notification_message, validation_message
from qwallet.models import CoinType
from qwallet.send.controller import (
    SEND_ERROR,
    SEND_SUCCESS,
    ReconcilingSuccess,
    SendFlowController,
)
from qwallet.send.notifications import NotificationCenter
from qwallet.validation.address import check
from qwallet.validation.names import QortalNodeResolver, RecipientLookup

app = typer.Typer(
    name="qwallet",
    help="Multi-coin wallet dashboard",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def _coin(value: str) -> CoinType:
    try:
        return CoinType(value.upper())
    except ValueError:
        choices = ", ".join(c.value for c in CoinType)
        raise typer.BadParameter(f"unsupported coin {value!r} (choose from {choices})")


def _feed(settings: Settings, coin: CoinType) -> tuple[HttpWalletBridge, TransactionFeed]:
    bridge = HttpWalletBridge(settings.bridge_url, api_key=settings.bridge_api_key)
    feed = TransactionFeed(
        bridge,
        coin,
        profile=settings.coin_profiles()[coin],
        sync_poll_interval=settings.arrr_sync_poll_interval,
        sync_max_attempts=settings.arrr_sync_max_attempts,
        init_max_attempts=settings.arrr_init_max_attempts,
    )
    return bridge, feed


@app.command()
def validate(
    coin: str = typer.Argument(..., help="Coin ticker, e.g. LTC"),
    address: str = typer.Argument(..., help="Recipient address"),
) -> None:
    """Check an address against the coin's format."""
    ticker = _coin(coin)
    outcome = check(ticker, address)
    if outcome.valid:
        typer.echo(f"Valid {ticker.value} address")
        return
    typer.echo(validation_message(ticker, outcome))
    raise typer.Exit(1)


@app.command()
def fee(
    coin: str = typer.Argument(..., help="Coin ticker"),
    rate: str = typer.Argument("0", help="Raw fee rate (smallest units per kB)"),
    balance: str | None = typer.Option(None, "--balance", "-b", help="Show max sendable"),
) -> None:
    """Quote the fee for a raw fee rate."""
    ticker = _coin(coin)
    calculator = FeeCalculator(get_settings().coin_profiles())
    quote = calculator.quote(rate, ticker)
    typer.echo(f"Fee:            {quote.rounded_fee} {ticker.value}")
    typer.echo(f"Estimated cost: {quote.estimated_network_fee} {ticker.value}")
    if balance is not None:
        typer.echo(f"Max sendable:   {calculator.max_sendable(balance, quote)} {ticker.value}")


@app.command()
def balance(
    coin: str = typer.Argument(..., help="Coin ticker"),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Show the wallet address and balance."""
    setup_logging(log_level)
    asyncio.run(_show_balance(get_settings(), _coin(coin)))


async def _show_balance(settings: Settings, coin: CoinType) -> None:
    bridge, feed = _feed(settings, coin)
    try:
        await asyncio.gather(feed.fetch_wallet_info(), feed.fetch_balance())
        typer.echo(f"Address: {feed.snapshot.address or feed.wallet_info_error or '-'}")
        if feed.balance_error:
            typer.echo(f"Balance: unavailable ({feed.balance_error})")
        else:
            typer.echo(f"Balance: {feed.snapshot.balance} {coin.value}")
    finally:
        await bridge.close()


@app.command()
def history(
    coin: str = typer.Argument(..., help="Coin ticker"),
    page: int = typer.Option(0, "--page", "-p", min=0, help="Zero-based page"),
    rows: int = typer.Option(25, "--rows", "-r", help="Rows per page (5, 10, 25, -1 for all)"),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Show one page of transaction history."""
    setup_logging(log_level)
    asyncio.run(_show_history(get_settings(), _coin(coin), page, rows))


async def _show_history(settings: Settings, coin: CoinType, page: int, rows: int) -> None:
    bridge, feed = _feed(settings, coin)
    try:
        await feed.fetch_history()
        view = paginate(build_rows(feed.transactions), page, rows)
        if feed.history_error:
            typer.echo(f"History unavailable: {feed.history_error}")
        for row in view.rows:
            typer.echo(
                f"{row.short_hash:<27} {row.total_text:>18} ({row.amount_class.value:<6}) "
                f"fee {row.fee_text:>12}  {row.time_label}"
            )
        typer.echo(f"Page {view.page_index + 1}/{view.page_count}, {view.total_rows} transactions")
    finally:
        await bridge.close()


@app.command()
def send(
    coin: str = typer.Argument(..., help="Coin ticker"),
    recipient: str = typer.Argument(..., help="Recipient address (or Qortal name)"),
    amount: str = typer.Argument(..., help="Amount in coins, or 'max'"),
    fee_rate: str = typer.Option("0", "--fee-rate", help="Raw fee rate (smallest units per kB)"),
    memo: str = typer.Option("", "--memo", help="Memo (Pirate Chain only)"),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Send coins and wait for the reconciliation refresh."""
    setup_logging(log_level)
    ok = asyncio.run(_send(get_settings(), _coin(coin), recipient, amount, fee_rate, memo))
    if not ok:
        raise typer.Exit(1)


async def _send(
    settings: Settings, coin: CoinType, recipient: str, amount: str, fee_rate: str, memo: str
) -> bool:
    bridge, feed = _feed(settings, coin)
    lookup = None
    if coin == CoinType.QORT:
        lookup = RecipientLookup(
            QortalNodeResolver(settings.qortal_node_url), debounce=settings.name_lookup_debounce
        )
    controller = SendFlowController(
        bridge,
        feed,
        coin,
        profile=feed.profile,
        notifications=NotificationCenter(window=settings.notification_window),
        settle_delay=settings.settle_delay,
        recipient_lookup=lookup,
    )
    try:
        await feed.fetch_balance()
        controller.set_fee_rate(fee_rate)
        form = controller.open(recipient)
        if not form.outcome.valid:
            typer.echo(validation_message(coin, form.outcome))
            return False
        if lookup is not None:
            resolved = await lookup.wait()
            if not resolved.is_sendable:
                typer.echo(lookup_message(resolved.status))
                return False
        if amount.lower() == "max":
            controller.send_max()
        else:
            try:
                controller.set_amount(amount)
            except ValueError as e:
                typer.echo(str(e))
                return False
        controller.set_memo(memo)

        if controller.exceeds_balance:
            typer.echo(f"Amount exceeds max sendable: {controller.max_sendable} {coin.value}")
            return False
        if not controller.can_submit():
            typer.echo("Nothing to send: check amount, recipient and fee")
            return False

        result = await controller.submit()
        ok = isinstance(result, ReconcilingSuccess)
        typer.echo(notification_message(SEND_SUCCESS if ok else SEND_ERROR))
        typer.echo(f"Balance: {feed.snapshot.balance} {coin.value}")
        return ok
    finally:
        if lookup is not None:
            await lookup.resolver.close()
        await bridge.close()


@app.command()
def watch(
    coin: str = typer.Argument(..., help="Coin ticker"),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Activate the feed and print balance updates until interrupted."""
    setup_logging(log_level)
    try:
        asyncio.run(_watch(get_settings(), _coin(coin)))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")


async def _watch(settings: Settings, coin: CoinType) -> None:
    bridge, feed = _feed(settings, coin)
    try:
        async with await feed.activate() as handle:
            if not handle.scheduled:
                logger.error(f"{coin.value} feed could not start ({feed.sync_state.value})")
                return
            logger.info(f"Watching {coin.value} wallet {feed.snapshot.address}")
            last = None
            while True:
                current = (feed.snapshot.balance, len(feed.transactions))
                if current != last:
                    typer.echo(f"{coin.value}: {current[0]} ({current[1]} transactions)")
                    last = current
                await asyncio.sleep(1)
    finally:
        await bridge.close()


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()

# cli_play.py

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import List, Optional

from engine.clock import ManualClock
from engine.errors import NegativePrice, OrderBookError
from engine.pricing import last_valid_time, schedule_kind
from infrastructure.config import BookConfig
from infrastructure.logger import configure_logging, LoggingConfig
from application.venue import Venue

START_TIME = 1_700_000_000

HELP = """Commands:
  as <who>                                   -> act as identity <who>
  mint <asset> <amount>                      -> fund current identity
  buy  <quote> <base> <px> <slope> <amount>  -> BUY base, escrow <amount> quote
  sell <base> <quote> <px> <slope> <amount>  -> SELL <amount> base for quote
  match <buy_id> <sell_id>                   -> settle a crossed pair
  cancel <id>                                -> refund your order
  price <id> [ts]                            -> evaluate an order's price
  show <id>                                  -> print one order
  orders [who]                               -> list orders
  balances [who]                             -> ledger balances
  advance <secs>                             -> move the clock forward
  save                                       -> save checkpoint + journal
  quit                                       -> exit
Amounts and prices are integers; 1e18 style is accepted."""


def parse_int(text: str) -> int:
    """Exact integer from '200', '200e18' or '1.5e18'; floats never involved."""
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"not a number: {text!r}") from None
    if not value.is_finite():
        raise ValueError(f"not a finite number: {text!r}")
    if value != value.to_integral_value():
        raise ValueError(f"not an integer: {text!r}")
    return int(value)


def _fmt_order(o, now: int) -> str:
    try:
        px = str(o.price_at(now))
    except NegativePrice:
        px = "NEGATIVE"
    lvt = last_valid_time(o.start_price, o.slope, o.start_time)
    tail = f" valid-until={lvt}" if lvt is not None else ""
    return (
        f"#{o.order_id} {o.owner} {o.side.value.upper()} {schedule_kind(o.slope).value} "
        f"remaining={o.remaining_amount} {o.token_in} ({o.remaining_unit.value}) "
        f"px@now={px} active={o.active}{tail}"
    )


def run_command(venue: Venue, who: str, parts: List[str]) -> Optional[str]:
    """Execute one command; returns the new identity when it changes."""
    book, ledger, clock = venue.book, venue.ledger, venue.clock
    cmd = parts[0].lower()

    if cmd == "as":
        print(f"acting as {parts[1]}")
        return parts[1]

    if cmd == "mint":
        ledger.mint(parts[1], who, parse_int(parts[2]))
        print(f"{who} {parts[1]}={ledger.balance_of(parts[1], who)}")
        return None

    if cmd in ("buy", "sell"):
        token_in, token_out = parts[1], parts[2]
        oid = book.create_order(
            who, token_in, token_out,
            parse_int(parts[3]), parse_int(parts[4]), parse_int(parts[5]),
            cmd == "buy",
        )
        print("created", _fmt_order(book.get_order(oid), clock()))
        return None

    if cmd == "match":
        ev = book.match_orders(who, int(parts[1]), int(parts[2]))
        print(f"matched base={ev.trade_base} quote={ev.trade_quote} price={ev.price}")
        return None

    if cmd == "cancel":
        refund = book.cancel_order(who, int(parts[1]))
        print(f"refunded {refund}")
        return None

    if cmd == "price":
        ts = parse_int(parts[2]) if len(parts) > 2 else clock()
        print(book.price_at(int(parts[1]), ts))
        return None

    if cmd == "show":
        print(_fmt_order(book.get_order(int(parts[1])), clock()))
        return None

    if cmd == "orders":
        orders = book.get_orders_by_owner(parts[1]) if len(parts) > 1 else [
            book.get_order(i) for i in range(1, book.next_order_id)
        ]
        for o in orders:
            print(_fmt_order(o, clock()))
        if not orders:
            print("no orders")
        return None

    if cmd == "balances":
        account = parts[1] if len(parts) > 1 else who
        assets = sorted({o.token_in for o in book.active_orders()} | {o.token_out for o in book.active_orders()})
        for asset in assets:
            print(f"{asset}: {account}={ledger.balance_of(asset, account)} custody={ledger.custody_balance(asset)}")
        return None

    if cmd == "advance":
        print(f"now={clock.advance(parse_int(parts[1]))}")
        return None

    if cmd == "save":
        venue.save_checkpoint()
        venue.save_journal()
        print("Saved checkpoint.")
        return None

    print("Unknown command.")
    return None


def main() -> None:
    cfg = BookConfig.DEFAULT()
    configure_logging(LoggingConfig(level="WARNING", log_file=cfg.log_file))

    venue = Venue(cfg, clock=ManualClock(start=START_TIME))
    who = "alice"

    print(HELP)
    print(f"\nacting as {who}; clock at {venue.clock()}\n")

    while True:
        try:
            line = input("lazybook> ").strip()
        except (EOFError, KeyboardInterrupt):
            line = "quit"

        if not line:
            continue

        parts = line.split()
        if parts[0].lower() == "quit":
            break
        if parts[0].lower() == "help":
            print(HELP)
            continue

        try:
            who = run_command(venue, who, parts) or who
        except OrderBookError as e:
            print(f"Rejected: {type(e).__name__}: {e}")
        except (ValueError, IndexError) as e:
            print("Error:", e)

    venue.close()
    print("Bye.")


if __name__ == "__main__":
    main()

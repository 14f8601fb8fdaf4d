from __future__ import annotations

import argparse
import json
import logging
import sys

from offer_agent.config import get_settings
from offer_agent.db import Database
from offer_agent.errors import OfferAgentError
from offer_agent.ingest import ingest_sources
from offer_agent.models import DiscountQuery, ingestion_to_dict, result_to_dict
from offer_agent.resolver import DiscountResolver
from offer_agent.sources import JsonPayloadSource
from offer_agent.web import run_web_server

logger = logging.getLogger("offer_agent")


def cmd_ingest(args: argparse.Namespace) -> None:
    db = Database(args.db)
    sources = [JsonPayloadSource(path) for path in args.payload]
    results = ingest_sources(db, sources)
    print(json.dumps({name: ingestion_to_dict(result) for name, result in results.items()}, indent=2))


def cmd_highest_discount(args: argparse.Namespace) -> None:
    db = Database(args.db)
    settings = get_settings()
    resolver = DiscountResolver(db, minor_units_per_major=settings.minor_units_per_major, rederive=settings.rederive_facts)
    result = resolver.resolve(
        DiscountQuery(amount_to_pay=args.amount, bank_name=args.bank, payment_instrument=args.instrument)
    )
    print(json.dumps(result_to_dict(result), indent=2))


def cmd_offers(args: argparse.Namespace) -> None:
    db = Database(args.db)
    offers = db.find_offers(bank_name=args.bank, payment_instrument=args.instrument)
    for offer in offers:
        print(f"{offer.offer_id}\t{offer.bank_name or '-'}\t{offer.payment_instrument or '-'}\t{offer.title}")
    print(f"{len(offers)} of {db.count_offers()} offers")


def cmd_serve(args: argparse.Namespace) -> None:
    run_web_server(args.db, host=args.host, port=args.port)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Bank offer catalog and best-discount lookup")
    parser.add_argument("--db", default=settings.db_path)
    parser.add_argument("--log-level", default=settings.log_level)

    sub = parser.add_subparsers(required=True)

    ingest = sub.add_parser("ingest")
    ingest.add_argument("payload", nargs="+", help="saved vendor offer response (JSON)")
    ingest.set_defaults(func=cmd_ingest)

    best = sub.add_parser("highest-discount")
    best.add_argument("--amount", type=float, required=True)
    best.add_argument("--bank")
    best.add_argument("--instrument")
    best.set_defaults(func=cmd_highest_discount)

    offers = sub.add_parser("offers")
    offers.add_argument("--bank")
    offers.add_argument("--instrument")
    offers.set_defaults(func=cmd_offers)

    serve = sub.add_parser("serve")
    serve.add_argument("--host", default=settings.host)
    serve.add_argument("--port", type=int, default=settings.port)
    serve.set_defaults(func=cmd_serve)
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except OfferAgentError as exc:
        logger.error("%s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()

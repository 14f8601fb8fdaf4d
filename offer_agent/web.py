from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, urlparse

from offer_agent.config import Settings, get_settings
from offer_agent.db import Database, OfferStore
from offer_agent.errors import StoreError, ValidationError
from offer_agent.ingest import ingest_payload
from offer_agent.models import DiscountQuery, ingestion_to_dict, result_to_dict
from offer_agent.resolver import DiscountResolver, optional_text, parse_amount_to_pay

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AppServices:
    store: OfferStore
    resolver: DiscountResolver


def build_services(store: OfferStore, settings: Settings | None = None) -> AppServices:
    settings = settings or get_settings()
    return AppServices(
        store=store,
        resolver=DiscountResolver(
            store,
            minor_units_per_major=settings.minor_units_per_major,
            rederive=settings.rederive_facts,
        ),
    )


def create_handler(store: OfferStore | str, settings: Settings | None = None):
    if isinstance(store, str):
        store = Database(store)
    services = build_services(store, settings)

    class Handler(BaseHTTPRequestHandler):
        def _send_json(self, payload: dict, status: int = 200) -> None:
            raw = json.dumps(payload).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(raw)))
            self.end_headers()
            self.wfile.write(raw)

        def _read_json_body(self) -> dict:
            try:
                size = int(self.headers.get("Content-Length", "0") or 0)
            except ValueError as exc:
                raise ValidationError("Content-Length must be an integer") from exc
            if not size:
                return {}
            try:
                body = json.loads(self.rfile.read(size).decode("utf-8"))
            except (UnicodeDecodeError, ValueError) as exc:
                raise ValidationError("request body must be valid JSON") from exc
            if not isinstance(body, dict):
                raise ValidationError("request body must be a JSON object")
            return body

        def _highest_discount(self, query: dict[str, list[str]]) -> dict:
            discount_query = DiscountQuery(
                amount_to_pay=parse_amount_to_pay(query.get("amountToPay", [None])[0]),
                bank_name=optional_text(query.get("bankName", [None])[0]),
                payment_instrument=optional_text(query.get("paymentInstrument", [None])[0]),
            )
            return result_to_dict(services.resolver.resolve(discount_query))

        def _ingest(self) -> dict:
            body = self._read_json_body()
            result = ingest_payload(services.store, body.get("flipkartOfferApiResponse"), source="api")
            return ingestion_to_dict(result)

        def _dispatch(self, handler, *args) -> None:
            try:
                self._send_json(handler(*args))
            except ValidationError as exc:
                self._send_json({"error": str(exc)}, status=400)
            except StoreError:
                logger.exception("Store failure while handling %s", self.path)
                self._send_json({"error": "Internal server error"}, status=500)
            except Exception:  # noqa: BLE001
                logger.exception("Unexpected error while handling %s", self.path)
                self._send_json({"error": "Internal server error"}, status=500)

        def do_GET(self):
            parsed = urlparse(self.path)
            if parsed.path.rstrip("/") == "/highest-discount":
                self._dispatch(self._highest_discount, parse_qs(parsed.query))
                return
            self.send_error(HTTPStatus.NOT_FOUND)

        def do_POST(self):
            parsed = urlparse(self.path)
            if parsed.path.rstrip("/") == "/offer":
                self._dispatch(self._ingest)
                return
            self.send_error(HTTPStatus.NOT_FOUND)

        def log_message(self, format, *args):
            return

    return Handler


def run_web_server(db_path: str, host: str = "0.0.0.0", port: int = 4000, settings: Settings | None = None) -> None:
    server = ThreadingHTTPServer((host, port), create_handler(Database(db_path), settings))
    logger.info("Server running on http://%s:%s", host, port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    finally:
        server.server_close()

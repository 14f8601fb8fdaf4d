from __future__ import annotations

import logging
from typing import Any, Iterable

from offer_agent.db import OfferStore
from offer_agent.errors import StoreError, ValidationError
from offer_agent.models import IngestionResult
from offer_agent.patterns import OfferPatternExtractor
from offer_agent.payload import normalize_payload
from offer_agent.sources import PayloadSource

logger = logging.getLogger(__name__)


def ingest_payload(
    store: OfferStore,
    payload: Any,
    source: str = "api",
    extractor: OfferPatternExtractor | None = None,
) -> IngestionResult:
    """Store every new (offer, provider) record found in a vendor payload.

    Records already present are left untouched. A store failure on one
    record is logged and the remaining records are still attempted.
    """
    if not isinstance(payload, dict):
        raise ValidationError("flipkartOfferApiResponse is required in request body")

    normalized = normalize_payload(payload, extractor=extractor)
    result = IngestionResult()
    for record in normalized.records:
        result.offers_identified += 1
        try:
            if store.insert_if_absent(record):
                result.new_offers_created += 1
        except StoreError as exc:
            result.store_failures += 1
            logger.warning("DB error while upserting offer %s (%s): %s", record.offer_id, record.bank_name, exc)

    detail = (
        f"entries={normalized.entries_considered} skipped={normalized.entries_skipped} "
        f"identified={result.offers_identified} created={result.new_offers_created} failed={result.store_failures}"
    )
    logger.info("Ingested payload from %s: %s", source, detail)
    try:
        store.log_ingest(source, "partial" if result.store_failures else "ok", detail)
    except StoreError as exc:
        logger.warning("Could not record ingest run for %s: %s", source, exc)
    return result


def ingest_sources(store: OfferStore, sources: Iterable[PayloadSource]) -> dict[str, IngestionResult]:
    results: dict[str, IngestionResult] = {}
    for src in sources:
        try:
            payload = src.fetch_payload()
        except (OSError, ValueError) as exc:
            logger.error("Failed to read payload from %s: %s", src.source, exc)
            try:
                store.log_ingest(src.source, "failed", str(exc))
            except StoreError:
                logger.warning("Could not record failed ingest run for %s", src.source)
            continue
        try:
            results[src.source] = ingest_payload(store, payload, source=src.source)
        except ValidationError as exc:
            logger.error("Rejected payload from %s: %s", src.source, exc)
            try:
                store.log_ingest(src.source, "failed", str(exc))
            except StoreError:
                logger.warning("Could not record failed ingest run for %s", src.source)
    return results

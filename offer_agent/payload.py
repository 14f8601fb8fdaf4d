from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from offer_agent.classifier import InstrumentClassifier, PaymentSection
from offer_agent.models import OfferRecord
from offer_agent.patterns import OfferPatternExtractor

logger = logging.getLogger(__name__)

OFFER_LIST = "OFFER_LIST"
PAYMENT_OPTION = "PAYMENT_OPTION"

SUMMARY_PATH = ("viewTracking", "offersAvailable", "offerSummary")
OFFER_LIST_PATH = ("data", "offers", "offerList")
SECTION_OFFERS_PATH = ("aggregatedOffer", "callout", "content", "information", "offers")
SECTION_OFFER_ID_PATH = ("offerFooter", "tncInfo", "id")


def dig(node: Any, *path: str) -> Any:
    """Walk nested dicts, returning None as soon as a step is missing."""
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
        if node is None:
            return None
    return node


def as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def as_text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def as_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _text_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    return [text for text in (as_text(v) for v in as_list(value)) if text]


@dataclass(slots=True)
class NormalizedPayload:
    records: list[OfferRecord] = field(default_factory=list)
    entries_considered: int = 0
    entries_skipped: int = 0


def items_of_type(payload: Any, item_type: str) -> list[dict]:
    return [item for item in as_list(dig(payload, "items")) if isinstance(item, dict) and item.get("type") == item_type]


def summary_lookup(payload: Any) -> dict[str, tuple[str | None, float | None]]:
    lookup: dict[str, tuple[str | None, float | None]] = {}
    for entry in as_list(dig(payload, *SUMMARY_PATH)):
        offer_id = as_text(dig(entry, "id"))
        if offer_id is None:
            continue
        lookup[offer_id] = (as_text(dig(entry, "type")), as_number(dig(entry, "value")))
    return lookup


def offer_list(payload: Any) -> list:
    for item in items_of_type(payload, OFFER_LIST):
        return as_list(dig(item, *OFFER_LIST_PATH))
    return []


def payment_sections(payload: Any) -> list[PaymentSection]:
    sections: list[PaymentSection] = []
    for item in items_of_type(payload, PAYMENT_OPTION):
        instrument = as_text(dig(item, "data", "instrumentType"))
        if instrument is None:
            logger.debug("Skipping payment option without instrumentType")
            continue
        offer_ids: list[str] = []
        providers = {p.upper() for p in _text_list(dig(item, "data", "providers"))}
        for option in as_list(dig(item, "data", "content", "options")):
            providers.update(p.upper() for p in _text_list(dig(option, "provider")))
            for offer in as_list(dig(option, *SECTION_OFFERS_PATH)):
                offer_id = as_text(dig(offer, *SECTION_OFFER_ID_PATH))
                if offer_id:
                    offer_ids.append(offer_id)
        sections.append(PaymentSection(instrument_type=instrument, offer_ids=offer_ids, providers=frozenset(providers)))
    return sections


def normalize_payload(
    payload: Any,
    classifier: InstrumentClassifier | None = None,
    extractor: OfferPatternExtractor | None = None,
) -> NormalizedPayload:
    """Flatten a vendor offer response into one record per (offer, provider).

    Entries without an offer id or title are dropped. Offers with no
    eligible provider yield a single record whose bank_name is None.
    """
    classifier = classifier or InstrumentClassifier(payment_sections(payload))
    extractor = extractor or OfferPatternExtractor()
    summaries = summary_lookup(payload)
    result = NormalizedPayload()

    for raw in offer_list(payload):
        result.entries_considered += 1
        offer_id = as_text(dig(raw, "offerDescription", "id"))
        title = as_text(dig(raw, "offerText", "text"))
        if offer_id is None or title is None:
            result.entries_skipped += 1
            logger.debug("Skipping malformed offer entry id=%s", offer_id)
            continue

        description = as_text(dig(raw, "offerDescription", "text"))
        providers = _text_list(dig(raw, "provider"))
        instrument = classifier.classify(offer_id, providers, description, title)
        offer_type, value = summaries.get(offer_id, (None, None))
        facts = extractor.extract(description, title, instrument)

        for bank_name in providers or [None]:
            result.records.append(
                OfferRecord(
                    offer_id=offer_id,
                    title=title,
                    bank_name=bank_name,
                    payment_instrument=instrument,
                    type=offer_type,
                    value=value or 0,
                    description=description,
                    facts=facts,
                )
            )
    return result

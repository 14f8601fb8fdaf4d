from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Iterable

from offer_agent.models import CREDIT, DEBIT, EMI, NET_BANKING, NO_COST_EMI, UPI

KNOWN_CARD_BANKS = frozenset({"SBI", "HDFC", "ICICI", "AXIS", "KOTAK", "FLIPKARTSBI", "FLIPKARTAXISBANK"})

_EMI_WORD = re.compile(r"\bemi\b")

KeywordRule = Callable[[str, frozenset[str]], bool]

# Evaluated top to bottom; the first rule that matches decides the instrument.
KEYWORD_RULES: list[tuple[str, KeywordRule]] = [
    (NO_COST_EMI, lambda text, providers: "no cost" in text and _EMI_WORD.search(text) is not None),
    (EMI, lambda text, providers: _EMI_WORD.search(text) is not None),
    (CREDIT, lambda text, providers: "credit card" in text or bool(providers & KNOWN_CARD_BANKS)),
    (DEBIT, lambda text, providers: "debit card" in text),
    (UPI, lambda text, providers: "upi" in text),
    (NET_BANKING, lambda text, providers: "net banking" in text),
]


@dataclass(slots=True)
class PaymentSection:
    instrument_type: str
    offer_ids: list[str] = field(default_factory=list)
    providers: frozenset[str] = frozenset()


class InstrumentClassifier:
    """Assigns a payment instrument to an offer id.

    Offers nested under a payment-option section take that section's
    instrument. Otherwise a provider shared with a section decides, and
    as a last resort the description and title are matched against
    KEYWORD_RULES.
    """

    def __init__(self, sections: Iterable[PaymentSection], rules: list[tuple[str, KeywordRule]] | None = None) -> None:
        self.sections = list(sections)
        self.rules = rules or KEYWORD_RULES
        self.structured: dict[str, str] = {}
        for section in self.sections:
            for offer_id in section.offer_ids:
                self.structured[offer_id] = section.instrument_type

    def classify(
        self,
        offer_id: str,
        providers: Iterable[str] = (),
        description: str | None = None,
        title: str | None = None,
    ) -> str | None:
        if offer_id in self.structured:
            return self.structured[offer_id]

        provider_set = frozenset(p.strip().upper() for p in providers if p)
        for section in self.sections:
            if provider_set & section.providers:
                return section.instrument_type

        text = f"{description or ''} {title or ''}".lower()
        for instrument, matches in self.rules:
            if matches(text, provider_set):
                return instrument
        return None

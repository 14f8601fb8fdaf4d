from __future__ import annotations

import re

from offer_agent.models import NO_COST_EMI, OfferFacts

_AMOUNT = r"(?:₹|\brs\.?|\binr)\s*(\d[\d,]*)"


def parse_amount(raw: str) -> int | None:
    digits = raw.replace(",", "")
    return int(digits) if digits.isdigit() else None


class OfferPatternExtractor:
    """Pulls discount facts out of an offer's description and title.

    Each fact is matched independently; a missing match leaves the field
    as None. The description is searched before the title. Amounts are
    returned in rupees.
    """

    percent_pattern = re.compile(r"(?<![\d.])(\d{1,3})%", re.IGNORECASE)
    max_cap_pattern = re.compile(r"(?:up\s?to|max(?:imum)?\.?)[^₹\n]{0,40}?" + _AMOUNT, re.IGNORECASE)
    min_order_pattern = re.compile(
        r"\bmin(?:imum)?\.?(?:\s*(?:order|txn|transaction|purchase|cart))?(?:\s*(?:value|amount))?\s*(?:of)?\s*:?\s*"
        + _AMOUNT,
        re.IGNORECASE,
    )
    fee_waiver_pattern = re.compile(
        r"(?:interest|processing\s+fees?|fee\s+waiver)[^₹\n]{0,60}?" + _AMOUNT,
        re.IGNORECASE,
    )

    def extract(self, description: str | None, title: str | None, instrument: str | None = None) -> OfferFacts:
        texts = [text for text in (description, title) if text]
        facts = OfferFacts()

        percent = self._first(self.percent_pattern, texts)
        if percent is not None:
            facts.percent = percent / 100
        facts.max_discount_cap = self._first(self.max_cap_pattern, texts)
        facts.min_order_value = self._first(self.min_order_pattern, texts)
        facts.is_no_cost_emi_offer = instrument == NO_COST_EMI or any("no cost emi" in t.lower() for t in texts)
        if facts.is_no_cost_emi_offer:
            facts.fee_waiver_amount = self._first(self.fee_waiver_pattern, texts)
        return facts

    def _first(self, pattern: re.Pattern[str], texts: list[str]) -> int | None:
        for text in texts:
            match = pattern.search(text)
            if match:
                value = parse_amount(match.group(1))
                if value is not None:
                    return value
        return None

from __future__ import annotations

import logging
import math
from typing import Any, Protocol

from offer_agent.db import OfferStore
from offer_agent.errors import ValidationError
from offer_agent.models import DiscountQuery, DiscountResult, OfferFacts, OfferRecord
from offer_agent.patterns import OfferPatternExtractor

logger = logging.getLogger(__name__)


class DiscountEvaluator(Protocol):
    def compute(self, amount: float, offer: OfferRecord, facts: OfferFacts, value: float) -> float:
        """Return the discount an offer yields for amount, before the amount cap."""


class FeeWaiverEvaluator:
    def compute(self, amount: float, offer: OfferRecord, facts: OfferFacts, value: float) -> float:
        return float(facts.fee_waiver_amount or 0)


class PercentDiscountEvaluator:
    def compute(self, amount: float, offer: OfferRecord, facts: OfferFacts, value: float) -> float:
        cap = facts.max_discount_cap if facts.max_discount_cap is not None else amount
        return min(amount * (facts.percent or 0.0), cap)


class FlatDiscountEvaluator:
    def compute(self, amount: float, offer: OfferRecord, facts: OfferFacts, value: float) -> float:
        return min(facts.max_discount_cap or value, amount)


def parse_amount_to_pay(raw: Any) -> float:
    if raw is None or isinstance(raw, bool) or raw == "":
        raise ValidationError("amountToPay is required and must be a number")
    try:
        amount = float(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError("amountToPay is required and must be a number") from exc
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError("amountToPay must be a positive number")
    return amount


def optional_text(raw: Any) -> str | None:
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


class DiscountResolver:
    """Finds the offer giving the largest discount for a purchase."""

    DEFAULT_EVALUATORS: dict[str, DiscountEvaluator] = {
        "fee_waiver": FeeWaiverEvaluator(),
        "percent": PercentDiscountEvaluator(),
        "flat": FlatDiscountEvaluator(),
    }

    def __init__(
        self,
        store: OfferStore,
        extractor: OfferPatternExtractor | None = None,
        minor_units_per_major: int = 100,
        rederive: bool = True,
        discount_evaluators: dict[str, DiscountEvaluator] | None = None,
    ) -> None:
        self.store = store
        self.extractor = extractor or OfferPatternExtractor()
        self.minor_units_per_major = minor_units_per_major
        self.rederive = rederive
        self.discount_evaluators = discount_evaluators or self.DEFAULT_EVALUATORS

    def facts_for(self, offer: OfferRecord) -> OfferFacts:
        if self.rederive:
            return self.extractor.extract(offer.description, offer.title, offer.payment_instrument)
        return offer.facts or OfferFacts()

    def applicable_discount(self, amount: float, offer: OfferRecord) -> float | None:
        """Discount for amount, or None when the order is below the offer's minimum."""
        facts = self.facts_for(offer)
        if facts.min_order_value is not None and amount < facts.min_order_value:
            return None

        if facts.is_no_cost_emi_offer:
            kind = "fee_waiver"
        elif facts.percent is not None:
            kind = "percent"
        else:
            kind = "flat"
        evaluator = self.discount_evaluators.get(kind)
        if evaluator is None:
            return 0.0
        value = (offer.value or 0.0) / self.minor_units_per_major
        discount = evaluator.compute(amount, offer, facts, value)
        return max(min(discount, amount), 0.0)

    def resolve(self, query: DiscountQuery) -> DiscountResult:
        amount = parse_amount_to_pay(query.amount_to_pay)
        offers = self.store.find_offers(bank_name=query.bank_name, payment_instrument=query.payment_instrument)

        best_discount = 0.0
        best_offer: OfferRecord | None = None
        for offer in offers:
            discount = self.applicable_discount(amount, offer)
            if discount is None:
                continue
            if discount > best_discount:
                best_discount = discount
                best_offer = offer

        logger.debug(
            "Resolved amount=%s bank=%s instrument=%s over %s offers -> %s",
            amount,
            query.bank_name,
            query.payment_instrument,
            len(offers),
            best_discount,
        )
        return DiscountResult(highest_discount_amount=best_discount, winning_offer=best_offer)

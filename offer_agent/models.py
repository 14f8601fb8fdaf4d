from __future__ import annotations

from dataclasses import dataclass, field

NO_COST_EMI = "NO_COST_EMI"
EMI = "EMI_OPTIONS"
CREDIT = "CREDIT"
DEBIT = "DEBIT"
UPI = "UPI"
NET_BANKING = "NET_OPTIONS"


@dataclass(slots=True)
class OfferFacts:
    percent: float | None = None
    max_discount_cap: int | None = None
    min_order_value: int | None = None
    is_no_cost_emi_offer: bool = False
    fee_waiver_amount: int | None = None


@dataclass(slots=True, frozen=True)
class OfferRecord:
    offer_id: str
    title: str
    bank_name: str | None = None
    payment_instrument: str | None = None
    type: str | None = None
    value: float = 0.0
    description: str | None = None
    facts: OfferFacts | None = field(default=None, compare=False)

    @property
    def key(self) -> tuple[str, str | None, str | None]:
        return (self.offer_id, self.bank_name, self.payment_instrument)


@dataclass(slots=True)
class DiscountQuery:
    amount_to_pay: float
    bank_name: str | None = None
    payment_instrument: str | None = None


@dataclass(slots=True)
class DiscountResult:
    highest_discount_amount: float
    winning_offer: OfferRecord | None = None


@dataclass(slots=True)
class IngestionResult:
    offers_identified: int = 0
    new_offers_created: int = 0
    store_failures: int = 0


def offer_summary(offer: OfferRecord | None) -> dict | None:
    if offer is None:
        return None
    return {
        "offerId": offer.offer_id,
        "bankName": offer.bank_name,
        "type": offer.type,
        "title": offer.title,
        "paymentInstrument": offer.payment_instrument,
    }


def result_to_dict(result: DiscountResult) -> dict:
    winner = result.winning_offer
    return {
        "highestDiscountAmount": result.highest_discount_amount,
        "winningOffer": offer_summary(winner),
        "offerDescription": winner.description if winner else None,
        "bankName": winner.bank_name if winner else None,
        "title": winner.title if winner else None,
        "paymentInstrument": winner.payment_instrument if winner else None,
    }


def ingestion_to_dict(result: IngestionResult) -> dict:
    return {
        "message": "Offers processed successfully",
        "noOfOffersIdentified": result.offers_identified,
        "noOfNewOffersCreated": result.new_offers_created,
    }

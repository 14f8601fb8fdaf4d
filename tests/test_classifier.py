import pytest

from offer_agent.classifier import InstrumentClassifier, PaymentSection
from offer_agent.models import CREDIT, DEBIT, EMI, NET_BANKING, NO_COST_EMI, UPI


@pytest.mark.parametrize(
    "description, expected",
    [
        ("No Cost EMI on HDFC credit card", NO_COST_EMI),
        ("EMI on credit card transactions", EMI),
        ("10% off with credit card", CREDIT),
        ("Instant discount on debit card", DEBIT),
        ("Cashback on UPI payments", UPI),
        ("Save with Net Banking", NET_BANKING),
        ("Flat discount on all payments", None),
    ],
)
def test_keyword_rules_in_priority_order(description, expected):
    classifier = InstrumentClassifier([])
    assert classifier.classify("FPO1", [], description, "Offer") == expected


def test_known_card_bank_counts_as_credit():
    classifier = InstrumentClassifier([])
    assert classifier.classify("FPO1", ["hdfc"], "Flat ₹100 off", "Save 100") == CREDIT


def test_structured_section_wins_over_text():
    classifier = InstrumentClassifier([PaymentSection(instrument_type=EMI, offer_ids=["FPO1"])])
    assert classifier.classify("FPO1", [], "Cashback on UPI payments", "Save") == EMI


def test_last_section_claiming_an_offer_wins():
    classifier = InstrumentClassifier(
        [
            PaymentSection(instrument_type=CREDIT, offer_ids=["FPO1"]),
            PaymentSection(instrument_type=EMI, offer_ids=["FPO1"]),
        ]
    )
    assert classifier.classify("FPO1") == EMI


def test_shared_provider_wins_over_text():
    classifier = InstrumentClassifier([PaymentSection(instrument_type=UPI, providers=frozenset({"PHONEPE"}))])
    assert classifier.classify("FPO2", ["PhonePe"], "Pay with credit card", "Save") == UPI
    assert classifier.classify("FPO3", ["PAYTM"], "Pay with credit card", "Save") == CREDIT


def test_emi_must_be_a_whole_word():
    classifier = InstrumentClassifier([])
    assert classifier.classify("FPO4", [], "Flat ₹200 off on Premium credit card", "Save 200") == CREDIT
    assert classifier.classify("FPO5", [], "Easy EMI, 6 months", "Save") == EMI

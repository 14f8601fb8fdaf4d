from __future__ import annotations

import copy

import pytest


def _section_offer(offer_id: str) -> dict:
    return {"offerFooter": {"tncInfo": {"id": offer_id}}}


VENDOR_PAYLOAD = {
    "items": [
        {
            "type": "PAYMENT_OPTION",
            "data": {
                "instrumentType": "EMI_OPTIONS",
                "content": {
                    "options": [
                        {
                            "provider": "BAJAJ",
                            "aggregatedOffer": {
                                "callout": {"content": {"information": {"offers": [_section_offer("FPO_EMI")]}}}
                            },
                        }
                    ]
                },
            },
        },
        {
            "type": "PAYMENT_OPTION",
            "data": {"instrumentType": "UPI", "content": {"options": [{"provider": "PHONEPE"}]}},
        },
        {"type": "PAYMENT_OPTION", "data": {"content": "not-a-dict"}},
        {
            "type": "OFFER_LIST",
            "data": {
                "offers": {
                    "offerList": [
                        {
                            "offerDescription": {
                                "id": "FPO_HDFC",
                                "text": "10% Instant Discount on HDFC Bank Credit Card Transactions, up to ₹1,000. Min Txn Value: ₹5,000",
                            },
                            "offerText": {"text": "Save 1000"},
                            "provider": ["HDFC", "FLIPKARTAXISBANK"],
                        },
                        {
                            "offerDescription": {
                                "id": "FPO_EMI",
                                "text": "No Cost EMI on select cards, interest waived up to ₹1,500",
                            },
                            "offerText": {"text": "No Cost EMI"},
                            "provider": ["HDFC"],
                        },
                        {
                            "offerDescription": {"id": "FPO_GEN", "text": "Flat ₹500 off on all payments"},
                            "offerText": {"text": "Save 500"},
                            "provider": [],
                        },
                        {
                            "offerDescription": {"id": "FPO_UPI", "text": "Cashback on payments"},
                            "offerText": {"text": "Save 50"},
                            "provider": ["PHONEPE"],
                        },
                        {"offerDescription": {"text": "entry without an id"}, "offerText": {"text": "Broken"}},
                        {"offerDescription": {"id": "FPO_NOTITLE", "text": "entry without a title"}},
                    ]
                }
            },
        },
    ],
    "viewTracking": {
        "offersAvailable": {
            "offerSummary": [
                {"id": "FPO_HDFC", "type": "INSTANT_DISCOUNT", "value": 100000},
                {"id": "FPO_GEN", "type": "INSTANT_DISCOUNT", "value": 50000},
                {"id": "FPO_EMI", "type": "NO_COST_EMI", "value": 0},
            ]
        }
    },
}


@pytest.fixture
def vendor_payload() -> dict:
    return copy.deepcopy(VENDOR_PAYLOAD)

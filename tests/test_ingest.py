import json
import threading

import pytest

from offer_agent.db import Database, MemoryOfferStore
from offer_agent.errors import StoreError, ValidationError
from offer_agent.ingest import ingest_payload, ingest_sources
from offer_agent.sources import JsonPayloadSource


class FlakyStore(MemoryOfferStore):
    def __init__(self, failing_offer_id: str) -> None:
        super().__init__()
        self.failing_offer_id = failing_offer_id

    def insert_if_absent(self, offer):
        if offer.offer_id == self.failing_offer_id:
            raise StoreError("connection reset")
        return super().insert_if_absent(offer)


def test_second_ingest_creates_nothing(tmp_path, vendor_payload):
    db = Database(str(tmp_path / "offers.db"))

    first = ingest_payload(db, vendor_payload)
    assert first.offers_identified == 5
    assert first.new_offers_created == 5

    second = ingest_payload(db, vendor_payload)
    assert second.offers_identified == 5
    assert second.new_offers_created == 0
    assert db.count_offers() == 5
    assert [row["status"] for row in db.fetch_ingest_log()] == ["ok", "ok"]


def test_first_write_wins(vendor_payload):
    store = MemoryOfferStore()
    ingest_payload(store, vendor_payload)

    changed = vendor_payload
    changed["viewTracking"]["offersAvailable"]["offerSummary"][1]["value"] = 99900
    result = ingest_payload(store, changed)

    assert result.new_offers_created == 0
    generic = store.find_offers(bank_name=None)
    assert [o.value for o in generic if o.offer_id == "FPO_GEN"] == [50000]


def test_store_failure_skips_record_and_continues(vendor_payload):
    store = FlakyStore(failing_offer_id="FPO_HDFC")
    result = ingest_payload(store, vendor_payload, source="test")

    assert result.offers_identified == 5
    assert result.new_offers_created == 3
    assert result.store_failures == 2
    assert store.ingest_log[-1][:2] == ("test", "partial")


def test_missing_payload_is_rejected():
    store = MemoryOfferStore()
    with pytest.raises(ValidationError):
        ingest_payload(store, None)
    assert store.count_offers() == 0


def test_concurrent_ingest_keeps_keys_unique(tmp_path, vendor_payload):
    db_path = str(tmp_path / "offers.db")
    Database(db_path)
    results = []

    def worker():
        results.append(ingest_payload(Database(db_path), vendor_payload))

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    db = Database(db_path)
    keys = [o.key for o in db.find_offers()]
    assert len(keys) == len(set(keys)) == 5
    assert sum(r.new_offers_created for r in results) == 5


def test_ingest_sources_reads_wrapped_and_bare_payloads(tmp_path, vendor_payload):
    wrapped = tmp_path / "wrapped.json"
    wrapped.write_text(json.dumps({"flipkartOfferApiResponse": vendor_payload}), encoding="utf-8")
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    bare = tmp_path / "bare.json"
    bare.write_text(json.dumps(vendor_payload), encoding="utf-8")

    store = MemoryOfferStore()
    results = ingest_sources(store, [JsonPayloadSource(str(p)) for p in (wrapped, broken, bare)])

    assert results["wrapped.json"].new_offers_created == 5
    assert results["bare.json"].new_offers_created == 0
    assert "broken.json" not in results
    assert ("broken.json", "failed") in [entry[:2] for entry in store.ingest_log]


def test_non_object_source_does_not_stop_later_sources(tmp_path, vendor_payload):
    a_list = tmp_path / "a_list.json"
    a_list.write_text("[1, 2]", encoding="utf-8")
    good = tmp_path / "good.json"
    good.write_text(json.dumps(vendor_payload), encoding="utf-8")

    store = MemoryOfferStore()
    results = ingest_sources(store, [JsonPayloadSource(str(a_list)), JsonPayloadSource(str(good))])

    assert "a_list.json" not in results
    assert results["good.json"].new_offers_created == 5
    assert ("a_list.json", "failed") in [entry[:2] for entry in store.ingest_log]

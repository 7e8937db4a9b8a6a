"""
Coupon redemption and listing against an in-memory document store.
"""

import threading
from datetime import datetime, timedelta
from unittest.mock import patch

import mongomock
import pytest
from bson import ObjectId

from munchclub_admin.core.database import db
from munchclub_admin.core.document_store import CouponStore
from munchclub_admin.core.errors import InvalidArgument, NotFound
from munchclub_admin.modules.coupons.service import list_coupons, redeem_coupon, search_filter

from conftest import make_app

NOW = "munchclub_admin.modules.coupons.service._now"


@pytest.fixture
def coupons(coupon_store, ctx):
    with coupon_store as store:
        yield store.coupons


def seed(collection, count, **overrides):
    base = datetime(2024, 1, 1)
    ids = []
    for i in range(count):
        doc = {
            "couponCode": f"MUNCH{i:03d}",
            "purchaserEmail": f"buyer{i}@example.com",
            "recipientEmail": f"friend{i}@example.com",
            "purchaserName": f"Buyer {i}",
            "recipientName": f"Friend {i}",
            "amount": 25,
            "redeemed": False,
            "timestamp": base + timedelta(minutes=i),
        }
        doc.update(overrides)
        ids.append(collection.insert_one(doc).inserted_id)
    return ids


def test_redeem_sets_flag_and_timestamp(coupon_store, coupons):
    [coupon_id] = seed(coupons, 1)
    stamp = datetime(2024, 6, 1, 9, 0)

    with patch(NOW, return_value=stamp):
        assert redeem_coupon(coupon_store, str(coupon_id)) == {"success": True}

    doc = coupons.find_one({"_id": coupon_id})
    assert doc["redeemed"] is True
    assert doc["redeemedAt"] == stamp


def test_redeem_twice_restamps(coupon_store, coupons):
    [coupon_id] = seed(coupons, 1)
    first, second = datetime(2024, 6, 1), datetime(2024, 6, 2)

    with patch(NOW, side_effect=[first, second]):
        redeem_coupon(coupon_store, str(coupon_id))
        redeem_coupon(coupon_store, str(coupon_id))

    doc = coupons.find_one({"_id": coupon_id})
    assert doc["redeemed"] is True
    assert doc["redeemedAt"] == second


def test_redeem_unknown_coupon(coupon_store, coupons):
    with pytest.raises(NotFound):
        redeem_coupon(coupon_store, str(ObjectId()))


def test_redeem_malformed_id(coupon_store, coupons):
    with pytest.raises(InvalidArgument):
        redeem_coupon(coupon_store, "not-an-object-id")


def test_list_newest_first_with_stats(coupon_store, coupons):
    seed(coupons, 3)
    seed(coupons, 1, couponCode="USED001", redeemed=True, amount=40,
         timestamp=datetime(2023, 12, 31))

    result = list_coupons(coupon_store)

    codes = [doc["couponCode"] for doc in result["data"]]
    assert codes == ["MUNCH002", "MUNCH001", "MUNCH000", "USED001"]
    assert isinstance(result["data"][0]["_id"], str)
    assert result["data"][0]["timestamp"] == "2024-01-01T00:02:00"
    assert result["pagination"] == {
        "totalCount": 4, "totalPages": 1, "currentPage": 1, "limit": 50,
    }
    assert result["stats"] == {
        "totalCoupons": 4, "redeemedCoupons": 1, "activeCoupons": 3, "totalValue": 115,
    }


def test_list_limit_is_capped(coupon_store, coupons):
    seed(coupons, 205)

    result = list_coupons(coupon_store, limit=500)

    assert len(result["data"]) == 200
    assert result["pagination"]["limit"] == 200
    assert result["pagination"]["totalPages"] == 2


def test_list_page_floors_at_one(coupon_store, coupons):
    seed(coupons, 2)

    result = list_coupons(coupon_store, page=0, limit=1)

    assert result["pagination"]["currentPage"] == 1
    assert result["data"][0]["couponCode"] == "MUNCH001"


def test_search_is_case_insensitive_substring(coupon_store, coupons):
    seed(coupons, 3)
    seed(coupons, 1, couponCode="GIFT-X", recipientName="Grace O'Hara", purchaserName="Zed")

    by_name = list_coupons(coupon_store, q="o'hara")
    assert [doc["couponCode"] for doc in by_name["data"]] == ["GIFT-X"]

    by_email = list_coupons(coupon_store, q="BUYER1@")
    assert [doc["couponCode"] for doc in by_email["data"]] == ["MUNCH001"]


def test_search_treats_regex_characters_literally(coupon_store, coupons):
    seed(coupons, 2)
    seed(coupons, 1, couponCode="A.B+C")

    result = list_coupons(coupon_store, q="A.B+")
    assert [doc["couponCode"] for doc in result["data"]] == ["A.B+C"]

    assert search_filter("a.b")["$or"][0]["couponCode"]["$regex"] == r"a\.b"


def test_coupon_endpoints(client, coupon_store, mongo_client):
    collection = mongo_client["munchclub_test"]["coupons"]
    [coupon_id] = seed(collection, 1)

    response = client.get("/api/admin/coupons?q=munch000")
    assert response.status_code == 200
    assert response.get_json()["stats"]["totalCoupons"] == 1

    response = client.patch(f"/api/admin/coupons/{coupon_id}")
    assert response.status_code == 200
    assert response.get_json() == {"success": True}

    response = client.patch(f"/api/admin/coupons/{ObjectId()}")
    assert response.status_code == 404

    response = client.patch("/api/admin/coupons/xyz")
    assert response.status_code == 400


def test_store_scoping_leaves_injected_client_open(coupon_store):
    with coupon_store as store:
        with coupon_store:
            pass
        assert store.connected
    assert coupon_store.connected

    coupon_store.close()
    assert coupon_store.connected


def test_owned_client_survives_with_blocks_until_closed():
    with patch("munchclub_admin.core.document_store.MongoClient",
               side_effect=lambda *args, **kwargs: mongomock.MongoClient()) as factory:
        store = CouponStore(uri="mongodb://coupons.test/munchclub", db_name="munchclub_test")
        with store:
            pass
        with store:
            pass
        assert store.connected
        assert factory.call_count == 1

        store.close()
        assert not store.connected


def test_store_without_uri_fails_on_use():
    store = CouponStore()
    with pytest.raises(RuntimeError):
        with store:
            pass


def test_shared_store_across_threads():
    workers, rounds = 8, 25
    barrier = threading.Barrier(workers)
    errors = []

    with patch("munchclub_admin.core.document_store.MongoClient",
               side_effect=lambda *args, **kwargs: mongomock.MongoClient()) as factory:
        store = CouponStore(uri="mongodb://coupons.test/munchclub", db_name="munchclub_test")

        def worker():
            try:
                barrier.wait()
                for _ in range(rounds):
                    with store as scoped:
                        scoped.coupons.count_documents({})
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    assert errors == []
    assert factory.call_count == 1
    assert store.connected


def test_app_opens_owned_store_once(tmp_db_dir):
    with patch("munchclub_admin.core.document_store.MongoClient",
               side_effect=lambda *args, **kwargs: mongomock.MongoClient()) as factory:
        app, admin = make_app(tmp_db_dir, {
            "coupon_store": CouponStore(uri="mongodb://coupons.test/munchclub", db_name="munchclub_test"),
        })
        assert admin.coupon_store.connected

        client = app.test_client()
        assert client.get("/api/admin/coupons").status_code == 200
        assert client.get("/api/admin/coupons?q=munch").status_code == 200

    assert factory.call_count == 1
    assert admin.coupon_store.connected
    admin.coupon_store.close()
    with app.app_context():
        db.session.remove()
        db.engine.dispose()

"""API tests for the coupon endpoints."""

import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from app.models.coupon import CouponDiscountType
from app.schemas.coupon import CouponCreate, CouponUpdate
from app.services.coupon_service import CouponService


@pytest.fixture
def save10(db_session):
    """SAVE10: 10% off, one use per user."""
    return CouponService(db_session).create_coupon(
        CouponCreate(
            code="SAVE10",
            description="Ten percent off",
            discount_type=CouponDiscountType.PERCENTAGE,
            discount_value=Decimal("10"),
        )
    )


def _create_payload(**overrides):
    payload = {
        "code": "welcome5",
        "description": "Five off your first order",
        "discount_type": "fixed_amount",
        "discount_value": "5.00",
        "min_purchase_amount": "20.00",
        "usage_limit": 100,
    }
    payload.update(overrides)
    return payload


class TestValidateEndpoint:
    def test_valid_code(self, client, save10):
        response = client.post("/v1/coupons/validate", json={"code": "save10", "cart_total": "100"})
        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is True
        assert data["discount_amount"] == "10.00"
        assert data["free_shipping"] is False
        assert data["coupon"]["code"] == "SAVE10"
        assert data["coupon"]["id"] == str(save10.id)
        assert data["error"] is None

    def test_capped_discount(self, client, db_session, save10):
        CouponService(db_session).update_coupon(
            save10.id,
            CouponUpdate(max_discount_amount=Decimal("5")),
        )
        response = client.post("/v1/coupons/validate", json={"code": "SAVE10", "cart_total": "100"})
        assert response.json()["discount_amount"] == "5.00"

    def test_rejection_is_reported_in_body(self, client):
        response = client.post("/v1/coupons/validate", json={"code": "NOPE", "cart_total": "10"})
        assert response.status_code == 200
        assert response.json() == {
            "valid": False,
            "coupon": None,
            "discount_amount": None,
            "free_shipping": False,
            "error": "Invalid coupon code",
            "reason": "not_found",
        }

    def test_expired(self, client, db_session):
        CouponService(db_session).create_coupon(
            CouponCreate(
                code="OLD",
                discount_type=CouponDiscountType.FIXED_AMOUNT,
                discount_value=Decimal("5"),
                valid_to=datetime.now(UTC) - timedelta(days=1),
            )
        )
        response = client.post("/v1/coupons/validate", json={"code": "OLD", "cart_total": "10"})
        assert response.json()["reason"] == "expired"

    def test_token_user_used_for_per_user_limit(
        self, client, db_session, save10, customer_headers, customer_id
    ):
        CouponService(db_session).record_coupon_usage(
            save10.id, customer_id, uuid.uuid4(), Decimal("10.00")
        )
        body = {"code": "SAVE10", "cart_total": "100", "user_id": str(uuid.uuid4())}

        anonymous = client.post("/v1/coupons/validate", json=body)
        authenticated = client.post("/v1/coupons/validate", json=body, headers=customer_headers)

        assert anonymous.json()["valid"] is True
        assert authenticated.json()["valid"] is False
        assert authenticated.json()["reason"] == "per_user_limit_reached"

    def test_body_user_id_used_without_token(self, client, db_session, save10):
        user_id = uuid.uuid4()
        CouponService(db_session).record_coupon_usage(
            save10.id, user_id, uuid.uuid4(), Decimal("10.00")
        )
        response = client.post(
            "/v1/coupons/validate",
            json={"code": "SAVE10", "cart_total": "100", "user_id": str(user_id)},
        )
        assert response.json()["reason"] == "per_user_limit_reached"

    def test_invalid_token(self, client, save10):
        response = client.post(
            "/v1/coupons/validate",
            json={"code": "SAVE10", "cart_total": "100"},
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid token"

    def test_negative_cart_total_rejected(self, client):
        response = client.post("/v1/coupons/validate", json={"code": "X", "cart_total": "-1"})
        assert response.status_code == 422


class TestAdminAuth:
    def test_missing_token(self, client):
        response = client.get("/v1/coupons/")
        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required"

    def test_customer_token_forbidden(self, client, customer_headers):
        response = client.post("/v1/coupons/", json=_create_payload(), headers=customer_headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required"

    def test_malformed_header(self, client):
        response = client.get("/v1/coupons/", headers={"Authorization": "Token abc"})
        assert response.status_code == 401


class TestCouponCrud:
    def test_create(self, client, admin_headers):
        response = client.post("/v1/coupons/", json=_create_payload(), headers=admin_headers)
        assert response.status_code == 201
        data = response.json()
        assert data["code"] == "WELCOME5"
        assert data["discount_type"] == "fixed_amount"
        assert data["discount_value"] == "5.00"
        assert data["min_purchase_amount"] == "20.00"
        assert data["usage_count"] == 0
        assert data["usage_limit_per_user"] == 1
        assert data["is_active"] is True

    def test_create_without_per_user_limit(self, client, admin_headers):
        response = client.post(
            "/v1/coupons/", json=_create_payload(usage_limit_per_user=None), headers=admin_headers
        )
        assert response.status_code == 201
        assert response.json()["usage_limit_per_user"] is None
        fetched = client.get(f"/v1/coupons/{response.json()['id']}", headers=admin_headers)
        assert fetched.json()["usage_limit_per_user"] is None

    def test_create_records_restrictions_and_creator(self, client, admin_headers, admin_id):
        response = client.post(
            "/v1/coupons/",
            json=_create_payload(
                applicable_to="categories",
                applicable_ids=["shoes", "hats"],
                excluded_ids=["SHOE-CLEARANCE"],
            ),
            headers=admin_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["applicable_to"] == "categories"
        assert data["applicable_ids"] == ["shoes", "hats"]
        assert data["excluded_ids"] == ["SHOE-CLEARANCE"]
        assert data["created_by"] == str(admin_id)

    def test_create_defaults_to_whole_catalog(self, client, admin_headers):
        data = client.post("/v1/coupons/", json=_create_payload(), headers=admin_headers).json()
        assert data["applicable_to"] == "all"
        assert data["applicable_ids"] == []
        assert data["excluded_ids"] == []

    def test_create_unknown_applicability(self, client, admin_headers):
        response = client.post(
            "/v1/coupons/", json=_create_payload(applicable_to="brands"), headers=admin_headers
        )
        assert response.status_code == 422

    def test_create_duplicate(self, client, admin_headers, save10):
        response = client.post(
            "/v1/coupons/", json=_create_payload(code="Save10"), headers=admin_headers
        )
        assert response.status_code == 409

    def test_create_invalid_percentage(self, client, admin_headers):
        response = client.post(
            "/v1/coupons/",
            json=_create_payload(discount_type="percentage", discount_value="150"),
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_list_with_filters(self, client, admin_headers, save10):
        client.post(
            "/v1/coupons/", json=_create_payload(is_active=False), headers=admin_headers
        )

        everything = client.get("/v1/coupons/", headers=admin_headers)
        active = client.get("/v1/coupons/?is_active=true", headers=admin_headers)
        search = client.get("/v1/coupons/?search=first order", headers=admin_headers)

        assert everything.headers["X-Total-Count"] == "2"
        assert [c["code"] for c in active.json()] == ["SAVE10"]
        assert active.headers["X-Total-Count"] == "1"
        assert [c["code"] for c in search.json()] == ["WELCOME5"]

    def test_list_order_and_pagination(self, client, admin_headers, save10):
        client.post("/v1/coupons/", json=_create_payload(), headers=admin_headers)

        response = client.get(
            "/v1/coupons/?order_by=code:asc&limit=1&skip=1", headers=admin_headers
        )

        assert [c["code"] for c in response.json()] == ["WELCOME5"]
        assert response.headers["X-Total-Count"] == "2"

    def test_get(self, client, admin_headers, save10):
        response = client.get(f"/v1/coupons/{save10.id}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["code"] == "SAVE10"

    def test_get_missing(self, client, admin_headers):
        response = client.get(f"/v1/coupons/{uuid.uuid4()}", headers=admin_headers)
        assert response.status_code == 404

    def test_patch(self, client, admin_headers, save10):
        response = client.patch(
            f"/v1/coupons/{save10.id}",
            json={"is_active": False, "usage_limit": 5},
            headers=admin_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["is_active"] is False
        assert data["usage_limit"] == 5
        assert data["discount_value"] == "10.00"

    def test_patch_invalid_combination(self, client, admin_headers, save10):
        response = client.patch(
            f"/v1/coupons/{save10.id}",
            json={"discount_type": "fixed_amount", "max_discount_amount": "3"},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_patch_blank_code_rejected(self, client, admin_headers, save10):
        response = client.patch(
            f"/v1/coupons/{save10.id}", json={"code": "   "}, headers=admin_headers
        )
        assert response.status_code == 422
        fetched = client.get(f"/v1/coupons/{save10.id}", headers=admin_headers)
        assert fetched.json()["code"] == "SAVE10"

    def test_patch_restrictions(self, client, admin_headers, save10):
        response = client.patch(
            f"/v1/coupons/{save10.id}",
            json={"applicable_to": "products", "applicable_ids": ["P1"]},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["applicable_to"] == "products"
        assert response.json()["applicable_ids"] == ["P1"]
        assert response.json()["excluded_ids"] == []

    def test_patch_null_restrictions_rejected(self, client, admin_headers, save10):
        response = client.patch(
            f"/v1/coupons/{save10.id}", json={"applicable_ids": None}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_patch_code_conflict(self, client, admin_headers, save10):
        created = client.post("/v1/coupons/", json=_create_payload(), headers=admin_headers)
        response = client.patch(
            f"/v1/coupons/{created.json()['id']}",
            json={"code": "save10"},
            headers=admin_headers,
        )
        assert response.status_code == 409

    def test_patch_missing(self, client, admin_headers):
        response = client.patch(
            f"/v1/coupons/{uuid.uuid4()}", json={"description": "x"}, headers=admin_headers
        )
        assert response.status_code == 404

    def test_delete(self, client, admin_headers, save10):
        response = client.delete(f"/v1/coupons/{save10.id}", headers=admin_headers)
        assert response.status_code == 204
        assert client.get(f"/v1/coupons/{save10.id}", headers=admin_headers).status_code == 404

    def test_delete_used_coupon_refused(self, client, admin_headers, save10):
        client.post(
            f"/v1/coupons/{save10.id}/usages",
            json={"order_id": str(uuid.uuid4()), "discount_amount": "10.00"},
            headers=admin_headers,
        )
        response = client.delete(f"/v1/coupons/{save10.id}", headers=admin_headers)
        assert response.status_code == 409

    def test_delete_missing(self, client, admin_headers):
        response = client.delete(f"/v1/coupons/{uuid.uuid4()}", headers=admin_headers)
        assert response.status_code == 404


class TestCouponUsages:
    def test_record_usage(self, client, admin_headers, save10):
        user_id = str(uuid.uuid4())
        order_id = str(uuid.uuid4())
        response = client.post(
            f"/v1/coupons/{save10.id}/usages",
            json={"order_id": order_id, "user_id": user_id, "discount_amount": "12.345"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["coupon_id"] == str(save10.id)
        assert data["order_id"] == order_id
        assert data["user_id"] == user_id
        assert data["discount_amount"] == "12.35"

        coupon = client.get(f"/v1/coupons/{save10.id}", headers=admin_headers).json()
        assert coupon["usage_count"] == 1

    def test_record_usage_after_limit_reached(self, client, admin_headers, db_session):
        coupon = CouponService(db_session).create_coupon(
            CouponCreate(
                code="LAST1",
                discount_type=CouponDiscountType.FIXED_AMOUNT,
                discount_value=Decimal("5"),
                usage_limit=1,
            )
        )
        body = {"order_id": str(uuid.uuid4()), "discount_amount": "5.00"}
        first = client.post(f"/v1/coupons/{coupon.id}/usages", json=body, headers=admin_headers)
        body["order_id"] = str(uuid.uuid4())
        second = client.post(f"/v1/coupons/{coupon.id}/usages", json=body, headers=admin_headers)

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()["detail"] == "Coupon usage limit has been reached"

    def test_record_usage_unknown_coupon(self, client, admin_headers):
        response = client.post(
            f"/v1/coupons/{uuid.uuid4()}/usages",
            json={"order_id": str(uuid.uuid4()), "discount_amount": "1.00"},
            headers=admin_headers,
        )
        assert response.status_code == 404

    def test_list_usages(self, client, admin_headers, save10):
        for amount in ("1.00", "2.00"):
            client.post(
                f"/v1/coupons/{save10.id}/usages",
                json={"order_id": str(uuid.uuid4()), "discount_amount": amount},
                headers=admin_headers,
            )

        response = client.get(f"/v1/coupons/{save10.id}/usages", headers=admin_headers)

        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "2"
        assert [u["discount_amount"] for u in response.json()] == ["2.00", "1.00"]

    def test_analytics(self, client, admin_headers, save10):
        user_id = str(uuid.uuid4())
        for amount in ("4.00", "6.00"):
            client.post(
                f"/v1/coupons/{save10.id}/usages",
                json={"order_id": str(uuid.uuid4()), "user_id": user_id, "discount_amount": amount},
                headers=admin_headers,
            )

        response = client.get(f"/v1/coupons/{save10.id}/analytics", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {
            "usage_count": 2,
            "usage_limit": None,
            "remaining_uses": None,
            "unique_users": 1,
            "total_discount": "10.00",
        }

"""Tests for authentication and admin endpoints."""

import uuid
from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import create_access_token
from app.config import get_settings
from app.models import AdminUser, Category, Offer, Product, Shop

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, utc


# --- Auth ---

@pytest.mark.asyncio
async def test_login(client: AsyncClient, admin_user: AdminUser):
    resp = await client.post(
        "/api/v1/auth/login", json={"email": ADMIN_EMAIL.upper(), "password": ADMIN_PASSWORD}
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["access_token"]
    assert data["user"]["email"] == ADMIN_EMAIL
    cookie = resp.headers["set-cookie"]
    assert cookie.startswith(f"{get_settings().auth_cookie_name}=")
    assert "HttpOnly" in cookie
    assert "SameSite=strict" in cookie


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, admin_user: AdminUser):
    resp = await client.post(
        "/api/v1/auth/login", json={"email": ADMIN_EMAIL, "password": "wrong-password"}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_login_rate_limited(client: AsyncClient, admin_user: AdminUser):
    limit = get_settings().login_rate_limit
    for _ in range(limit):
        resp = await client.post(
            "/api/v1/auth/login", json={"email": ADMIN_EMAIL, "password": "wrong-password"}
        )
        assert resp.status_code == 401

    resp = await client.post(
        "/api/v1/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert resp.status_code == 429
    assert int(resp.headers["retry-after"]) > 0


@pytest.mark.asyncio
async def test_me(client: AsyncClient, auth_headers: dict):
    resp = await client.get("/api/v1/auth/me", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["role"] == "admin"


@pytest.mark.asyncio
async def test_me_with_cookie(client: AsyncClient, admin_user: AdminUser):
    token = create_access_token(str(admin_user.id), admin_user.email)
    client.cookies.set(get_settings().auth_cookie_name, token)
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 200
    assert resp.json()["email"] == ADMIN_EMAIL


@pytest.mark.asyncio
async def test_me_rejects_bad_tokens(client: AsyncClient):
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 401
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    token = create_access_token(str(uuid.uuid4()), "ghost@krishikendra.in")
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_logout(client: AsyncClient):
    resp = await client.post("/api/v1/auth/logout")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_dev_create_admin(client: AsyncClient, admin_user: AdminUser):
    resp = await client.post(
        "/api/v1/auth/dev/create-admin",
        json={"email": ADMIN_EMAIL, "password": "naya-password", "name": "Suresh"},
    )
    assert resp.status_code == 200
    assert resp.json()["id"] == str(admin_user.id)
    assert resp.json()["name"] == "Suresh"

    resp = await client.post(
        "/api/v1/auth/login", json={"email": ADMIN_EMAIL, "password": "naya-password"}
    )
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_dev_create_admin_forbidden_in_production(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(get_settings(), "environment", "production")
    resp = await client.post(
        "/api/v1/auth/dev/create-admin",
        json={"email": "new@krishikendra.in", "password": "secret-123"},
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path",
    [
        "/api/v1/admin/products",
        "/api/v1/admin/categories",
        "/api/v1/admin/offers",
        "/api/v1/admin/dashboard",
        "/api/v1/admin/shop",
    ],
)
async def test_admin_routes_require_auth(client: AsyncClient, path: str):
    resp = await client.get(path)
    assert resp.status_code == 401


# --- Products ---

@pytest.mark.asyncio
async def test_admin_product_crud(client: AsyncClient, auth_headers: dict, sample_category: Category):
    resp = await client.post(
        "/api/v1/admin/products",
        headers=auth_headers,
        json={
            "name": "डीएपी",
            "name_english": "DAP 50kg",
            "price": "1350.00",
            "unit": "bag",
            "category_id": str(sample_category.id),
            "benefits": ["Strong roots"],
        },
    )
    assert resp.status_code == 201
    product = resp.json()
    assert product["in_stock"] is True
    assert product["views"] == 0
    product_id = product["id"]

    resp = await client.put(
        f"/api/v1/admin/products/{product_id}",
        headers=auth_headers,
        json={"price": "1299.50", "featured": True},
    )
    assert resp.status_code == 200
    assert float(resp.json()["price"]) == 1299.5
    assert resp.json()["featured"] is True
    assert resp.json()["name_english"] == "DAP 50kg"

    resp = await client.get("/api/v1/admin/products", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["pagination"]["total"] == 1

    resp = await client.delete(f"/api/v1/admin/products/{product_id}", headers=auth_headers)
    assert resp.status_code == 204
    resp = await client.get(f"/api/v1/admin/products/{product_id}", headers=auth_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_admin_product_requires_existing_category(client: AsyncClient, auth_headers: dict):
    resp = await client.post(
        "/api/v1/admin/products",
        headers=auth_headers,
        json={
            "name": "डीएपी",
            "name_english": "DAP 50kg",
            "price": "1350.00",
            "unit": "bag",
            "category_id": str(uuid.uuid4()),
        },
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_admin_product_update_rejects_null(
    client: AsyncClient, auth_headers: dict, sample_product: Product
):
    resp = await client.put(
        f"/api/v1/admin/products/{sample_product.id}", headers=auth_headers, json={"price": None}
    )
    assert resp.status_code == 400

    resp = await client.put(
        f"/api/v1/admin/products/{sample_product.id}",
        headers=auth_headers,
        json={"original_price": None},
    )
    assert resp.status_code == 200
    assert resp.json()["original_price"] is None


@pytest.mark.asyncio
async def test_admin_product_list_includes_out_of_stock(
    client: AsyncClient, db: AsyncSession, auth_headers: dict, sample_product: Product, sample_offer: Offer
):
    sample_product.in_stock = False
    await db.commit()
    resp = await client.get("/api/v1/admin/products", headers=auth_headers)
    products = resp.json()["products"]
    assert len(products) == 1
    assert float(products[0]["effective_price"]) == 150.0


# --- Categories ---

@pytest.mark.asyncio
async def test_admin_category_crud(client: AsyncClient, auth_headers: dict):
    payload = {"name": "कीटनाशक", "name_english": "Crop Protection!", "icon": "🐛"}
    resp = await client.post("/api/v1/admin/categories", headers=auth_headers, json=payload)
    assert resp.status_code == 201
    first = resp.json()
    assert first["slug"] == "crop-protection"
    assert first["product_count"] == 0

    resp = await client.post("/api/v1/admin/categories", headers=auth_headers, json=payload)
    assert resp.json()["slug"] == "crop-protection-1"

    resp = await client.put(
        f"/api/v1/admin/categories/{first['id']}",
        headers=auth_headers,
        json={"description": "Insecticides and fungicides"},
    )
    assert resp.status_code == 200
    assert resp.json()["description"] == "Insecticides and fungicides"
    assert resp.json()["slug"] == "crop-protection"

    resp = await client.delete(f"/api/v1/admin/categories/{first['id']}", headers=auth_headers)
    assert resp.status_code == 204


@pytest.mark.asyncio
async def test_admin_category_product_counts(
    client: AsyncClient, auth_headers: dict, sample_product: Product, other_category: Category
):
    resp = await client.get("/api/v1/admin/categories", headers=auth_headers)
    counts = {c["name_english"]: c["product_count"] for c in resp.json()}
    assert counts == {"Fertilizers": 1, "Seeds": 0}

    resp = await client.get(
        f"/api/v1/admin/categories/{sample_product.category_id}", headers=auth_headers
    )
    assert resp.json()["product_count"] == 1


@pytest.mark.asyncio
async def test_admin_category_delete_blocked_by_products(
    client: AsyncClient, auth_headers: dict, sample_product: Product
):
    resp = await client.delete(
        f"/api/v1/admin/categories/{sample_product.category_id}", headers=auth_headers
    )
    assert resp.status_code == 400


# --- Offers ---

def offer_payload(**overrides) -> dict:
    payload = {
        "title": "Rabi Dhamaka",
        "description": "Flat discount on seeds",
        "discount_type": "fixed",
        "discount_value": "100",
        "start_date": utc(-1).isoformat(),
        "end_date": utc(10).isoformat(),
        "applicable_to_all": False,
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_admin_offer_crud(
    client: AsyncClient, auth_headers: dict, other_product: Product, sample_category: Category
):
    resp = await client.post(
        "/api/v1/admin/offers",
        headers=auth_headers,
        json=offer_payload(
            product_ids=[str(other_product.id)],
            category_ids=[str(sample_category.id)],
            usage_limit=10,
        ),
    )
    assert resp.status_code == 201
    offer = resp.json()
    assert offer["product_ids"] == [str(other_product.id)]
    assert offer["category_ids"] == [str(sample_category.id)]
    assert offer["products"][0]["name_english"] == "Soybean Seeds"
    assert offer["used_count"] == 0
    assert offer["is_current_active"] is True

    resp = await client.put(
        f"/api/v1/admin/offers/{offer['id']}",
        headers=auth_headers,
        json={"is_active": False, "category_ids": []},
    )
    assert resp.status_code == 200
    assert resp.json()["is_current_active"] is False
    assert resp.json()["category_ids"] == []
    assert resp.json()["product_ids"] == [str(other_product.id)]

    resp = await client.get(f"/api/v1/admin/offers/{offer['id']}", headers=auth_headers)
    assert resp.json()["is_active"] is False

    resp = await client.delete(f"/api/v1/admin/offers/{offer['id']}", headers=auth_headers)
    assert resp.status_code == 204
    resp = await client.get(f"/api/v1/admin/offers/{offer['id']}", headers=auth_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"end_date": utc(-2).isoformat()},
        {"discount_type": "percentage", "discount_value": "120"},
        {"product_ids": [str(uuid.uuid4())]},
        {"category_ids": [str(uuid.uuid4())]},
    ],
)
async def test_admin_offer_business_rules(client: AsyncClient, auth_headers: dict, overrides: dict):
    resp = await client.post("/api/v1/admin/offers", headers=auth_headers, json=offer_payload(**overrides))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_admin_offer_request_validation(client: AsyncClient, auth_headers: dict):
    resp = await client.post(
        "/api/v1/admin/offers", headers=auth_headers, json=offer_payload(discount_value="0")
    )
    assert resp.status_code == 422
    resp = await client.post(
        "/api/v1/admin/offers", headers=auth_headers, json=offer_payload(discount_type="bogo")
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_admin_offer_update_checks_merged_state(
    client: AsyncClient, auth_headers: dict, sample_offer: Offer
):
    # Stored as 25%; raising the value past 100 must fail
    resp = await client.put(
        f"/api/v1/admin/offers/{sample_offer.id}", headers=auth_headers, json={"discount_value": "101"}
    )
    assert resp.status_code == 400

    end = sample_offer.start_date - timedelta(hours=1)
    resp = await client.put(
        f"/api/v1/admin/offers/{sample_offer.id}",
        headers=auth_headers,
        json={"end_date": end.isoformat()},
    )
    assert resp.status_code == 400

    resp = await client.put(
        f"/api/v1/admin/offers/{sample_offer.id}", headers=auth_headers, json={"title": None}
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_admin_offer_status_filter(
    client: AsyncClient, db: AsyncSession, auth_headers: dict, shop_id, sample_offer: Offer
):
    expired = Offer(
        shop_id=shop_id,
        title="Old Diwali Sale",
        description="Expired",
        discount_type="percentage",
        discount_value=10,
        start_date=utc(-30),
        end_date=utc(-20),
        used_count=0,
    )
    paused = Offer(
        shop_id=shop_id,
        title="Paused",
        description="Switched off",
        discount_type="fixed",
        discount_value=5,
        is_active=False,
        start_date=utc(-1),
        end_date=utc(1),
        used_count=0,
    )
    db.add_all([expired, paused])
    await db.commit()

    async def titles(**params):
        resp = await client.get("/api/v1/admin/offers", headers=auth_headers, params=params)
        assert resp.status_code == 200
        return {o["title"] for o in resp.json()["offers"]}

    assert await titles() == {"Kharif Sale", "Old Diwali Sale", "Paused"}
    assert await titles(status="active") == {"Kharif Sale"}
    assert await titles(status="inactive") == {"Paused"}
    assert await titles(status="expired") == {"Old Diwali Sale"}
    assert await titles(search="diwali") == {"Old Diwali Sale"}

    resp = await client.get("/api/v1/admin/offers", headers=auth_headers, params={"status": "weird"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_admin_offer_redeem(
    client: AsyncClient, db: AsyncSession, auth_headers: dict, sample_offer: Offer
):
    sample_offer.usage_limit = 1
    await db.commit()

    resp = await client.post(f"/api/v1/admin/offers/{sample_offer.id}/redeem", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["used_count"] == 1
    assert resp.json()["is_current_active"] is False

    resp = await client.post(f"/api/v1/admin/offers/{sample_offer.id}/redeem", headers=auth_headers)
    assert resp.status_code == 409

    resp = await client.post(f"/api/v1/admin/offers/{uuid.uuid4()}/redeem", headers=auth_headers)
    assert resp.status_code == 404


# --- Dashboard ---

@pytest.mark.asyncio
async def test_dashboard(
    client: AsyncClient,
    auth_headers: dict,
    sample_product: Product,
    other_product: Product,
    sample_offer: Offer,
):
    resp = await client.get("/api/v1/admin/dashboard", headers=auth_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["stats"] == {
        "total_products": 2,
        "in_stock_products": 2,
        "out_of_stock_products": 0,
        "low_stock_products": 1,
        "featured_products": 1,
        "total_categories": 2,
        "total_views": 13,
        "active_offers": 1,
    }
    viewed = data["most_viewed_products"]
    assert [p["id"] for p in viewed] == [str(other_product.id), str(sample_product.id)]
    assert float(viewed[1]["effective_price"]) == 150.0
    assert [p["id"] for p in data["low_stock_alerts"]] == [str(other_product.id)]


# --- Shop settings ---

def shop_payload(**overrides) -> dict:
    payload = {
        "shop_name": " भालावत कृषि केंद्र ",
        "shop_name_english": "Bhalawat Krishi Kendra",
        "owner_name": "रमेश भालावत",
        "owner_name_english": "Ramesh Bhalawat",
        "address": "मुख्य बाजार, नीमच",
        "address_english": "Main Market, Neemuch",
        "phone": "+91 98765 43210",
        "whatsapp": "9876543210",
        "email": "Shop@KrishiKendra.in",
        "website": "https://krishikendra.in",
        "timings": {
            "weekdays": "सुबह 8:00 - शाम 8:00",
            "weekdays_english": "8:00 AM - 8:00 PM",
            "weekends": "बंद",
            "weekends_english": "Closed",
        },
        "social_media": {"facebook": "https://facebook.com/krishikendra"},
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_shop_settings_upsert(client: AsyncClient, db: AsyncSession, auth_headers: dict, shop_id):
    resp = await client.get("/api/v1/admin/shop", headers=auth_headers)
    assert resp.status_code == 404

    resp = await client.put("/api/v1/admin/shop", headers=auth_headers, json=shop_payload())
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == str(shop_id)
    assert data["shop_name"] == "भालावत कृषि केंद्र"
    assert data["email"] == "shop@krishikendra.in"
    assert data["social_media"]["instagram"] == ""

    resp = await client.put(
        "/api/v1/admin/shop", headers=auth_headers, json=shop_payload(owner_name_english="Suresh")
    )
    assert resp.status_code == 200
    assert resp.json()["owner_name_english"] == "Suresh"

    shops = (await db.execute(select(Shop))).scalars().all()
    assert len(shops) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"shop_name": "   "},
        {"email": "not-an-email"},
        {"phone": "12345"},
        {"whatsapp": "call me maybe"},
        {"website": "krishikendra"},
        {"social_media": {"youtube": "youtube channel"}},
        {
            "timings": {
                "weekdays": "9-7",
                "weekdays_english": "9-7",
                "weekends": "",
                "weekends_english": "Closed",
            }
        },
    ],
)
async def test_shop_settings_validation(
    client: AsyncClient, auth_headers: dict, sample_shop: Shop, overrides: dict
):
    resp = await client.put("/api/v1/admin/shop", headers=auth_headers, json=shop_payload(**overrides))
    assert resp.status_code == 400

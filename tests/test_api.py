"""End-to-end checks through the FastAPI app."""
from datetime import datetime, timedelta


class TestAuthFlow:
    def test_signup_login_and_fetch_user(self, client):
        response = client.post("/api/auth/signup", json={
            "name": "Ria Kapoor",
            "email": "Ria@Mingree.app",
            "password": "s3cret-pass",
        })
        assert response.status_code == 201
        body = response.json()
        assert body["user"]["email"] == "ria@mingree.app"
        assert body["user"]["subscription_plan"] == "free"

        login = client.post("/api/auth/login", json={"email": "ria@mingree.app", "password": "s3cret-pass"})
        assert login.status_code == 200
        token = login.json()["access_token"]

        me = client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["handle"] == body["user"]["handle"]

    def test_wrong_password(self, client):
        client.post("/api/auth/signup", json={"name": "Ria", "email": "ria@mingree.app", "password": "s3cret-pass"})
        response = client.post("/api/auth/login", json={"email": "ria@mingree.app", "password": "nope-nope"})
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid email or password"}

    def test_missing_auth_header(self, client):
        response = client.get("/api/auth/user")
        assert response.status_code == 401
        assert response.json() == {"error": "Missing authorization header"}

    def test_null_token_rejected(self, client):
        response = client.get("/api/auth/user", headers={"Authorization": "Bearer null"})
        assert response.status_code == 401

    def test_validation_errors_use_error_key(self, client):
        response = client.post("/api/auth/signup", json={"name": "Ria"})
        assert response.status_code == 422
        assert "error" in response.json()


class TestCreatorEndpoints:
    def test_free_creator_gets_subscription_required(self, client, make_user, make_campaign, auth_headers):
        campaign = make_campaign()
        free_user = make_user(pro=False)
        response = client.post(f"/api/campaigns/{campaign.id}/reserve", headers=auth_headers(free_user))
        assert response.status_code == 403
        assert response.json() == {"error": "Subscription required"}

    def test_reserve_then_notifications(self, client, creator, make_campaign, auth_headers):
        campaign = make_campaign()
        headers = auth_headers(creator)

        response = client.post(f"/api/campaigns/{campaign.id}/reserve", headers=headers)
        assert response.status_code == 201
        assert response.json()["status"] == "reserved"

        listed = client.get("/api/campaigns", headers=headers).json()
        assert [c["spots_remaining"] for c in listed] == [4]

        assert client.get("/api/notifications/unread-count", headers=headers).json() == {"count": 1}
        client.post("/api/notifications/read-all", headers=headers)
        assert client.get("/api/notifications/unread-count", headers=headers).json() == {"count": 0}

    def test_higher_tier_campaign_hidden(self, client, make_user, make_campaign, auth_headers):
        make_campaign(tier="Tier 8")
        small = make_user(followers=600)
        assert client.get("/api/campaigns", headers=auth_headers(small)).json() == []

    def test_wallet_info(self, client):
        body = client.get("/api/wallet/info").json()
        assert body == {"min_withdrawal_amount": 500.0, "currency": "INR", "gst_percent": 18}

    def test_join_and_leave_category_group(self, client, creator, auth_headers):
        headers = auth_headers(creator)
        joined = client.post("/api/category-subscriptions", json={"category": "food", "tier": "Tier 2"}, headers=headers)
        assert joined.status_code == 201

        too_high = client.post("/api/category-subscriptions", json={"category": "food", "tier": "Tier 9"}, headers=headers)
        assert too_high.status_code == 400

        left = client.delete("/api/category-subscriptions", params={"category": "food", "tier": "Tier 2"}, headers=headers)
        assert left.status_code == 200
        assert client.get("/api/category-subscriptions", headers=headers).json() == []

    def test_categories_are_public(self, client):
        ids = {c["id"] for c in client.get("/api/categories").json()}
        assert "food" in ids


class TestSponsorAndAdmin:
    def test_sponsor_creates_campaign_into_escrow(self, client, sponsor, auth_headers):
        response = client.post("/api/sponsors/campaigns", headers=auth_headers(sponsor), json={
            "title": "Monsoon Drinks",
            "category": "food",
            "tier": "Tier 2",
            "pay_amount": 100,
            "total_spots": 2,
            "deadline": (datetime.utcnow() + timedelta(days=5)).isoformat(),
        })
        assert response.status_code == 201
        body = response.json()
        assert body["total_budget"] == 200.0
        assert body["is_approved"] is False

    def test_sponsor_short_on_funds(self, client, make_user, auth_headers):
        poor = make_user(role="sponsor", balance="50.00")
        response = client.post("/api/sponsors/campaigns", headers=auth_headers(poor), json={
            "title": "Monsoon Drinks",
            "category": "food",
            "tier": "Tier 2",
            "pay_amount": 100,
            "total_spots": 2,
            "deadline": (datetime.utcnow() + timedelta(days=5)).isoformat(),
        })
        assert response.status_code == 400
        assert response.json() == {"error": "Insufficient balance", "required": 220.0, "available": 50.0}

    def test_admin_routes_need_admin(self, client, creator, admin, auth_headers):
        assert client.get("/api/admin/stats", headers=auth_headers(creator)).status_code == 403
        assert client.get("/api/admin/stats", headers=auth_headers(admin)).status_code == 200

    def test_admin_approves_submission(self, client, db, creator, admin, make_campaign, auth_headers):
        campaign = make_campaign()
        reservation = client.post(f"/api/campaigns/{campaign.id}/reserve", headers=auth_headers(creator)).json()
        submitted = client.post(
            f"/api/reservations/{reservation['id']}/submit",
            json={"link": "https://instagram.com/reel/xyz"},
            headers=auth_headers(creator),
        )
        assert submitted.status_code == 201

        approved = client.post(f"/api/admin/reservations/{reservation['id']}/approve", headers=auth_headers(admin))
        assert approved.status_code == 200

        db.refresh(creator)
        assert float(creator.balance) == 90.0

    def test_international_sponsor_deposit_quote(self, client, make_user, auth_headers):
        overseas = make_user(role="sponsor", country="AE")
        body = client.get("/api/sponsors/deposit-quote", params={"amount": 1000}, headers=auth_headers(overseas)).json()
        assert body["processing_fee"] == 50.0
        assert body["gst_amount"] == 0.0
        assert body["total_amount"] == 1050.0

    def test_payment_quote_and_default_pay(self, client, sponsor, auth_headers):
        headers = auth_headers(sponsor)
        quote = client.get(
            "/api/sponsors/payment-quote",
            params={"tier": "Tier 2", "promotion_style": "face_ad", "total_spots": 3},
            headers=headers,
        ).json()
        assert quote == {"pay_amount": 40.0, "creator_payment": 120.0, "platform_fee": 12.0, "total_cost": 132.0}

        created = client.post("/api/sponsors/campaigns", headers=headers, json={
            "title": "Chai Week",
            "category": "food",
            "tier": "Tier 2",
            "total_spots": 3,
            "deadline": (datetime.utcnow() + timedelta(days=5)).isoformat(),
        })
        assert created.status_code == 201
        assert created.json()["pay_amount"] == 40.0

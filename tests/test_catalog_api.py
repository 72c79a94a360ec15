"""Tests for the catalog and auth API routers."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from visapath.web.app import create_app


@pytest.fixture
def client(catalog):
    return TestClient(create_app(catalog=catalog))


class TestCatalogApi:
    def test_countries(self, client):
        resp = client.get("/api/countries")
        assert resp.status_code == 200
        codes = [c["code"] for c in resp.json()]
        assert "IN" in codes
        assert "GB" in codes
        assert "isActive" in resp.json()[0]

    def test_country_detail(self, client):
        assert client.get("/api/countries/gb").json()["name"] == "United Kingdom"
        assert client.get("/api/countries/ZZ").status_code == 404

    def test_visa_types_for_route(self, client):
        resp = client.get("/api/visa-types/route/in/gb")
        assert [v["id"] for v in resp.json()] == ["IN-GB-STUDENT"]
        assert resp.json()[0]["visaFee"] == {"amount": 524.0, "currency": "GBP"}

    def test_visa_type_filter(self, client):
        assert client.get("/api/visa-types", params={"category": "visitor"}).json() == []
        assert len(client.get("/api/visa-types", params={"origin": "IN"}).json()) == 1

    def test_visa_type_detail(self, client):
        body = client.get("/api/visa-types/IN-GB-STUDENT").json()
        assert body["id"] == "IN-GB-STUDENT"
        assert body["customQuestions"][0]["id"] == "hasCAS"
        assert client.get("/api/visa-types/XX-YY-NONE").status_code == 404

    def test_requirements_without_answers(self, client):
        body = client.post("/api/visa-types/IN-GB-STUDENT/requirements").json()
        doc_ids = [d["id"] for d in body["documents"]]
        assert "atas-certificate" not in doc_ids
        assert body["feeEstimate"]["total"] == 1319
        assert body["personalized"] is False

    def test_requirements_with_answers(self, client):
        body = client.post(
            "/api/visa-types/IN-GB-STUDENT/requirements",
            json={"hasATAS": True, "priorityService": True},
        ).json()
        docs = {d["id"]: d for d in body["documents"]}
        assert docs["atas-certificate"]["isPersonalized"] is True
        assert docs["passport"]["isPersonalized"] is False
        assert "academic" in body["documentsByCategory"]
        assert body["feeEstimate"]["total"] == 1819
        assert body["visaType"]["name"] == "Student Visa"

    def test_requirements_bad_answers(self, client):
        resp = client.post(
            "/api/visa-types/IN-GB-STUDENT/requirements", json={"casDate": "tomorrow"}
        )
        assert resp.status_code == 400

    def test_checklist_pdf(self, client):
        resp = client.post("/api/visa-types/IN-GB-STUDENT/checklist", json={"hasCAS": True})
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert "checklist-in-gb-student.pdf" in resp.headers["content-disposition"]
        assert resp.content[:5] == b"%PDF-"

    def test_origin_and_destination_countries(self, client):
        origins = [c["code"] for c in client.get("/api/countries/origins").json()]
        destinations = [c["code"] for c in client.get("/api/countries/destinations").json()]
        assert origins == ["IN", "NG"]
        assert destinations[0] == "GB"
        assert "IN" not in destinations

    def test_countries_by_region(self, client):
        body = client.get("/api/countries/regions/North America").json()
        assert [c["code"] for c in body["countries"]] == ["US", "CA"]
        assert client.get("/api/countries/regions/Narnia").status_code == 400

    def test_route_support(self, client):
        body = client.get("/api/countries/route/in/gb").json()
        assert body["isSupported"] is True
        assert body["visaTypeIds"] == ["IN-GB-STUDENT"]

        body = client.get("/api/countries/route/gb/in").json()
        assert body["isSupported"] is False
        assert [c["code"] for c in body["availableOrigins"]] == ["IN", "NG"]

    def test_popular_and_search(self, client):
        popular = client.get("/api/visa-types/popular", params={"limit": 3}).json()
        assert [v["id"] for v in popular] == ["IN-GB-STUDENT"]

        body = client.get("/api/visa-types/search", params={"q": "university"}).json()
        assert body["query"] == "university"
        assert [v["id"] for v in body["visaTypes"]] == ["IN-GB-STUDENT"]
        assert client.get("/api/visa-types/search", params={"q": "x"}).status_code == 400

    def test_catalog_stats(self, client):
        countries = client.get("/api/countries/stats").json()
        assert countries["totalCountries"] == 7
        assert countries["originCountries"] == 2
        assert countries["byRegion"]["Europe"] == 2

        visa_types = client.get("/api/visa-types/stats").json()
        assert visa_types["activeVisaTypes"] == 1
        assert visa_types["byCategory"] == {"student": 1}
        assert visa_types["averageProcessingDays"] == 15


class TestAuthApi:
    def test_login_me_logout(self, client):
        login = client.post(
            "/api/auth/login", json={"email": "priya@example.com", "code": "123456"}
        )
        assert login.status_code == 200
        token = login.json()["token"]
        assert login.json()["user"]["userId"] == "user-priya"

        headers = {"Authorization": f"Bearer {token}"}
        me = client.get("/api/auth/me", headers=headers)
        assert me.json()["email"] == "priya@example.com"

        assert client.post("/api/auth/logout", headers=headers).json() == {"revoked": True}
        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_login_wrong_code(self, client):
        resp = client.post("/api/auth/login", json={"email": "priya@example.com", "code": "0"})
        assert resp.status_code == 401

    def test_logged_in_user_can_save_progress(self, client):
        token = client.post(
            "/api/auth/login", json={"email": "priya@example.com", "code": "123456"}
        ).json()["token"]
        resp = client.post(
            "/api/journeys",
            json={"originCountry": "IN", "destinationCountry": "GB"},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert resp.status_code == 201
        assert resp.json()["userId"] == "user-priya"

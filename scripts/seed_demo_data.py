#!/usr/bin/env python3
"""Seed demo journeys into a running VisaPath backend.

Usage:
    # Start the backend first:
    uvicorn visapath.web.app:create_app --factory --port 8080

    # Seed demo data:
    python3 scripts/seed_demo_data.py

    # Seed against a different host:
    python3 scripts/seed_demo_data.py --base-url http://localhost:9000

All data goes through the public API, so it passes the same validation and
state machine as a real user's progress.

Data created:
    - A student visa journey with personalization answers (CAS received)
    - Checklist and step progress on that journey
    - A share grant for the demo advisor, plus notes from both users
"""

from __future__ import annotations

import argparse
import os
import sys
from datetime import datetime, timezone

import httpx

DEFAULT_BASE_URL = "http://localhost:8080"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def api(
    client: httpx.Client,
    method: str,
    path: str,
    *,
    json: dict | None = None,
    params: dict | None = None,
    token: str | None = None,
) -> dict | list | None:
    """Make an API call and return parsed JSON, or None on failure."""
    headers = {}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    resp = client.request(method, path, json=json, params=params, headers=headers)
    if resp.status_code >= 400:
        print(f"  FAILED {method} {path} -> {resp.status_code}: {resp.text[:200]}")
        return None
    if resp.headers.get("content-type", "").startswith("application/json"):
        return resp.json()
    return None


def section(title: str) -> None:
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}")


def login(client: httpx.Client, email: str, code: str) -> str | None:
    result = api(client, "POST", "/api/auth/login", json={"email": email, "code": code})
    if result and result.get("token"):
        print(f"  Logged in as {result['user']['displayName']}")
        return result["token"]
    print(f"  WARNING: login failed for {email}")
    return None


# ---------------------------------------------------------------------------
# Journeys
# ---------------------------------------------------------------------------


def seed_student_journey(client: httpx.Client, token: str) -> str | None:
    section("Student Journey (IN -> GB)")
    journey = api(client, "POST", "/api/journeys", token=token, json={
        "originCountry": "IN",
        "destinationCountry": "GB",
        "userType": "student",
        "visaType": "student",
        "personalizationData": {
            "studyLocation": "london",
            "courseLevel": "postgraduate",
            "requiresTBTest": True,
        },
    })
    if not journey:
        return None
    journey_id = journey["id"]
    print(f"  Journey {journey_id[:8]}... status={journey['status']}")

    journey = api(client, "PATCH", f"/api/journeys/{journey_id}/personalization", token=token, json={
        "personalizationData": {"hasCAS": True, "casDate": "15/01/2026"},
    })
    if journey:
        completed = [k for k, v in journey["stepCompletion"].items() if v]
        print(f"  CAS received, auto-completed steps: {completed}")

    api(client, "PATCH", f"/api/journeys/{journey_id}/checklist", token=token, json={
        "checklist": {"passport": True, "cas": True, "financial-evidence": False},
    })
    journey = api(client, "PATCH", f"/api/journeys/{journey_id}/steps/financial-evidence",
                  token=token, json={"completed": True})
    if journey:
        print(f"  Progress: {journey['progressMetrics']['completionPercentage']}%")
    return journey_id


def seed_sharing(client: httpx.Client, journey_id: str, owner_token: str, advisor_token: str | None) -> None:
    section("Sharing and Notes")
    api(client, "POST", f"/api/journeys/{journey_id}/share", token=owner_token, json={
        "email": "advisor@example.com",
        "permission": "comment",
    })
    print("  Shared with advisor@example.com (comment)")
    api(client, "POST", f"/api/journeys/{journey_id}/notes", token=owner_token, json={
        "content": "Bank statements need to be less than 31 days old when I apply.",
    })
    if advisor_token:
        api(client, "POST", f"/api/journeys/{journey_id}/notes", token=advisor_token, json={
            "content": "Book the TB test early, clinics in Mumbai fill up in peak season.",
        })
    print("  Added notes")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo data into a running VisaPath backend")
    parser.add_argument(
        "--base-url",
        default=DEFAULT_BASE_URL,
        help=f"Backend base URL (default: {DEFAULT_BASE_URL})",
    )
    args = parser.parse_args()

    print("VisaPath Demo Data Seeder")
    print(f"Target: {args.base_url}")
    print(f"Time:   {datetime.now(timezone.utc).isoformat()}")

    with httpx.Client(base_url=args.base_url, timeout=30.0) as client:
        try:
            health = api(client, "GET", "/api/health")
        except httpx.ConnectError:
            print(f"\nERROR: Cannot connect to {args.base_url}")
            print("Start the backend first:")
            print("  uvicorn visapath.web.app:create_app --factory --port 8080")
            sys.exit(1)
        if not health:
            print("\nERROR: Backend is not responding.")
            sys.exit(1)

        print(f"Backend: {health.get('status', 'unknown')} (v{health.get('version', '?')})")

        section("Authentication")
        owner_token = login(
            client,
            os.environ.get("DEMO_USER_EMAIL", "priya@example.com"),
            os.environ.get("DEMO_USER_CODE", "123456"),
        )
        advisor_token = login(client, "advisor@example.com", "654321")
        if owner_token is None:
            sys.exit(1)

        journey_id = seed_student_journey(client, owner_token)
        if journey_id:
            seed_sharing(client, journey_id, owner_token, advisor_token)

        section("Done")
        print("  Demo data seeded. Restart the backend to clear in-memory data.")


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""Smoke script for the booking API against a running server."""

import sys
from datetime import date, timedelta

import httpx


BASE_URL = "http://127.0.0.1:8001"
PROVIDER_ID = "ana"


def next_weekday(start: date, weekday: int) -> date:
    return start + timedelta(days=(weekday - start.weekday()) % 7 or 7)


def check_availability(day: date) -> list[dict]:
    """Fetch free 30 minute slots for the sample provider."""
    print("=" * 60)
    print(f"GET /api/v1/providers/{PROVIDER_ID}/availability")
    print("=" * 60)

    response = httpx.get(
        f"{BASE_URL}/api/v1/providers/{PROVIDER_ID}/availability",
        params={"date": day.isoformat(), "duration_minutes": 30},
        timeout=30.0,
    )
    response.raise_for_status()
    slots = response.json()["slots"]
    print(f"✅ {len(slots)} slots")
    for slot in slots[:5]:
        print(f"  {slot['start_time']} -> {slot['end_time']}  score={slot['adaptation_score']}")
    return slots


def book(slot: dict) -> dict | None:
    payload = {
        "kind": "consecutive",
        "provider_id": PROVIDER_ID,
        "start_time": slot["start_time"],
        "services": [{"service_id": "haircut"}, {"service_id": "beard"}],
        "client_id": "smoke-client",
        "payment_method": "local",
    }
    response = httpx.post(f"{BASE_URL}/api/v1/bookings", json=payload, timeout=30.0)
    if response.status_code >= 400:
        print(f"❌ HTTP Error: {response.status_code}")
        print(f"Response: {response.text}")
        return None
    data = response.json()
    print(f"✅ Booked {data['id']} {data['start_time']} -> {data['end_time']} ({data['status']})")
    return data


def retry_same_slot(slot: dict) -> None:
    """The same window again must come back as a recoverable overlap."""
    payload = {
        "kind": "single",
        "provider_id": PROVIDER_ID,
        "service_id": "haircut",
        "start_time": slot["start_time"],
        "client_id": "smoke-client-2",
    }
    response = httpx.post(f"{BASE_URL}/api/v1/bookings", json=payload, timeout=30.0)
    print(f"Second booking -> {response.status_code} {response.json()}")


def complete(appointment_id: str) -> None:
    response = httpx.put(
        f"{BASE_URL}/api/v1/appointments/{appointment_id}/status",
        json={"status": "completed", "payment_status": "paid"},
        timeout=30.0,
    )
    print(f"Complete -> {response.status_code} {response.json().get('status')}")


def main():
    print("\n🚀 Testing Booking API\n")

    try:
        httpx.get(f"{BASE_URL}/health", timeout=5.0)
        print("✅ Server is running\n")
    except httpx.HTTPError:
        print("❌ Server is not running!")
        print("   Please start it with: uvicorn booking_engine.main:app --reload --port 8001")
        sys.exit(1)

    day = next_weekday(date.today(), 0)
    slots = check_availability(day)
    if not slots:
        print("No free slots; is PROVIDER_DIRECTORY_FILE pointing at data/providers.example.json?")
        sys.exit(1)

    appointment = book(slots[0])
    if appointment:
        retry_same_slot(slots[0])
        complete(appointment["id"])

    print("\n" + "=" * 60)
    print("✅ Smoke run complete!")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    main()

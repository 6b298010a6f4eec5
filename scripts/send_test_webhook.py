#!/usr/bin/env python
"""
Send signed test webhooks to a running shipbridge instance.

Usage:
    WEBHOOK_SECRET=... python scripts/send_test_webhook.py [http://localhost:8000]
"""
import json
import os
import sys

import requests

sys.path.insert(0, os.path.join(os.path.dirname(__file__), os.pardir))

from orders.security import generate_webhook_signature  # noqa: E402

BASE_URL = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"
WEBHOOK_URL = f"{BASE_URL.rstrip('/')}/webhook/orders"
WEBHOOK_SECRET = os.environ.get("WEBHOOK_SECRET", "your-secret-key-here")

SAMPLE_ORDER = {
    "id": 820982911946154508,
    "order_number": 1001,
    "email": "jon@example.com",
    "source_name": "web",
    "created_at": "2024-05-01T10:00:00+03:00",
    "line_items": [
        {
            "product_id": 632910392,
            "variant_id": 808950810,
            "title": "IPod Nano - 8GB",
            "current_quantity": 2,
            "requires_shipping": True,
        }
    ],
    "shipping_address": {
        "name": "Jon Snow",
        "address1": "Mannerheimintie 1",
        "city": "Helsinki",
        "zip": "00100",
        "country_code": "FI",
        "phone": "+358401234567",
    },
    "shipping_lines": [{"title": "Standard - Pickup Point", "code": "PICKUP", "price": "4.90"}],
}


def send(payload_bytes, headers, title, expected):
    print("=" * 60)
    print(title)
    print("=" * 60)
    response = requests.post(WEBHOOK_URL, data=payload_bytes, headers=headers, timeout=10)
    print(f"Response Status: {response.status_code}")
    print(f"Response Body: {response.text}")
    print(f"Expected: {expected}\n")


def main():
    body = json.dumps(SAMPLE_ORDER).encode("utf-8")
    signature = generate_webhook_signature(body, WEBHOOK_SECRET)

    send(
        body,
        {"Content-Type": "application/json", "X-Shopify-Hmac-Sha256": signature},
        "Valid signature",
        "200 OK",
    )
    send(
        body,
        {"Content-Type": "application/json", "X-Shopify-Hmac-Sha256": "wrong_signature_12345"},
        "Invalid signature",
        "401 Unauthorized",
    )
    send(body, {"Content-Type": "application/json"}, "No signature header", "401 Unauthorized")


if __name__ == "__main__":
    print(f"Testing against: {WEBHOOK_URL}\n")
    try:
        main()
    except requests.exceptions.ConnectionError:
        print(f"Could not connect to {BASE_URL}. Is the server running? (python manage.py runserver)")
        sys.exit(1)

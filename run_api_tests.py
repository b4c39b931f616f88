"""Manual smoke run against a local server: uvicorn src.main:app --port 8000

Registers three throwaway users, walks one auction from creation to
settlement and prints every response.
"""
import json
import time
import urllib.error
import urllib.request
import uuid

BASE = "http://localhost:8000/api/v1"
PASSWORD = "Test1234!"


def call(method, path, body=None, token=None):
    data = json.dumps(body).encode() if body is not None else None
    req = urllib.request.Request(
        f"{BASE}{path}", data=data, method=method,
        headers={"Content-Type": "application/json"},
    )
    if token:
        req.add_header("Authorization", f"Bearer {token}")
    try:
        with urllib.request.urlopen(req) as r:
            return json.loads(r.read())
    except urllib.error.HTTPError as e:
        return json.loads(e.read())


def section(title):
    print(f"\n{'='*60}")
    print(f"### {title} ###")
    print('='*60)


def label(name):
    print(f"\n--- {name} ---")


def out(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))
    return data


def signup(prefix):
    username = f"{prefix}_{uuid.uuid4().hex[:6]}"
    call("POST", "/auth/register", {"username": username, "password": PASSWORD})
    r = call("POST", "/auth/login", {"username": username, "password": PASSWORD})
    return r.get("data", {}).get("access_token", "")


# ── Users ──────────────────────────────────────────────────────
section("USERS")
SELLER, ALICE, BOB = signup("seller"), signup("alice"), signup("bob")
for token in (ALICE, BOB):
    call("POST", "/account/deposit", {"amount_cents": 10_000}, token=token)
out(call("GET", "/account/profile", token=ALICE))

# ── Auction lifecycle ──────────────────────────────────────────
section("AUCTION LIFECYCLE")

label("Create (starts in 1 minute, runs 2 minutes)")
r = out(call("POST", "/auctions", {
    "item_name": "Vintage lamp", "description": "Brass, works",
    "base_price_cents": 1_000, "start_delay_minutes": 1, "live_duration_minutes": 2,
}, token=SELLER))
AID = r.get("data", {}).get("id", "")

label("Bid while UPCOMING (expect 4002)")
out(call("POST", f"/auctions/{AID}/bids", {"amount_cents": 1_500}, token=ALICE))

label("Activate early")
out(call("POST", f"/auctions/{AID}/activate", token=SELLER))

label("Seller bids on own item (expect 4001)")
out(call("POST", f"/auctions/{AID}/bids", {"amount_cents": 1_500}, token=SELLER))

label("Alice bids 1500")
out(call("POST", f"/auctions/{AID}/bids", {"amount_cents": 1_500}, token=ALICE))

label("Bob bids 1500 (expect 4003)")
out(call("POST", f"/auctions/{AID}/bids", {"amount_cents": 1_500}, token=BOB))

label("Bob bids 2500")
out(call("POST", f"/auctions/{AID}/bids", {"amount_cents": 2_500}, token=BOB))

label("Delete with bids (expect 3005)")
out(call("DELETE", f"/auctions/{AID}", token=SELLER))

label("Live listings")
out(call("GET", "/auctions/live", token=ALICE))

label("End auction")
out(call("POST", f"/auctions/{AID}/end", token=SELLER))

label("End again (expect 3004)")
out(call("POST", f"/auctions/{AID}/end", token=SELLER))

label("Result")
out(call("GET", f"/auctions/{AID}/result", token=ALICE))

label("Balances")
time.sleep(0.1)
for token in (SELLER, ALICE, BOB):
    out(call("GET", "/account/profile", token=token))

print("\n\n=== SMOKE RUN COMPLETE ===\n")

#!/usr/bin/env python3
"""
Smoke script: exercises the chat relay endpoints against a running server.

- GET  /health           -> {"status": "ok"}
- POST /chat (invalid)   -> 400 {"reply": "Invalid input."}
- POST /chat             -> 200 {"reply": ...}   (needs GROQ_API_KEY on the server)
- POST /chat (weather)   -> 200, live search used if TAVILY_API_KEY is set

Run with the backend up (e.g. python -m relay.main), then: python smoke_chat.py
"""
import os
import sys

import requests

BASE_URL = os.environ.get("API_BASE", "http://localhost:5000").rstrip("/")
CHAT_URL = f"{BASE_URL}/chat"

FAILED = []


def ok(name: str, resp: requests.Response, want_status: int | None = None) -> bool:
    if want_status is not None and resp.status_code != want_status:
        print(f"  FAIL {name}: got status {resp.status_code}, want {want_status} -> {resp.text[:200]}")
        FAILED.append(name)
        return False
    if not resp.ok and want_status is None:
        print(f"  FAIL {name}: status {resp.status_code} -> {resp.text[:200]}")
        FAILED.append(name)
        return False
    print(f"  OK   {name}")
    return True


def main() -> None:
    print("\nChat relay smoke tests")
    print("=" * 50)

    print("\n1. GET /health")
    r = requests.get(f"{BASE_URL}/health", timeout=10)
    ok("GET health", r, 200)

    print("\n2. POST /chat (empty message -> 400)")
    r = requests.post(CHAT_URL, json={"message": "   "}, timeout=10)
    if ok("POST chat invalid", r, 400):
        print(f"     -> {r.json()}")

    print("\n3. POST /chat (too much history -> 400)")
    history = [{"sender": "user", "text": f"m{i}"} for i in range(21)]
    r = requests.post(CHAT_URL, json={"message": "hi", "history": history}, timeout=10)
    ok("POST chat long history", r, 400)

    print("\n4. POST /chat (plain question)")
    history = [
        {"sender": "user", "text": "My name is Sam."},
        {"sender": "assistant", "text": "Nice to meet you, Sam."},
    ]
    r = requests.post(CHAT_URL, json={"message": "What is my name?", "history": history}, timeout=60)
    if ok("POST chat", r, 200):
        print(f"     -> reply={r.json().get('reply')!r}")

    print("\n5. POST /chat (live-data question)")
    r = requests.post(CHAT_URL, json={"message": "What's the weather in NYC today?"}, timeout=60)
    if ok("POST chat weather", r, 200):
        print(f"     -> reply={r.json().get('reply')!r}")

    print("\n" + "=" * 50)
    if FAILED:
        print(f"FAILED: {len(FAILED)} check(s) -> {FAILED}")
        sys.exit(1)
    print("All smoke checks passed.")
    sys.exit(0)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""Exercise the per-IP verification budgets against a running server.

RUN:  python scripts/load_test_rate_limit.py [BASE_URL]

Sends bursts to the single and batch verification endpoints and prints
how many requests were served (200) versus throttled (429).  Expected with
a fresh server: 100 single verifications, then 429s; 10 batch calls, then
429s.  Not a load testing tool; use k6 or locust for that.

Prerequisites:
  - The API is running: uvicorn trustcred.main:app --port 3001
  - RATE_LIMIT_ENABLED is not set to false
"""

from __future__ import annotations

import hashlib
import sys
import time

import httpx

BASE_URL = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:3001"


def _id(n: int) -> str:
    return hashlib.sha256(f"load-test-{n}".encode()).hexdigest()


def _burst(client: httpx.Client, label: str, total: int, send) -> None:
    results: dict[int, int] = {}
    start = time.monotonic()
    for i in range(total):
        resp = send(client, i)
        results[resp.status_code] = results.get(resp.status_code, 0) + 1
    elapsed = time.monotonic() - start

    allowed = results.get(200, 0)
    throttled = results.get(429, 0)
    other = sum(v for k, v in results.items() if k not in (200, 429))
    print(f"{label}: {total} requests in {elapsed:.2f}s")
    print(f"  Allowed  (200): {allowed:>4}")
    print(f"  Throttled(429): {throttled:>4}")
    if other:
        print(f"  Other:          {other:>4}  {sorted(results)}")
    print()


def main() -> None:
    print(f"Rate limit check against {BASE_URL}")
    print("=" * 50)
    with httpx.Client(base_url=BASE_URL, timeout=15) as client:
        _burst(
            client,
            "GET /api/v1/verify/{id} (100 / 15 min)",
            110,
            lambda c, i: c.get(f"/api/v1/verify/{_id(i)}"),
        )
        _burst(
            client,
            "POST /api/v1/verify/batch (10 / 15 min)",
            15,
            lambda c, i: c.post(
                "/api/v1/verify/batch", json={"credentialIds": [_id(i), _id(i + 1)]}
            ),
        )


if __name__ == "__main__":
    main()

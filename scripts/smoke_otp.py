# scripts/smoke_otp.py
"""
End-to-end smoke test against a running deployment.

    python scripts/smoke_otp.py https://etherworld-otp.up.railway.app

Requests a code for a throwaway address, then asks for the code on stdin
(in TEST MODE it is printed in the deployment logs) and verifies it.
"""
import argparse
import sys
import time

import httpx


def main():
    parser = argparse.ArgumentParser(description="Smoke test the OTP endpoints")
    parser.add_argument("base_url", help="e.g. https://etherworld-otp.up.railway.app")
    parser.add_argument("--email", default=None, help="address to use (default: test+<timestamp>@example.com)")
    args = parser.parse_args()

    email = args.email or f"test+{int(time.time())}@example.com"

    with httpx.Client(base_url=args.base_url.rstrip("/"), timeout=15) as client:
        health = client.get("/health")
        print(f"Health: {health.status_code} {health.json()}")

        print(f"Sending OTP to {email}...")
        sent = client.post("/auth/send-otp", json={"email": email})
        print(f"send-otp: {sent.status_code} {sent.json()}")
        if sent.status_code != 200:
            sys.exit(1)

        print("NOTE: If running in TEST MODE, check your deployment logs for the printed OTP code.")
        code = input("Code: ").strip()

        verified = client.post("/auth/verify-otp", json={"email": email, "code": code})
        print(f"verify-otp: {verified.status_code} {verified.json()}")
        sys.exit(0 if verified.status_code == 200 else 1)


if __name__ == "__main__":
    main()

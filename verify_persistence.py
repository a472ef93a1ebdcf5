import time
import subprocess
import httpx
import sys
import os
import signal
from datetime import date

BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/v1"

# Created by backend/seed_users.py
OWNER = {"email": "owner@raghhavroadways.com", "password": "owner123"}


def wait_for_server(retries=10, delay=2):
    url = f"{BASE_URL}/health"
    print(f"Waiting for server at {url}...")
    for i in range(retries):
        try:
            resp = httpx.get(url)
            if resp.status_code == 200:
                print("✅ Server is up!")
                return True
        except httpx.ConnectError:
            pass
        time.sleep(delay)
    print("❌ Server failed to start.")
    return False


def start_server(echo=False):
    env = {**os.environ, "DB_ECHO": "True"} if echo else None
    return subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "backend.app.main:app", "--host", "127.0.0.1", "--port", "8000"],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=env
    )


def stop_server(proc):
    proc.send_signal(signal.SIGTERM)
    proc.wait()


def login():
    resp = httpx.post(f"{BASE_URL}{API_PREFIX}/auth/login", json=OWNER)
    if resp.status_code != 200:
        raise Exception(f"Login failed: {resp.status_code} {resp.text} (run backend/seed_users.py first)")
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def run_verification():
    # 1. Start Server (First Run)
    print("\n--- [Step 1] Starting Server (Initial) ---")
    proc = start_server(echo=True)

    try:
        if not wait_for_server():
            server_logs = proc.communicate(timeout=2)
            print("Server Stdout:", server_logs[0].decode())
            print("Server Stderr:", server_logs[1].decode())
            raise Exception("Server start failed")

        # 2. Book a consignment
        print("\n--- [Step 2] Booking Consignment (Persistence Test) ---")
        headers = login()
        party = httpx.post(f"{BASE_URL}{API_PREFIX}/parties", json={
            "type": "COMPANY", "name": "Persistence Check Traders", "state": "Rajasthan"
        }, headers=headers)
        if party.status_code != 201:
            raise Exception(f"Party creation failed: {party.status_code} {party.text}")
        party_id = party.json()["id"]

        resp = httpx.post(f"{BASE_URL}{API_PREFIX}/consignments", json={
            "booking_date": date.today().isoformat(),
            "consignor_id": party_id,
            "consignee_id": party_id,
            "from_city": "Jaipur",
            "to_city": "Ajmer",
            "description": "Persistence check",
            "freight_amount": 100,
        }, headers=headers)
        if resp.status_code != 201:
            print(f"❌ Booking Failed: {resp.status_code} {resp.text}")
            raise Exception("Booking failed")

        consignment = resp.json()
        print(f"✅ Booked {consignment['lr_number']}")

    finally:
        print("\n--- [Step 3] Stopping Server ---")
        stop_server(proc)

    time.sleep(2)  # Wait for port release

    # 3. Restart Server
    print("\n--- [Step 4] Restarting Server (Verification) ---")
    proc2 = start_server()

    try:
        if not wait_for_server():
            raise Exception("Server restart failed")

        print("\n--- [Step 5] Reading Consignment (Post-Restart) ---")
        headers = login()
        resp = httpx.get(f"{BASE_URL}{API_PREFIX}/consignments/{consignment['id']}", headers=headers)
        if resp.status_code == 200 and resp.json()["lr_number"] == consignment["lr_number"]:
            print("✅ Consignment Persisted")
        else:
            print(f"❌ Consignment Missing (Persistence Issue?): {resp.status_code} {resp.text}")
            raise Exception("Consignment lost after restart")

        # 6. The GR counter must not restart either
        print("\n--- [Step 6] Verifying Numbering ---")
        resp = httpx.get(f"{BASE_URL}{API_PREFIX}/settings", headers=headers)
        counter = int(resp.json()["settings"]["lr_counter"])
        issued = int(consignment["lr_number"][-4:])
        if counter > issued:
            print(f"✅ Next GR number is {counter}")
        else:
            print(f"❌ GR counter went backwards: next={counter}, last issued={issued}")
            raise Exception("Counter lost after restart")

    finally:
        print("\n--- [Step 7] Stopping Server ---")
        stop_server(proc2)


if __name__ == "__main__":
    run_verification()

import requests
import os
import sys

BASE_URL = "http://127.0.0.1:8765/api"
ORG_ID = os.environ.get("FLOW_ORG_ID", "11111111-1111-1111-1111-111111111111")
YEAR, MONTH = 2031, 1
DAY = "2031-01-15"

def list_shifts(teacher_ids):
    r = requests.get(f"{BASE_URL}/shifts/", params={
        "org_id": ORG_ID, "year": YEAR, "month": MONTH, "teacher_ids": teacher_ids,
    })
    r.raise_for_status()
    return r.json()

def fail(message):
    print(f"❌ {message}")
    sys.exit(1)

def run_test():
    print("🧪 STARTING BACKEND INTEGRATION TEST...")

    # 1. Health Check
    try:
        r = requests.get("http://127.0.0.1:8765/health")
        if r.status_code == 200:
            print("✅ Backend is UP")
        else:
            fail(f"Backend failed health check: {r.status_code}")
    except requests.RequestException as e:
        fail(f"Could not connect to backend: {e}")

    teachers = ["FLOW_T1", "FLOW_T2"]

    # 2. First assignment, then a batch that must overwrite it
    print("🔹 Step 1: Assigning FLOW_T1 08:00-10:00...")
    r = requests.post(f"{BASE_URL}/shifts/assign", json={
        "org_id": ORG_ID, "teacher_id": "FLOW_T1", "scheduled_date": DAY,
        "start_time": "08:00", "end_time": "10:00",
    })
    if r.status_code != 200:
        fail(f"Assign failed: {r.text}")

    print("🔹 Step 2: Batch assigning FLOW_T1 + FLOW_T2 09:00-17:00...")
    r = requests.post(f"{BASE_URL}/shifts/batch", json={
        "org_id": ORG_ID, "scheduled_date": DAY, "teacher_ids": teachers,
        "start_time": "09:00", "end_time": "17:00",
    })
    if r.status_code != 200:
        fail(f"Batch failed: {r.text}")

    shifts = list_shifts(teachers)
    if len(shifts) == 2 and all(s["start_time"] == "09:00:00" for s in shifts):
        print("✅ Batch overwrote the earlier shift (one row per teacher)")
    else:
        fail(f"Unexpected shifts after batch: {shifts}")

    # 3. Draft: cancel FLOW_T2, commit
    print("🔹 Step 3: Editing in draft mode...")
    state = requests.post(f"{BASE_URL}/shifts/draft", json={
        "org_id": ORG_ID, "year": YEAR, "month": MONTH, "teacher_ids": teachers,
    }).json()
    state = requests.post(f"{BASE_URL}/shifts/draft/cancel", json={
        "draft": state, "teacher_id": "FLOW_T2", "scheduled_date": DAY,
    }).json()

    if len(list_shifts(teachers)) != 2:
        fail("Draft edits leaked into the store before commit")

    r = requests.post(f"{BASE_URL}/shifts/draft/commit", json=state)
    if r.status_code != 200:
        fail(f"Commit failed: {r.text}")

    shifts = list_shifts(teachers)
    if [s["teacher_id"] for s in shifts] == ["FLOW_T1"]:
        print("✅ Commit applied the draft")
    else:
        fail(f"Unexpected shifts after commit: {shifts}")

    # 4. Cleanup
    print("🔹 Step 4: Cleaning up...")
    for teacher_id in teachers:
        requests.delete(f"{BASE_URL}/shifts/{teacher_id}/{DAY}", params={"org_id": ORG_ID})
    if list_shifts(teachers):
        fail("Cleanup left shifts behind")
    print("✅ Cleanup done")

    print("\n🎉 ALL TESTS PASSED!")

if __name__ == "__main__":
    run_test()

# scripts/simulate_field_day.py
import requests
import random
import time
import sys

BASE_URL = "http://localhost:8000"

def generate_inspection():
    fuel = random.choice(["GAS", "GAS", "ELECTRIC", "TANKLESS_GAS", "TANKLESS_ELECTRIC", "HYBRID"])
    record = {
        "calendar_age": random.randint(0, 18),
        "house_psi": random.choice([45, 55, 62, 68, 75, 85, 95, 110]),
        "fuel_type": fuel,
        "warranty_years": random.choice([6, 6, 9, 12]),
        "hardness_gpg": random.choice([0, 3, 7, 12, 18, 25]),
        "has_softener": random.random() < 0.3,
        "has_prv": random.random() < 0.4,
        "has_exp_tank": random.random() < 0.4,
        "is_closed_loop": random.random() < 0.3,
        "has_circ_pump": random.random() < 0.2,
        "location": random.choice(["GARAGE", "BASEMENT", "ATTIC", "MAIN_LIVING", "EXTERIOR"]),
        "temp_setting": random.choice(["LOW", "NORMAL", "NORMAL", "HOT"]),
        "visual_rust": random.random() < 0.05,
        "is_leaking": random.random() < 0.03,
    }
    if fuel.startswith("TANKLESS"):
        record["has_isolation_valves"] = random.random() < 0.5
        record["error_code_count"] = random.choice([0, 0, 0, 2, 14])
    return record

def run_simulation(n=50):
    print(f"🚀 Starting Field Day Simulation ({n} inspections)...")
    tally = {}

    for i in range(n):
        payload = generate_inspection()

        try:
            res = requests.post(f"{BASE_URL}/assessments", json=payload, timeout=10)
            if res.status_code == 200:
                verdict = res.json()["verdict"]
                tally[verdict["action"]] = tally.get(verdict["action"], 0) + 1

                flag = "🚨" if verdict["urgent"] else "✅"
                print(f"[{i+1}/{n}] {payload['fuel_type']} age {payload['calendar_age']} | {flag} {verdict['action']} | {verdict['title']}")
            else:
                print(f"[{i+1}/{n}] Error: {res.status_code} {res.text}")
        except requests.RequestException as e:
            print(f"Connection Error: {e}")
            break

        time.sleep(0.05)

    print("\n✨ Simulation Complete.")
    for action, count in sorted(tally.items()):
        print(f"  {action}: {count}")

if __name__ == "__main__":
    try:
        requests.get(f"{BASE_URL}/", timeout=5)
    except requests.RequestException:
        print("❌ Server not running!")
        sys.exit(1)

    run_simulation()

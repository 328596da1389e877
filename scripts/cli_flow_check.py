# /scripts/cli_flow_check.py
from __future__ import annotations
import argparse, sys, time, uuid, os, json
import requests

def print_step(title):
    print(f"\n=== {title} ===")

def pretty(o, indent=2):
    return json.dumps(o, indent=indent, ensure_ascii=False)

def make_sample_csv(tag: str) -> bytes:
    """Three rows: one new, one duplicate of it (other case), one with a bad quantity."""
    lines = [
        "name,category,subcategory,quantity,weight,price,expiryDate,notifyBeforeDays",
        f"Milk {tag},Dairy,Fresh,5,1,2,2099-01-01,3",
        f"MILK {tag},Dairy,Fresh,1,,1,2099-02-01,1",
        f"Bread {tag},Bakery,,abc,,1,2099-01-01,2",
    ]
    return ("\n".join(lines) + "\n").encode("utf-8")

def _headers(api_key):
    return {"X-Api-Key": api_key} if api_key else {}

def do_upload(base, api_key, csv_path=None):
    print_step("UPLOAD /v1/products/upload-csv")
    if csv_path:
        fn = os.path.basename(csv_path)
        with open(csv_path, "rb") as f:
            data = f.read()
    else:
        fn, data = "sample.csv", make_sample_csv(uuid.uuid4().hex[:6])
    t0 = time.perf_counter()
    r = requests.post(
        f"{base}/v1/products/upload-csv",
        files={"csvFile": (fn, data, "text/csv")},
        headers=_headers(api_key),
        timeout=60,
    )
    dt = (time.perf_counter() - t0) * 1000
    print(f"HTTP {r.status_code} in {dt:.0f} ms")
    if not r.ok:
        print(r.text); sys.exit(1)
    data = r.json()
    print("summary:", pretty(data.get("summary")))
    for e in data.get("errors", [])[:5]:
        print(f"  error   line {e.get('line')}: {e.get('error')}")
    for s in data.get("skipped", [])[:5]:
        print(f"  skipped line {s.get('line')}: {s.get('name')} ({s.get('reason')})")
    return data

def do_token(base, api_key, token):
    print_step("REGISTER /v1/token")
    r = requests.post(f"{base}/v1/token", json={"token": token}, headers=_headers(api_key), timeout=30)
    print(f"HTTP {r.status_code}:", r.text)
    return r.status_code in (200, 201)

def do_upcoming(base, api_key):
    print_step("UPCOMING /v1/notifications/upcoming")
    r = requests.get(f"{base}/v1/notifications/upcoming", headers=_headers(api_key), timeout=30)
    print(f"HTTP {r.status_code}")
    if not r.ok:
        print(r.text); return None
    items = r.json()
    for i, it in enumerate(items[:10], 1):
        print(f"{i:2d}. {it['product']['name']} - {it['notifyDays']} day(s) left")
    return items

def do_run(base, api_key):
    print_step("RUN /v1/notifications/run")
    r = requests.post(f"{base}/v1/notifications/run", headers=_headers(api_key), timeout=30)
    print(f"HTTP {r.status_code}:", r.text)
    time.sleep(1.0)
    s = requests.get(f"{base}/v1/notifications/status", headers=_headers(api_key), timeout=30)
    print("status:", pretty(s.json()) if s.ok else s.text)
    return s.json() if s.ok else None

def main():
    ap = argparse.ArgumentParser(description="Expiry Tracker flow checker (upload/token/notify).")
    ap.add_argument("--base", default="http://127.0.0.1:8000", help="Base URL of the FastAPI server")
    ap.add_argument("--api-key", default=os.getenv("SERVICE_API_KEY", ""), help="X-Api-Key value")
    ap.add_argument("--csv", help="CSV to upload (default: generated sample)")
    ap.add_argument("--token", default=f"cli-check-{uuid.uuid4().hex[:8]}", help="Device token to register")
    ap.add_argument("--run", action="store_true", help="Also trigger the expiry job")
    args = ap.parse_args()

    print(f"Base   : {args.base}")

    upload_res = do_upload(args.base, args.api_key, args.csv)
    token_ok = do_token(args.base, args.api_key, args.token)
    upcoming = do_upcoming(args.base, args.api_key)
    status = do_run(args.base, args.api_key) if args.run else None

    print_step("SUMMARY")
    ok = True
    summary = upload_res.get("summary") or {}
    total = summary.get("total", 0)
    accounted = summary.get("successful", 0) + summary.get("failed", 0) + summary.get("skipped", 0)
    if total and total == accounted:
        print("✅ upload: OK", summary)
    else:
        print("⚠️  upload: totals do not add up", summary)
        ok = False

    print("✅ token: OK" if token_ok else "⚠️  token: failed")
    ok = ok and token_ok

    if upcoming is None:
        print("⚠️  upcoming: error")
        ok = False
    else:
        print(f"✅ upcoming: {len(upcoming)} item(s)")

    if args.run:
        if status and status.get("state") in ("armed", "running"):
            print("✅ run: state =", status.get("state"))
        else:
            print("⚠️  run: no status")
            ok = False

    print("\nRESULT:", "PASS ✅" if ok else "CHECK NEEDED ⚠️")
    return 0 if ok else 1

if __name__ == "__main__":
    sys.exit(main())

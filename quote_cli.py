#!/usr/bin/env python3
# quote_cli.py - console client for the /quote and availability endpoints
# Usage:
#   python quote_cli.py SITE_ID CHECK_IN CHECK_OUT [--coupon CODE] [--url http://127.0.0.1:8000]
#
# Notes:
# - Dates are ISO (YYYY-MM-DD); check-out is the departure day.
# - Availability is checked first; no quote is requested for taken dates.

import argparse
import os
import sys

import requests

DEFAULT_URL = os.environ.get("LODGING_URL", "http://127.0.0.1:8000")
QUOTE_EP = "/quote"


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Price a stay")
    ap.add_argument("site_id")
    ap.add_argument("check_in", help="YYYY-MM-DD")
    ap.add_argument("check_out", help="YYYY-MM-DD (departure)")
    ap.add_argument("--coupon", help="coupon code")
    ap.add_argument("--url", default=DEFAULT_URL, help="Base URL, default %(default)s")
    return ap.parse_args(argv)


def get_availability(base_url: str, site_id: str, check_in: str, check_out: str) -> dict:
    url = f"{base_url.rstrip('/')}/sites/{site_id}/availability"
    try:
        r = requests.get(
            url, params={"check_in": check_in, "check_out": check_out}, timeout=30
        )
        r.raise_for_status()
        return r.json()
    except requests.exceptions.RequestException as e:
        return {"error": str(e)}


def post_quote(base_url: str, site_id: str, check_in: str, check_out: str, coupon=None) -> dict:
    url = base_url.rstrip("/") + QUOTE_EP
    payload = {
        "site_id": site_id,
        "check_in": check_in,
        "check_out": check_out,
        "coupon_code": coupon,
    }
    try:
        r = requests.post(url, json=payload, timeout=30)
        r.raise_for_status()
        return r.json()
    except requests.exceptions.RequestException as e:
        return {"error": str(e)}


def format_quote(obj: dict) -> str:
    if "error" in obj:
        return f"[error] {obj['error']}"
    lines = [
        f"{obj['nights']} night(s) x ${obj['price_per_night']:.2f}",
        f"  subtotal   ${obj['subtotal']:>10.2f}",
    ]
    if obj.get("discount"):
        reason = f"  ({obj['discount_reason']})" if obj.get("discount_reason") else ""
        lines.append(f"  discount  -${obj['discount']:>10.2f}{reason}")
    lines += [
        f"  tax        ${obj['tax']:>10.2f}",
        f"  total      ${obj['total']:>10.2f}",
        f"  deposit    ${obj['deposit_amount']:>10.2f}",
        f"  balance    ${obj['remaining_balance']:>10.2f}",
    ]
    return "\n".join(lines)


def main(argv=None) -> int:
    args = parse_args(argv)

    avail = get_availability(args.url, args.site_id, args.check_in, args.check_out)
    if "error" in avail:
        print(f"[error] {avail['error']}")
        return 1
    if not avail.get("available"):
        print(f"{args.site_id} is booked for {args.check_in} .. {args.check_out}")
        return 2

    quote = post_quote(args.url, args.site_id, args.check_in, args.check_out, args.coupon)
    print(format_quote(quote))
    if args.coupon and "error" not in quote and not quote.get("coupon_applied"):
        print(f"[note] coupon {args.coupon.upper()} was not applied")
    return 0 if "error" not in quote else 1


if __name__ == "__main__":
    sys.exit(main())

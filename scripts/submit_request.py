#!/usr/bin/env python3
"""
Submit an OAM spec to a running generation service and print the result.
Usage: python scripts/submit_request.py OAM_URL EXTERNAL_ID [--provider gcp] [--tool terraform] [--api http://127.0.0.1:8080]
"""
import os
import sys
import argparse

import httpx


def submit(api: str, oam_url: str, external_id: str, provider: str, tool: str) -> int:
    """POST /generate and report the outcome. Returns a process exit code."""
    payload = {
        "oam_url": oam_url,
        "external_id": external_id,
        "provider": provider,
        "tool": tool,
    }
    # generation can take minutes; the service itself enforces no timeout
    with httpx.Client(timeout=None) as client:
        response = client.post(f"{api.rstrip('/')}/generate", json=payload)

    if response.status_code != 200:
        print(f"❌ Generation failed ({response.status_code}): {response.text}")
        return 1

    body = response.json()
    print(f"✅ {body['message']}")
    if body.get("deploy_script"):
        print("\n--- deploy.sh ---")
        print(body["deploy_script"])
    return 0


def lookup(api: str, external_id: str) -> int:
    """GET /requests/{external_id} and print the latest record."""
    with httpx.Client(timeout=60) as client:
        response = client.get(f"{api.rstrip('/')}/requests/{external_id}")
    if response.status_code == 404:
        print(f"No request recorded for {external_id}")
        return 1
    response.raise_for_status()
    record = response.json()
    status = "ok" if record["status_code"] == 0 else "failed"
    print(f"{record['created_at']}  [{status}]  {record['storage_path'] or '-'}")
    print(f"  {record['message']}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Submit an OAM spec for IaC generation")
    parser.add_argument("oam_url", nargs="?", help="URL of the OAM application spec")
    parser.add_argument("external_id", help="Caller-chosen id for this request")
    parser.add_argument("--provider", default="gcp", help="Cloud provider (default: gcp)")
    parser.add_argument("--tool", default="terraform", help="IaC tool, e.g. terraform or gcloud (default: terraform)")
    parser.add_argument(
        "--api",
        default=os.getenv("IACGEN_API", "http://127.0.0.1:8080"),
        help="Service base URL (or set IACGEN_API env var)",
    )
    parser.add_argument("--lookup", action="store_true", help="Only show the latest record for EXTERNAL_ID")
    args = parser.parse_args()

    if args.lookup:
        sys.exit(lookup(args.api, args.external_id))
    if not args.oam_url:
        parser.error("oam_url is required unless --lookup is given")
    sys.exit(submit(args.api, args.oam_url, args.external_id, args.provider, args.tool))


if __name__ == "__main__":
    main()

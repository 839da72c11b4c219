"""Operator CLI for the review service: list, inspect and transition claims."""

import argparse
import json
import sys

import httpx


def _print(resp: httpx.Response) -> int:
    try:
        body = resp.json()
    except ValueError:
        body = resp.text
    print(json.dumps(body, indent=2, default=str))
    if resp.status_code == 409:
        detail = body.get("detail", {}) if isinstance(body, dict) else {}
        print(f"state conflict: claim is currently {detail.get('current_status')}", file=sys.stderr)
    return 0 if resp.status_code < 400 else 1


def main() -> int:
    """CLI entrypoint for claim review actions."""

    parser = argparse.ArgumentParser(description="Review cash-offer claims.")
    parser.add_argument("--review-url", default="http://localhost:8002")
    parser.add_argument("--api-key", required=True)
    sub = parser.add_subparsers(dest="command", required=True)

    list_cmd = sub.add_parser("list")
    list_cmd.add_argument("--status")
    list_cmd.add_argument("--limit", type=int, default=100)
    sub.add_parser("summary")
    for name in ("show", "timeline"):
        sub.add_parser(name).add_argument("claim_id")
    for name in ("approve", "reject", "mark-paid"):
        action = sub.add_parser(name)
        action.add_argument("claim_id")
        action.add_argument("--notes")
    annotate = sub.add_parser("annotate")
    annotate.add_argument("claim_id")
    annotate.add_argument("notes")
    args = parser.parse_args()

    headers = {"X-API-Key": args.api_key}
    with httpx.Client(base_url=args.review_url, headers=headers, timeout=10.0) as client:
        if args.command == "list":
            params = {"limit": args.limit}
            if args.status:
                params["status"] = args.status
            return _print(client.get("/ops/claims", params=params))
        if args.command == "summary":
            return _print(client.get("/ops/claims/summary"))
        if args.command == "show":
            return _print(client.get(f"/ops/claims/{args.claim_id}"))
        if args.command == "timeline":
            return _print(client.get(f"/ops/claims/{args.claim_id}/timeline"))
        if args.command == "annotate":
            return _print(client.put(f"/ops/claims/{args.claim_id}/notes", json={"notes": args.notes}))
        return _print(client.post(f"/ops/claims/{args.claim_id}/{args.command}", json={"notes": args.notes}))


if __name__ == "__main__":
    sys.exit(main())

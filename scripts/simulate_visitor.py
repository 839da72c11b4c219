"""Drive one browser profile through the offer flow against a running claims service.

Visits until the offer appears, submits a claim, then runs the reconciler so an
operator can approve the claim (see `review_claim.py`) and watch the popup land.
"""

import argparse
import asyncio

from cashoffer.client.api import ClaimsClient
from cashoffer.client.eligibility import EligibilityGate
from cashoffer.client.reconciler import FixedIntervalPolicy, NotificationReconciler
from cashoffer.client.storage import MemoryStore, RedisStore
from cashoffer.client.submission import ClaimSubmitter
from cashoffer.common.logging import configure_logging, profile_id_ctx


def show_popup(notification) -> None:
    print(
        f"Your cash offer claim has been approved! {notification.amount} "
        f"sent to {notification.paypal_email}, processed on {notification.processed_date}"
    )


async def simulate(args) -> None:
    profile_id_ctx.set(args.profile)
    store = RedisStore(args.redis_url, args.profile) if args.redis_url else MemoryStore()
    gate = EligibilityGate(store)
    client = ClaimsClient(args.claims_url)
    try:
        for _ in range(args.visits):
            state, offer = gate.on_page_load()
            if offer:
                gate.mark_offer_shown()
                claim = await ClaimSubmitter(gate, client).submit(
                    name=args.name,
                    email=args.email,
                    paypal_email=args.paypal_email,
                    country=args.country,
                )
                print(f"claim submitted id={claim.id} visit_count={claim.visit_count_at_claim}")
                break
        else:
            print(f"no offer after {args.visits} visits (count={gate.state().count})")

        reconciler = NotificationReconciler(client, store, show_popup, policy=FixedIntervalPolicy(args.interval))
        reconciler.start()
        await asyncio.sleep(args.duration)
        await reconciler.stop()
    finally:
        await client.close()


def main() -> None:
    """CLI entrypoint for the visitor simulation."""

    parser = argparse.ArgumentParser(description="Simulate a loyal visitor claiming the cash offer.")
    parser.add_argument("--claims-url", default="http://localhost:8001")
    parser.add_argument("--redis-url", help="persist the profile in Redis instead of memory")
    parser.add_argument("--profile", default="simulated-profile")
    parser.add_argument("--visits", type=int, default=50)
    parser.add_argument("--name", default="Loyal Visitor")
    parser.add_argument("--email", default="visitor@example.com")
    parser.add_argument("--paypal-email", default="visitor.paypal@example.com")
    parser.add_argument("--country", default="US")
    parser.add_argument("--interval", type=float, default=30.0)
    parser.add_argument("--duration", type=float, default=120.0, help="seconds to keep polling")
    args = parser.parse_args()

    configure_logging()
    asyncio.run(simulate(args))


if __name__ == "__main__":
    main()

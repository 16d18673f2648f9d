"""
Billing package - checkout, Stripe webhook intake and subscription reconciliation.

This package integrates with:
- Stripe: Payment processing and invoicing

Period expiry is handled by the expiry sweep worker.
"""

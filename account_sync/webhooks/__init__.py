"""Webhook inbound system.

Receives account lifecycle webhooks from Clerk (signed by Svix).
Each webhook is signature-verified, deduplicated, and dispatched to the
account-management API.
"""

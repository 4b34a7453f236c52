"""Payment domain: money conversion, state machine, event taxonomy, idempotency ledger."""

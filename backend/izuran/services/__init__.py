"""Business logic for accounts, events, inventory, issuance and scanning."""

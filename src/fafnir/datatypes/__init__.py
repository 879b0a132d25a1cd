"""Plain data types shared across the router, the ledger and the cogs."""

"""Platform components backing ledger entities."""

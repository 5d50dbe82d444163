"""Domain services: window planning, paging, normalization, aggregation, reconciliation."""

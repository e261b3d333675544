"""Domain services: attribute aggregation, presentation and chain reads."""

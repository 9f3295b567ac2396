"""Service layer: data access and external integrations."""

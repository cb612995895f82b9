"""Auth domain model, contracts, errors and workflows."""

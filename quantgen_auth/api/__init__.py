"""HTTP layer: routes and error translation."""

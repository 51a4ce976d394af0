"""REST API for the PayFast giving gateway."""

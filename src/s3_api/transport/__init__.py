"""HTTP application assembly."""

"""HTTP surface of the hook receiver."""

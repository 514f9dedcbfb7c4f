"""HTTP surface for the collection store."""

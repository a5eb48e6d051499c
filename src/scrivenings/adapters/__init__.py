"""Host adapters for the composition engine."""

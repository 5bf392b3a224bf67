"""Infrastructure adapters: in-memory stubs, persistence, time and observability."""

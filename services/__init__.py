"""Service layer: one module per collection, each taking the DocumentStore as its first argument."""

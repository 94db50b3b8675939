"""Shared plumbing: content references, pagination, storage, deadlines, logging."""

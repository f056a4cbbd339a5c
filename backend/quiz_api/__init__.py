"""Application package for the timed quiz backend.

This package exposes the grading, question store, service, repository
and model modules used by the FastAPI application. Grading lives in
`grading` and has no I/O; everything else wires it to HTTP and storage.
"""

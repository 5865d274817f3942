"""
Domain Layer
============

Entities, value objects, errors and services of the claim verification
pipeline. Nothing in this package performs I/O except through ports.
"""

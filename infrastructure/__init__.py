"""
Infrastructure Package
======================

Wiring shared by the storefront and vendor apps.

Modules:
    - container: lazily built, process-wide domain services
"""

"""
Form Logic Package

Conditional visibility and dynamic schema engine for multi-step
registration forms whose steps and fields are authored at runtime.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - Rendering widgets
    - Network transport or persistence
    - Authentication

It decides what is shown, keeps authored schemas consistent, and
converts them to and from the persisted wire format.

All evaluation is synchronous and side-effect free.
"""

__version__ = "0.1.0"

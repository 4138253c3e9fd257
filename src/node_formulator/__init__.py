"""node-formulator core package.

This package flattens npm dependency trees into Homebrew ``NodeModule``
resources and renders them as a formula. It is callable from the
``node-formulator`` console script and from ``scripts/formulate.py``.
"""

__all__ = [
    "core",
]

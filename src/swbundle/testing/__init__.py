"""Test utilities for swbundle applications::

    from swbundle.testing import TestClient
"""

from swbundle.testing.client import TestClient

__all__ = ["TestClient"]

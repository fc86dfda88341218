"""Smart Order Router - exact pool math and multi-path swap routing."""

__version__ = "0.1.0"

from sor.routing.router import SmartOrderRouter  # noqa: E402

__all__ = ["SmartOrderRouter", "__version__"]

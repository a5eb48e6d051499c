"""Edit an ordered set of documents as one continuous, synchronized buffer."""

__all__ = [
    "adapters",
    "buffer",
    "decoration",
    "errors",
    "runtime",
    "sections",
    "session",
]

__version__ = "0.1.0"

"""patent-query: compose patent search expressions and render them as query strings."""

__version__ = "0.1.0"

"""
Optimism Engine

Reframes free-form emotional messages into structured guidance using
lexical classifiers, a crisis gate, an iceberg-depth tracker and a
two-phase generation call with multi-provider fallback.
"""

__version__ = "0.1.0"

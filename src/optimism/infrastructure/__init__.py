"""
Optimism Infrastructure Layer

External integrations: generation providers, rate limiting, session
storage, metrics and error tracking. Components implement small
interfaces so tests can substitute fakes.
"""

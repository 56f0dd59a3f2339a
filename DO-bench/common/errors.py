"""
Fatal error types for the block benchmark.

Per-push failures (transport errors, rejected responses) are never raised:
they become error records in the report. Only setup-class problems that make
the whole run meaningless derive from BenchmarkSetupError.
"""


class BenchmarkSetupError(Exception):
    """A problem that stops the benchmark before or during a sweep."""


class ConfigurationError(BenchmarkSetupError):
    """Invalid benchmark parameters."""


class RandomGenerationError(BenchmarkSetupError):
    """The OS entropy source could not produce a payload."""


class RequestConstructionError(BenchmarkSetupError):
    """A push URL or request could not be built."""

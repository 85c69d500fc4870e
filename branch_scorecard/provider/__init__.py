"""
Metric Row Provider: the engine's only data boundary.

Modules
-------
base      : MetricRowProvider ABC + NotFound.
memory    : InMemoryProvider, dict-backed, used by tests and embedders.
json_file : JsonFileProvider, an InMemoryProvider loaded from a validated JSON dataset.
"""

"""
Dispatch layer: the per-invocation state machine and the adapter that turns
user callables into explicit outcomes.
"""

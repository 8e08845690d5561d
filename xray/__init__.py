"""
X-Ray — execution traces for multi-step decision pipelines.

Records, for each run of a pipeline, the ordered steps it took together
with their inputs, outputs, reasoning and decisions.
"""

__version__ = "0.1.0"

"""
Mastery engine.

Knowledge-tracking core of a self-study language-learning application:

- graph: Credit-propagation (encompassing) graph, reach and co-occurrence
- core: Strength model, exercise records, challenge mode
- practice: Practice session state machine, retry hints, calibration
- context: EngineContext, the explicit owner of graph and progress state
"""

__version__ = "0.1.0"

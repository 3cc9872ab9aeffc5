"""FlacronBuild estimate pipeline.

Prompt building, response normalization, cost aggregation and the
orchestrator that chains them.
"""

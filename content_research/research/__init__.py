"""
Research aggregation: orchestration, availability, link validation and field merge.

Entry point: `content_research.research.engine.ResearchEngine`.
"""

"""
Policy dependency graph and change-impact analysis engine.

Typical use:
    from policy_impact.engine import create_engine

    engine = create_engine()
    report = engine.impact.analyze_impact(policy_id)
"""

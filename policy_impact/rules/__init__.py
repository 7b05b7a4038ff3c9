"""
Rules — scoring constants, pure scoring helpers and the deterministic
change rules (recommended actions, mitigation, checklist, notifications).
"""

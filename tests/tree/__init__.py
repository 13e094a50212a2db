"""
Tests for the diagnosis tree core.

Test organization:
- test_models.py: Schema models (nodes, links, DiagnosisTree)
- test_localization.py: Locale field resolution
- test_validator.py: Structural, referential, cycle and reachability checks
- test_depth.py: Longest-path estimate
- test_traversal.py: Walk state machine and termination over random trees
"""

"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the lending engine.

The tests are organized by invariant:
1. test_formulas.py - Integer ratio, interest and admission arithmetic
2. test_atomicity.py - All-or-nothing calls
3. test_conservation.py - Collateral and loan counters, borrower index
4. test_status_transitions.py - ACTIVE leaves once and only forward
5. test_idempotency.py - Repeated terminal transitions
6. test_determinism.py - Replay, clone and restore
7. test_temporal.py - Logical clock ordering and interest over time

These tests use hypothesis for property-based testing; strategies.py holds
the shared call-sequence strategies.
"""

"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the lesson escrow engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. monotonic_ids.py - Lesson ids are unique, increasing and never reused
2. atomicity.py - Failed operations leave no trace
3. escrow_conservation.py - Escrow holds exactly what teachers are owed

These tests use hypothesis for property-based testing.
"""

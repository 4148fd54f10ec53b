"""Test suite for formguard.

This package contains tests for:
- Element schema registry contents and lookups
- Structural validation (messages, ordering, defaults, stripping, uniqueness)
- Flattened element index
- Predicate and submission event reference checks
- Integration scenarios (validate-and-raise, generators, endpoint configuration)
"""

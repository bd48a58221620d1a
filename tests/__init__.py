"""
Parabank QA Execution Core - Test Suite Package.

Contains Pytest-based test suites organized by test type:
- Unit tests for each module at the top level.
- functional/: End-to-end run scenarios against simulated executors.
"""

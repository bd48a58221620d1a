"""
Parabank QA Execution Core - Source Package.

This package contains the core logic for:
- Executors: API and UI execution strategies producing uniform results.
- Execution: Retry wrapper and the run coordinator with its worker pool.
- Drivers: HTTP client and browser-automation driver abstraction.
- Configuration: Execution settings and test-case definition loading.
"""

__version__ = "0.1.0"

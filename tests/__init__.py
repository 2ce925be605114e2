"""
configforge test suite
======================

Test Modules
------------
- test_models.py: Tests for the Pydantic schema and manifest models
- test_resolver.py: Tests for parameter resolution
- test_applier.py: Tests for template application
- test_updater.py: Tests for recorded answers and update mode
- test_cli.py: Tests for the command-line interface

Running Tests
-------------
    # Run all tests
    pytest

    # Run specific module
    pytest tests/test_applier.py

    # Run specific test class
    pytest tests/test_applier.py::TestProtection
"""

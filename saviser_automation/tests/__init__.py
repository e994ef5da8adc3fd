"""
Unit tests for the SAVISER automation engine

Run tests with:
    pytest saviser_automation/tests/ -v

Run specific test file:
    pytest saviser_automation/tests/test_engine.py -v
"""

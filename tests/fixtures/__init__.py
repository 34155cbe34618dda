"""
Pytest fixtures for the httpcall test suite.

- http_mocking: mock response builders and scripted MockTransport engines
"""

"""Integration tests for the studyshare client.

These tests wire the real API wrapper, features, mutation coordinators and
upload pipeline together against in-process fakes of the backend and of
object storage. No network access is needed.
"""

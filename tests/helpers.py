"""Shared test constants."""

TEST_EMAIL = "test@example.com"
TEST_NAME = "Test User"
TEST_PASSWORD = "TestPass123"

OTHER_EMAIL = "other@example.com"

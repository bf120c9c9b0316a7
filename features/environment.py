"""
Behave environment configuration for Netmagis client feature tests.

Scenarios run against an in-memory Netmagis served through the mock
transport, so no network access is needed.
"""

import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

BASE_URL = "https://netmagis.example.com/netmagis"


def before_all(context):
    """Set up test environment before all tests."""
    context.base_url = BASE_URL
    logger.info("Test environment setup complete")


def before_scenario(context, scenario):
    """Set up each test scenario."""
    context.client = None
    context.error = None
    context.record = None
    logger.info(f"Starting scenario: {scenario.name}")


def after_scenario(context, scenario):
    """Clean up after each test scenario."""
    if context.client is not None:
        context.client.close()
    logger.info(f"Completed scenario: {scenario.name}")

"""
Multi-driver test base for automatic driver discovery and execution.

This module provides a base class that automatically runs tests against all available drivers.
Each test file should inherit from MultiDriverTestBase and define a single create_endpoint() method.
"""

import pytest
from typing import List
from abc import ABC, abstractmethod

from restcookies import Endpoint
from .dsl import CookieApiDsl
from .drivers import (
    DriverInterface,
    DirectDriver,
    AwsLambdaDriver,
    WsgiTestDriver,
)


class MultiDriverTestBase(ABC):
    """
    Base class for multi-driver tests.

    Automatically runs each test method against all available drivers.
    Subclasses must implement create_endpoint() to define the endpoint under test.
    """

    # Override this in subclasses to control which drivers to test
    ENABLED_DRIVERS = [
        'direct',       # Direct driver: calls Endpoint.execute
        'aws_lambda',   # AWS Lambda driver: simulates API Gateway proxy events
        'wsgi',         # WSGI driver: calls the endpoint as a WSGI application
    ]

    # Optional: Override to exclude specific drivers for certain test files
    EXCLUDED_DRIVERS: List[str] = []

    @abstractmethod
    def create_endpoint(self) -> Endpoint:
        """
        Create and configure the endpoint for testing.

        A new endpoint is built for every test so filters registered by one
        test never leak into another.
        """
        pass

    @classmethod
    def get_available_drivers(cls) -> List[str]:
        """Get list of available driver names for this test class."""
        return [driver for driver in cls.ENABLED_DRIVERS
                if driver not in cls.EXCLUDED_DRIVERS]

    @classmethod
    def create_driver(cls, driver_name: str, endpoint: Endpoint) -> DriverInterface:
        """Create a driver instance for the given driver name."""
        driver_map = {
            'direct': lambda endpoint: DirectDriver(endpoint),
            'aws_lambda': lambda endpoint: AwsLambdaDriver(endpoint),
            'aws_lambda_debug': lambda endpoint: AwsLambdaDriver(endpoint, enable_debugging=True),
            'wsgi': lambda endpoint: WsgiTestDriver(endpoint),
        }

        if driver_name not in driver_map:
            pytest.skip(f"Driver '{driver_name}' not available. Available: {list(driver_map.keys())}")

        return driver_map[driver_name](endpoint)

    @pytest.fixture
    def api(self, request):
        """
        Parametrized fixture that provides an API client for each enabled driver.

        This fixture is automatically parametrized with all enabled drivers.
        """
        driver_name = request.param
        endpoint = self.create_endpoint()
        driver = self.create_driver(driver_name, endpoint)
        yield CookieApiDsl(driver), driver_name


def multi_driver_test_class(enabled_drivers: List[str] = None,
                            excluded_drivers: List[str] = None):
    """
    Class decorator to configure multi-driver testing.

    Usage:
        @multi_driver_test_class(enabled_drivers=['direct', 'wsgi'])
        class TestMyEndpoint(MultiDriverTestBase):
            def create_endpoint(self):
                return Endpoint(lambda ctx: "ok")
    """
    def decorator(cls):
        if enabled_drivers is not None:
            cls.ENABLED_DRIVERS = enabled_drivers
        if excluded_drivers is not None:
            cls.EXCLUDED_DRIVERS = excluded_drivers
        return cls
    return decorator

"""
Test framework for cookie endpoint testing using 4-layer architecture.
"""

from .dsl import CookieApiDsl, HttpRequest, HttpResponse
from .drivers import DirectDriver, AwsLambdaDriver, WsgiTestDriver
from .multi_driver_base import MultiDriverTestBase

__all__ = [
    'CookieApiDsl',
    'HttpRequest',
    'HttpResponse',
    'DirectDriver',
    'AwsLambdaDriver',
    'WsgiTestDriver',
    'MultiDriverTestBase',
]

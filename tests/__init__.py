"""Tests for restcookies."""

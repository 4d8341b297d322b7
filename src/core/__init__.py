"""
Core business logic for the video lifecycle.

This module is framework-agnostic - it doesn't import FastAPI, Azure SDKs,
or any infrastructure concerns. This separation means we can test the
lifecycle rules in isolation and swap storage backends if needed.
"""

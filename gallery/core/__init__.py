"""
Core gallery logic.

This module is framework-agnostic - it doesn't import FastAPI, boto3,
or any infrastructure concerns. The gallery can be tested against an
in-memory store and driven by any front-end.
"""

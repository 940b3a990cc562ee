"""Test suite for the stacksmith package.

This package contains unit and integration tests validating token
resolution, construct tree validation and synthesis, security group
negotiation, and application load balancing constructs.
"""

#!/usr/bin/env python3
"""
VPC Endpoint Inventory CLI Module

This module provides the command-line interface entry point for the
vpc-endpoint-inventory package when installed via pip.
"""

from vpc_endpoint_inventory.main import main

if __name__ == "__main__":
    main()

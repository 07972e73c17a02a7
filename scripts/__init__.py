"""Operational scripts. Run with: python scripts/<script_name>.py"""

"""Pricing and availability engine for pet-sitting bookings."""

__version__ = "0.1.0"

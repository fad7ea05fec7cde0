"""Salon booking core: availability, slot proposal, booking lifecycle and messaging."""

__version__ = "0.1.0"

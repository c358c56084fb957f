"""Transports used to reach gpsd."""

"""gpsd JSON protocol: commands, response types and the line codec."""

"""Autonomous rover waypoint-mission simulation engine."""

"""Sensor reading sources feeding the sample store."""

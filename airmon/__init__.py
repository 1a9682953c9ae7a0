"""
airmon: indoor air monitor backend

Ingests temperature, humidity and CO2 readings into a bounded in-memory
time-series store and serves them to dashboard clients through long polling.
"""

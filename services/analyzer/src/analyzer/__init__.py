"""Analyzer worker: consumes analysis requests and runs periodic maintenance."""

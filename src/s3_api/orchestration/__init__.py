"""Provisioning workflows composed from the cloud gateways."""
